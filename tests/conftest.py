"""Shared payload builders and fakes for gourmet tests."""

import json

import pytest

from gourmet.config import Settings
from gourmet.models import Shop

TEST_HOTPEPPER_KEY = "hp-secret-key-123"
TEST_GURUNAVI_KEY = "gn-secret-key-456"

TOKYO_STATION = (35.681236, 139.767125)


# ---------------------------------------------------------------------------
# Raw provider payloads
# ---------------------------------------------------------------------------

def hotpepper_shop(number, **overrides):
    """One Hot Pepper ``results.shop`` entry with every field populated."""
    record = {
        "id": f"J{number:09d}",
        "name": f"Shop {number}",
        "logo_image": f"https://imgfp.hotp.jp/logo/{number}.jpg",
        "photo": {"pc": {"l": f"https://imgfp.hotp.jp/photo/{number}_l.jpg"}},
        "access": f"JR東京駅八重洲口より徒歩{number}分",
        "mobile_access": f"東京駅 徒歩{number}分",
        "address": f"東京都千代田区丸の内1-{number}",
        "open": "月～日: 11:00～23:00",
        "catch": "自慢の一品",
        "genre": {"name": "居酒屋"},
        "budget": {"name": "3001～4000円", "average": f"{number * 1000}円"},
        "urls": {"pc": f"https://www.hotpepper.jp/str{number}/"},
    }
    record.update(overrides)
    return record


def hotpepper_payload(count, start=1):
    shops = [hotpepper_shop(number) for number in range(start, start + count)]
    return {"results": {"results_available": count, "results_returned": str(count), "shop": shops}}


def gurunavi_rest(number, **overrides):
    """One Gurunavi ``rest`` entry with every field populated."""
    record = {
        "id": f"g{number:06d}",
        "name": f"Rest {number}",
        "image_url": {"shop_image1": f"https://uds.gnst.jp/rest/{number}/1.jpg", "shop_image2": ""},
        "access": {
            "line": "JR山手線",
            "station": "渋谷駅",
            "station_exit": "ハチ公口",
            "walk": str(number),
            "note": "",
        },
        "address": f"〒150-0002 東京都渋谷区渋谷2-{number}",
        "opentime": "11:00～22:00",
        "pr": {"pr_short": "こだわりの焼き鳥", "pr_long": ""},
        "category": "焼き鳥",
        "budget": number * 1500,
        "url": f"https://r.gnavi.co.jp/g{number:06d}/",
        "url_mobile": f"http://mobile.gnavi.co.jp/shop/g{number:06d}/",
    }
    record.update(overrides)
    return record


def gurunavi_payload(count, start=1):
    rests = [gurunavi_rest(number) for number in range(start, start + count)]
    return {"total_hit_count": count, "hit_per_page": 100, "page_offset": 1, "rest": rests}


def make_shop(shop_id, distance=None, price=None, name=None):
    return Shop(
        id=shop_id,
        name=name or f"Shop {shop_id}",
        image_url="https://example.com/image.jpg",
        access="徒歩5分",
        address="東京都",
        open_hours="11:00～23:00",
        catchphrase="",
        genre_name="和食",
        budget_label="3001～4000円",
        distance_proxy=distance,
        price_proxy=price,
        detail_url="https://example.com/",
    )


# ---------------------------------------------------------------------------
# HTTP fakes
# ---------------------------------------------------------------------------

class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        if text is None:
            text = json.dumps(payload, ensure_ascii=False) if payload is not None else ""
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeSession:
    """Stands in for ``requests.Session``; replays queued responses or errors."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append({"url": url, "params": params, "headers": headers, "timeout": timeout})
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeGateway:
    """Returns queued shop lists or raises queued errors, one per search."""

    def __init__(self, *outcomes, on_search=None):
        self.outcomes = list(outcomes)
        self.queries = []
        self.on_search = on_search

    def search(self, query):
        self.queries.append(query)
        if self.on_search is not None:
            hook, self.on_search = self.on_search, None
            hook()
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def settings():
    return Settings(hotpepper_api_key=TEST_HOTPEPPER_KEY, gurunavi_api_key=TEST_GURUNAVI_KEY)
