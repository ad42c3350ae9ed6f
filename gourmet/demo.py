"""Fixed sample shops shown when the search backend is unavailable."""

from __future__ import annotations

from functools import lru_cache

from gourmet.models import ProviderKind, Shop
from gourmet.normalizer import normalize

DEMO_SHOP_COUNT = 25
DEMO_GENRES = ("居酒屋", "イタリアン", "和食")
DEMO_OPEN_HOURS = (
    "月～金、祝前日: 11:00～15:00 （料理L.O. 14:30 ドリンクL.O. 14:30） "
    "17:00～23:00 （料理L.O. 22:30 ドリンクL.O. 22:30）"
)


def demo_shop_name(number: int) -> str:
    return f"美味しいレストラン {number}号店"


def _demo_record(number: int) -> dict[str, object]:
    return {
        "id": f"mock-{number}",
        "name": demo_shop_name(number),
        "logo_image": "https://placehold.co/400x400/orange/white?text=No+Image",
        "photo": {"pc": {"l": f"https://placehold.co/600x400/orange/white?text=Restaurant+Image+{number}"}},
        "access": f"最寄駅{number}から徒歩5分",
        "address": f"東京都渋谷区デモ町1-1-{number}",
        "open": DEMO_OPEN_HOURS,
        "catch": "絶品料理と落ち着いた空間",
        "genre": {"name": DEMO_GENRES[(number - 1) % len(DEMO_GENRES)]},
        "budget": {"name": "3001～4000円"},
        "urls": {"pc": "https://www.hotpepper.jp/"},
    }


@lru_cache(maxsize=1)
def _demo_payload() -> dict[str, object]:
    return {"results": {"shop": [_demo_record(number) for number in range(1, DEMO_SHOP_COUNT + 1)]}}


def demo_shops() -> list[Shop]:
    """Return a fresh copy of the demo dataset in fixed order."""
    return normalize(_demo_payload(), ProviderKind.HOTPEPPER)
