"""Turn raw provider payloads into canonical ``Shop`` records.

This is the only place where untyped provider JSON is read. Everything
after it works with ``Shop`` and can rely on the display fields being set.
"""

from __future__ import annotations

import html
import logging
import re
from typing import Any

from gourmet.errors import MalformedUpstreamResponse
from gourmet.models import ProviderKind, Shop

logger = logging.getLogger(__name__)

IMAGE_FALLBACK = "https://placehold.co/600x400/cccccc/ffffff?text=No+Image"
ACCESS_FALLBACK = "アクセス情報なし"
ADDRESS_FALLBACK = "住所情報なし"
OPEN_HOURS_FALLBACK = "営業時間情報なし"
GENRE_FALLBACK = "未分類"
BUDGET_FALLBACK = "予算情報なし"
NAME_FALLBACK = "店名不明"

DETAIL_URL_FALLBACKS = {
    ProviderKind.HOTPEPPER: "https://www.hotpepper.jp/",
    ProviderKind.GURUNAVI: "https://r.gnavi.co.jp/",
}

_WALK_MINUTES = re.compile(r"徒歩\s*約?\s*(\d+)\s*分")
_MINUTES = re.compile(r"(\d+)\s*分")
_INTEGER = re.compile(r"\d+")


def normalize(raw: Any, provider_kind: ProviderKind | str) -> list[Shop]:
    kind = ProviderKind(provider_kind)
    if kind is ProviderKind.HOTPEPPER:
        records = _hotpepper_records(raw)
        shaper = _shape_hotpepper
    else:
        records = _gurunavi_records(raw)
        shaper = _shape_gurunavi

    shops: list[Shop] = []
    seen_ids: dict[str, int] = {}
    for index, record in enumerate(records, start=1):
        if not isinstance(record, dict):
            logger.warning("Skipping non-object %s record at position %d", kind.value, index)
            continue
        shop = shaper(record)
        shop.id = _unique_id(shop.id or f"{kind.value}-{index}", seen_ids)
        shops.append(shop)
    return shops


def clean_text(value: Any) -> str:
    """Unescape and collapse whitespace; non-string values become ``""``."""
    if value is None or isinstance(value, (dict, list, bool)):
        return ""
    unescaped = html.unescape(str(value))
    return re.sub(r"\s+", " ", unescaped).strip()


def parse_distance_proxy(text: Any) -> float | None:
    cleaned = clean_text(text)
    if not cleaned:
        return None
    for pattern in (_WALK_MINUTES, _MINUTES):
        match = pattern.search(cleaned)
        if match:
            return float(match.group(1))
    return _first_integer(cleaned)


def parse_price_proxy(text: Any) -> float | None:
    cleaned = clean_text(text).replace(",", "")
    if not cleaned:
        return None
    return _first_integer(cleaned)


def _first_integer(text: str) -> float | None:
    match = _INTEGER.search(text)
    if not match:
        return None
    return float(match.group(0))


def _unique_id(candidate: str, seen_ids: dict[str, int]) -> str:
    count = seen_ids.get(candidate, 0) + 1
    seen_ids[candidate] = count
    if count == 1:
        return candidate
    suffixed = f"{candidate}-{count}"
    # A suffixed id can collide with a real one further down the list.
    while suffixed in seen_ids:
        count += 1
        suffixed = f"{candidate}-{count}"
    seen_ids[candidate] = count
    seen_ids[suffixed] = 1
    return suffixed


def _dig(record: Any, *path: str) -> Any:
    current = record
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def _first_text(*values: Any, fallback: str) -> str:
    for value in values:
        cleaned = clean_text(value)
        if cleaned:
            return cleaned
    return fallback


def _hotpepper_records(raw: Any) -> list[Any]:
    container = _dig(raw, "results")
    if not isinstance(container, dict):
        raise MalformedUpstreamResponse("hotpepper response has no 'results' object")
    records = container.get("shop")
    if not isinstance(records, list):
        raise MalformedUpstreamResponse("hotpepper response has no 'results.shop' list")
    return records


def _shape_hotpepper(record: dict[str, Any]) -> Shop:
    access = clean_text(record.get("access"))
    budget_label = _first_text(_dig(record, "budget", "name"), fallback=BUDGET_FALLBACK)

    distance_proxy = parse_distance_proxy(record.get("mobile_access"))
    if distance_proxy is None:
        distance_proxy = parse_distance_proxy(access)

    price_proxy = parse_price_proxy(_dig(record, "budget", "average"))
    if price_proxy is None:
        price_proxy = parse_price_proxy(_dig(record, "budget", "name"))

    return Shop(
        id=clean_text(record.get("id")),
        name=_first_text(record.get("name"), fallback=NAME_FALLBACK),
        image_url=_first_text(
            _dig(record, "photo", "pc", "l"),
            record.get("logo_image"),
            fallback=IMAGE_FALLBACK,
        ),
        access=access or ACCESS_FALLBACK,
        address=_first_text(record.get("address"), fallback=ADDRESS_FALLBACK),
        open_hours=_first_text(record.get("open"), fallback=OPEN_HOURS_FALLBACK),
        catchphrase=clean_text(record.get("catch")),
        genre_name=_first_text(_dig(record, "genre", "name"), fallback=GENRE_FALLBACK),
        budget_label=budget_label,
        distance_proxy=distance_proxy,
        price_proxy=price_proxy,
        detail_url=_first_text(
            _dig(record, "urls", "pc"),
            fallback=DETAIL_URL_FALLBACKS[ProviderKind.HOTPEPPER],
        ),
    )


def _gurunavi_records(raw: Any) -> list[Any]:
    if not isinstance(raw, dict) or "rest" not in raw:
        raise MalformedUpstreamResponse("gurunavi response has no 'rest' list")
    records = raw["rest"]
    # A single hit comes back as a bare object instead of a one-item list.
    if isinstance(records, dict):
        return [records]
    if not isinstance(records, list):
        raise MalformedUpstreamResponse("gurunavi response has no 'rest' list")
    return records


def _gurunavi_access(record: dict[str, Any]) -> str:
    access = record.get("access")
    if not isinstance(access, dict):
        return clean_text(access)
    line = clean_text(access.get("line"))
    station = clean_text(access.get("station"))
    exit_ = clean_text(access.get("station_exit"))
    walk = clean_text(access.get("walk"))
    note = clean_text(access.get("note"))

    parts = [part for part in (line, station, exit_) if part]
    text = " ".join(parts)
    if walk:
        text = f"{text} 徒歩{walk}分".strip()
    if note:
        text = f"{text} {note}".strip()
    return text


def _gurunavi_price(budget: Any) -> float | None:
    if isinstance(budget, bool):
        return None
    if isinstance(budget, (int, float)):
        return float(budget) if budget > 0 else None
    value = parse_price_proxy(budget)
    if value is None or value <= 0:
        return None
    return value


def _shape_gurunavi(record: dict[str, Any]) -> Shop:
    access = _gurunavi_access(record)
    budget = record.get("budget")
    price_proxy = _gurunavi_price(budget)

    distance_proxy = parse_distance_proxy(_dig(record, "access", "walk"))
    if distance_proxy is None:
        distance_proxy = parse_distance_proxy(access)

    return Shop(
        id=clean_text(record.get("id")),
        name=_first_text(record.get("name"), fallback=NAME_FALLBACK),
        image_url=_first_text(
            _dig(record, "image_url", "shop_image1"),
            _dig(record, "image_url", "shop_image2"),
            fallback=IMAGE_FALLBACK,
        ),
        access=access or ACCESS_FALLBACK,
        address=_first_text(record.get("address"), fallback=ADDRESS_FALLBACK),
        open_hours=_first_text(record.get("opentime"), fallback=OPEN_HOURS_FALLBACK),
        catchphrase=clean_text(_dig(record, "pr", "pr_short")),
        genre_name=_first_text(record.get("category"), fallback=GENRE_FALLBACK),
        budget_label=f"平均 {int(price_proxy):,}円" if price_proxy is not None else BUDGET_FALLBACK,
        distance_proxy=distance_proxy,
        price_proxy=price_proxy,
        detail_url=_first_text(
            record.get("url"),
            record.get("url_mobile"),
            fallback=DETAIL_URL_FALLBACKS[ProviderKind.GURUNAVI],
        ),
    )
