from __future__ import annotations

import math
from typing import Sequence

from gourmet.models import Shop, SortKey

PAGE_SIZE = 10


def sort_shops(shops: Sequence[Shop], sort_key: SortKey | str) -> list[Shop]:
    """Stable ascending sort on the proxy for ``sort_key``; missing proxies go last."""
    key = SortKey(sort_key)
    attribute = "distance_proxy" if key is SortKey.DISTANCE else "price_proxy"

    def _order(shop: Shop) -> tuple[bool, float]:
        value = getattr(shop, attribute)
        return (value is None, value if value is not None else 0.0)

    return sorted(shops, key=_order)


def total_pages(count: int, page_size: int = PAGE_SIZE) -> int:
    return max(1, math.ceil(count / page_size))


def clamp_page(page: int, count: int, page_size: int = PAGE_SIZE) -> int:
    return min(max(1, page), total_pages(count, page_size))


def visible_page(
    results: Sequence[Shop],
    sort_key: SortKey | str,
    page: int,
    page_size: int = PAGE_SIZE,
) -> list[Shop]:
    pages = total_pages(len(results), page_size)
    if page < 1 or page > pages:
        raise ValueError(f"page {page} is outside 1..{pages}")
    offset = (page - 1) * page_size
    return sort_shops(results, sort_key)[offset : offset + page_size]


def page_window(count: int, page: int, page_size: int = PAGE_SIZE) -> tuple[int, int]:
    """1-based numbers of the first and last items shown on ``page``."""
    if count == 0:
        return 0, 0
    offset = (page - 1) * page_size
    return offset + 1, min(offset + page_size, count)
