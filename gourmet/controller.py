"""Screen navigation and search state for one browser session.

All changes to ``ViewState`` go through the transition methods below; the
templates only read it.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

from gourmet.demo import demo_shops
from gourmet.errors import EMPTY_RESULTS_MESSAGE, InvalidParameters, LocationUnavailable, SearchError
from gourmet.gateway import SearchGateway
from gourmet.location import ACQUIRED_MESSAGE, FALLBACK_COORDINATES, Locator, fallback_status
from gourmet.models import DEFAULT_RANGE_CODE, Query, Screen, Shop, SortKey
from gourmet.paging import PAGE_SIZE, clamp_page, page_window, total_pages, visible_page

logger = logging.getLogger(__name__)


class InvalidTransition(RuntimeError):
    """Raised when a transition is requested from a screen that cannot make it."""


@dataclass(slots=True)
class ViewState:
    screen: Screen = Screen.SEARCH
    loading: bool = False
    error: str | None = None
    query: Query = field(default_factory=Query)
    results: list[Shop] = field(default_factory=list)
    selected_shop: Shop | None = None
    page: int = 1
    sort_key: SortKey = SortKey.DISTANCE
    location_status: str = ""
    demo_mode: bool = False


class ViewStateController:
    def __init__(self, gateway: SearchGateway, demo_fallback: bool = True, page_size: int = PAGE_SIZE) -> None:
        self.gateway = gateway
        self.demo_fallback = demo_fallback
        self.page_size = page_size
        self.state = ViewState()
        self._issued = 0
        self._lock = threading.Lock()

    def acquire_location(self, locator: Locator) -> None:
        try:
            coordinates = locator()
        except LocationUnavailable as error:
            logger.info("Location unavailable (%s); using fallback coordinates", error.reason)
            coordinates = FALLBACK_COORDINATES
            self.state.location_status = fallback_status(error.reason)
        else:
            self.state.location_status = ACQUIRED_MESSAGE
        self.state.query.lat = coordinates.lat
        self.state.query.lng = coordinates.lng

    def submit_search(self, range_code: int = DEFAULT_RANGE_CODE) -> None:
        state = self.state
        with self._lock:
            if not state.query.is_valid:
                state.error = InvalidParameters.user_message
                return
            state.query.range_code = range_code
            query = Query(lat=state.query.lat, lng=state.query.lng, range_code=range_code)
            self._issued += 1
            sequence = self._issued
            state.loading = True
            state.error = None

        # The lock is released while waiting so a newer search can be issued.
        failure: SearchError | None = None
        shops: list[Shop] = []
        try:
            shops = self.gateway.search(query)
        except SearchError as error:
            failure = error
        except Exception:
            with self._lock:
                if sequence == self._issued:
                    state.loading = False
            raise

        with self._lock:
            if sequence != self._issued:
                logger.info("Discarding stale search #%d; #%d is newer", sequence, self._issued)
                return
            if failure is not None:
                logger.warning("Search #%d failed: %s", sequence, type(failure).__name__)
                self._apply_failure(failure)
            else:
                self._apply_results(shops)
            state.loading = False

    def _apply_results(self, shops: list[Shop]) -> None:
        state = self.state
        state.demo_mode = False
        state.page = 1
        if not shops:
            # The screen stays where it is, so the page must stay in range.
            state.results = []
            state.error = EMPTY_RESULTS_MESSAGE
            return
        state.results = list(shops)
        state.screen = Screen.RESULTS

    def _apply_failure(self, error: SearchError) -> None:
        state = self.state
        state.error = error.user_message
        if not self.demo_fallback:
            return
        state.results = demo_shops()
        state.demo_mode = True
        state.page = 1
        state.screen = Screen.RESULTS

    def show_detail(self, shop_id: str) -> Shop:
        if self.state.screen is not Screen.RESULTS:
            raise InvalidTransition(f"cannot open a shop from {self.state.screen.value}")
        shop = self.find_shop(shop_id)
        if shop is None:
            raise ValueError(f"shop {shop_id!r} is not in the current results")
        self.state.selected_shop = shop
        self.state.screen = Screen.DETAIL
        return shop

    def find_shop(self, shop_id: str) -> Shop | None:
        for shop in self.state.results:
            if shop.id == shop_id:
                return shop
        return None

    def go_back(self) -> None:
        if self.state.screen is Screen.DETAIL:
            self.state.screen = Screen.RESULTS
        elif self.state.screen is Screen.RESULTS:
            self.state.screen = Screen.SEARCH

    def set_sort(self, sort_key: SortKey | str) -> None:
        self.state.sort_key = SortKey(sort_key)
        self.state.page = 1

    def go_to_page(self, page: int) -> int:
        self.state.page = clamp_page(page, len(self.state.results), self.page_size)
        return self.state.page

    def next_page(self) -> int:
        return self.go_to_page(self.state.page + 1)

    def prev_page(self) -> int:
        return self.go_to_page(self.state.page - 1)

    def total_pages(self) -> int:
        return total_pages(len(self.state.results), self.page_size)

    def visible_shops(self) -> list[Shop]:
        return visible_page(self.state.results, self.state.sort_key, self.state.page, self.page_size)

    def page_window(self) -> tuple[int, int]:
        return page_window(len(self.state.results), self.state.page, self.page_size)
