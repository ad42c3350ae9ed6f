"""Device location outcomes.

The position itself is read by the browser. A locator is any zero-argument
callable that either returns ``Coordinates`` or raises ``LocationUnavailable``
once; the controller never waits on more than one outcome.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from gourmet.errors import LocationUnavailable

LOCATION_TIMEOUT_MS = 10000
ACQUIRED_MESSAGE = "位置情報を取得しました！"
FALLBACK_NOTICE = "デモ用に東京駅周辺を設定します"


@dataclass(frozen=True, slots=True)
class Coordinates:
    lat: float
    lng: float


FALLBACK_COORDINATES = Coordinates(lat=35.681236, lng=139.767125)


class LocationFailure(int, Enum):
    UNSUPPORTED = 0
    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3

    @property
    def message(self) -> str:
        return _FAILURE_MESSAGES[self]


_FAILURE_MESSAGES = {
    LocationFailure.UNSUPPORTED: "お使いのブラウザは位置情報に対応していません。",
    LocationFailure.PERMISSION_DENIED: "位置情報の利用が許可されていません。",
    LocationFailure.POSITION_UNAVAILABLE: "デバイスの位置情報が利用できません。",
    LocationFailure.TIMEOUT: "タイムアウトしました。",
}

Locator = Callable[[], Coordinates]


def fallback_status(reason: LocationFailure) -> str:
    return f"{reason.message} ({FALLBACK_NOTICE})"


@dataclass(slots=True)
class BrowserLocationReport:
    """What the search page posts back after ``getCurrentPosition`` settles."""

    lat: str | None = None
    lng: str | None = None
    error_code: str | None = None

    def __call__(self) -> Coordinates:
        if self.error_code not in (None, ""):
            raise LocationUnavailable(_failure_from_code(self.error_code))
        try:
            lat = float(self.lat)
            lng = float(self.lng)
        except (TypeError, ValueError):
            raise LocationUnavailable(LocationFailure.POSITION_UNAVAILABLE) from None
        if not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
            raise LocationUnavailable(LocationFailure.POSITION_UNAVAILABLE)
        return Coordinates(lat=lat, lng=lng)


def _failure_from_code(code: str) -> LocationFailure:
    try:
        return LocationFailure(int(code))
    except ValueError:
        return LocationFailure.POSITION_UNAVAILABLE
