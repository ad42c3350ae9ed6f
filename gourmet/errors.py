"""Error kinds raised by the search and location layers.

Every error carries a fixed ``user_message``. Screens only ever show that
message, never the upstream payload.
"""

from __future__ import annotations

GENERIC_RETRY_MESSAGE = "検索中にエラーが発生しました。しばらく経ってから再度お試しください。"
EMPTY_RESULTS_MESSAGE = "該当するお店が見つかりませんでした。検索範囲を広げてもう一度お試しください。"


class SearchError(RuntimeError):
    """Base class for failures of a single search call."""

    user_message = GENERIC_RETRY_MESSAGE


class InvalidParameters(SearchError):
    """Raised when latitude, longitude or range is missing."""

    user_message = "位置情報を取得してから検索してください。"


class MissingCredentials(SearchError):
    """Raised when the active provider has no API key configured."""

    user_message = "検索サービスのAPIキーが設定されていません。"


class UpstreamError(SearchError):
    """Raised when the provider answers with a non-success status or cannot be reached."""

    def __init__(self, status: int | None, body: str) -> None:
        self.status = status
        self.body = body
        label = status if status is not None else "no response"
        super().__init__(f"upstream request failed ({label}): {body}")


class MalformedUpstreamResponse(SearchError):
    """Raised when the provider body lacks its result list."""


class LocationUnavailable(Exception):
    """Raised by a locator when the device position cannot be read."""

    def __init__(self, reason) -> None:
        self.reason = reason
        super().__init__(getattr(reason, "message", str(reason)))
