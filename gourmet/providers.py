"""Upstream restaurant search providers.

Each provider knows how to turn a ``Query`` into request parameters and how
to read its own response body. The gateway does the HTTP call itself.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from gourmet.errors import UpstreamError
from gourmet.models import RANGE_BANDS, ProviderKind, Query, Shop
from gourmet.normalizer import clean_text, normalize

RESULT_CAP = 100
DEFAULT_RANGE_METERS = 1000


def range_to_meters(range_code: int) -> int:
    return RANGE_BANDS.get(range_code, DEFAULT_RANGE_METERS)


class SearchProvider(ABC):
    kind: ProviderKind
    endpoint: str
    home_url: str
    display_name: str

    @abstractmethod
    def build_request(self, query: Query, api_key: str) -> tuple[str, dict[str, str]]:
        """Return the endpoint URL and the query-string parameters."""
        raise NotImplementedError

    def parse_response(self, body: Any) -> list[Shop]:
        return normalize(body, self.kind)

    def is_empty_response(self, status: int, body: Any) -> bool:
        return False


class HotPepperProvider(SearchProvider):
    kind = ProviderKind.HOTPEPPER
    endpoint = "https://webservice.recruit.co.jp/hotpepper/gourmet/v1/"
    home_url = "https://www.hotpepper.jp/"
    display_name = "ホットペッパー"

    def build_request(self, query: Query, api_key: str) -> tuple[str, dict[str, str]]:
        params = {
            "key": api_key,
            "lat": str(query.lat),
            "lng": str(query.lng),
            "range": str(query.range_code),
            "count": str(RESULT_CAP),
            "format": "json",
        }
        return self.endpoint, params

    def parse_response(self, body: Any) -> list[Shop]:
        # Hot Pepper reports bad keys and parameters inside a 200 body.
        results = body.get("results") if isinstance(body, dict) else None
        errors = results.get("error") if isinstance(results, dict) else None
        if errors:
            first = errors[0] if isinstance(errors, list) else errors
            if isinstance(first, dict):
                message = f"{clean_text(first.get('code'))} {clean_text(first.get('message'))}".strip()
            else:
                message = clean_text(first)
            raise UpstreamError(200, message or "unknown provider error")
        return super().parse_response(body)


class GurunaviProvider(SearchProvider):
    kind = ProviderKind.GURUNAVI
    endpoint = "https://api.gnavi.co.jp/RestSearchAPI/v3/"
    home_url = "https://r.gnavi.co.jp/"
    display_name = "ぐるなび"

    def build_request(self, query: Query, api_key: str) -> tuple[str, dict[str, str]]:
        params = {
            "keyid": api_key,
            "latitude": str(query.lat),
            "longitude": str(query.lng),
            "range": str(range_to_meters(query.range_code)),
            "hit_per_page": str(RESULT_CAP),
        }
        return self.endpoint, params

    def is_empty_response(self, status: int, body: Any) -> bool:
        # Zero hits come back as HTTP 404 with an error entry of code 404.
        if status != 404 or not isinstance(body, dict):
            return False
        errors = body.get("error")
        if not isinstance(errors, list):
            return False
        return any(isinstance(item, dict) and str(item.get("code")) == "404" for item in errors)


_PROVIDERS: dict[ProviderKind, type[SearchProvider]] = {
    ProviderKind.HOTPEPPER: HotPepperProvider,
    ProviderKind.GURUNAVI: GurunaviProvider,
}


def get_provider(kind: ProviderKind | str) -> SearchProvider:
    return _PROVIDERS[ProviderKind(kind)]()
