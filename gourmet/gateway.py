"""Single-call search against the configured restaurant provider."""

from __future__ import annotations

import logging
from urllib.parse import quote, quote_plus

import requests

from gourmet.config import API_KEY_ENV, Settings
from gourmet.errors import InvalidParameters, MalformedUpstreamResponse, MissingCredentials, UpstreamError
from gourmet.models import Query, Shop
from gourmet.providers import SearchProvider

logger = logging.getLogger(__name__)
_SESSION = requests.Session()

LOG_BODY_LIMIT = 200
REDACTED = "***"


class SearchGateway:
    def __init__(
        self,
        provider: SearchProvider,
        settings: Settings,
        session: requests.Session | None = None,
    ) -> None:
        self.provider = provider
        self.settings = settings
        self.session = session or _SESSION

    def search(self, query: Query) -> list[Shop]:
        if query.lat is None or query.lng is None or query.range_code is None:
            raise InvalidParameters("lat, lng and range are required")

        api_key = self.settings.api_key_for(self.provider.kind)
        if not api_key:
            logger.error("%s is not set; refusing to call %s", API_KEY_ENV[self.provider.kind], self.provider.kind.value)
            raise MissingCredentials(f"{API_KEY_ENV[self.provider.kind]} is not configured")

        url, params = self.provider.build_request(query, api_key)
        logger.info(
            "Searching %s: lat=%s lng=%s range=%s",
            self.provider.kind.value,
            query.lat,
            query.lng,
            query.range_code,
        )

        try:
            response = self.session.get(
                url,
                params=params,
                headers={"Accept": "application/json"},
                timeout=self.settings.request_timeout,
            )
        except requests.RequestException as error:
            message = _redact(str(error), api_key)
            logger.error("%s request failed: %s", self.provider.kind.value, message)
            raise UpstreamError(None, message) from None

        body_text = _redact(response.text or "", api_key)
        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.status_code != 200:
            if self.provider.is_empty_response(response.status_code, payload):
                logger.info("%s returned no shops", self.provider.kind.value)
                return []
            logger.error(
                "%s returned status=%s body=%s",
                self.provider.kind.value,
                response.status_code,
                body_text[:LOG_BODY_LIMIT],
            )
            raise UpstreamError(response.status_code, body_text)

        if payload is None:
            logger.error("%s returned a non-JSON body: %s", self.provider.kind.value, body_text[:LOG_BODY_LIMIT])
            raise MalformedUpstreamResponse(f"{self.provider.kind.value} returned a non-JSON body")

        try:
            shops = self.provider.parse_response(payload)
        except UpstreamError as error:
            body = _redact(error.body, api_key)
            logger.error("%s reported an error: %s", self.provider.kind.value, body[:LOG_BODY_LIMIT])
            raise UpstreamError(error.status, body) from None
        except MalformedUpstreamResponse as error:
            logger.error("%s response malformed: %s", self.provider.kind.value, error)
            raise

        logger.info("%s returned %d shops", self.provider.kind.value, len(shops))
        return shops


def _redact(text: str, api_key: str) -> str:
    if not api_key:
        return text
    # Transport errors echo the request URL, where the key is percent-encoded.
    for form in sorted({api_key, quote(api_key, safe=""), quote_plus(api_key)}, key=len, reverse=True):
        text = text.replace(form, REDACTED)
    return text
