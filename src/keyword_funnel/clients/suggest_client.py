"""Autocomplete suggestion source."""

from typing import Any, Protocol

import httpx

from keyword_funnel.clients.base import BaseAsyncClient
from keyword_funnel.utils.text_utils import split_locale


class SuggestionSource(Protocol):
    """Anything that returns related search terms for a keyword."""

    async def fetch_suggestions(self, term: str, locale: str) -> list[str]:
        ...


class GoogleSuggestClient(BaseAsyncClient):
    """
    Client for the Google autocomplete endpoint (OpenSearch JSON format).

    One open client is shared by every lookup of an import.
    """

    BASE_URL = "https://suggestqueries.google.com"
    SUGGEST_PATH = "/complete/search"

    def __init__(
        self,
        base_url: str = BASE_URL,
        timeout: float = 8.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(base_url=base_url, timeout=timeout, transport=transport)

    @staticmethod
    def _build_params(term: str, locale: str) -> dict[str, str]:
        language, region = split_locale(locale)
        params = {"client": "firefox", "q": term, "hl": language}
        if region:
            params["gl"] = region
        return params

    @staticmethod
    def _extract_suggestions(data: Any) -> list[str]:
        # [query, [suggestion, ...], ...]
        if isinstance(data, list) and len(data) > 1 and isinstance(data[1], list):
            return [s for s in data[1] if isinstance(s, str)]
        return []

    async def fetch_suggestions(self, term: str, locale: str) -> list[str]:
        """
        Fetch autocomplete suggestions for a term.

        Uses: GET /complete/search?client=firefox&q=<term>&hl=<language>&gl=<REGION>

        A timeout or dropped connection is retried once.

        Raises:
            httpx.HTTPError: on transport failure or a non-2xx response
        """
        data = await self._get_json(self.SUGGEST_PATH, params=self._build_params(term, locale))
        return self._extract_suggestions(data)


def create_suggest_client(
    base_url: str = GoogleSuggestClient.BASE_URL,
    timeout: float = 8.0,
) -> GoogleSuggestClient:
    """Factory function to create a suggestion client."""
    return GoogleSuggestClient(base_url=base_url, timeout=timeout)
