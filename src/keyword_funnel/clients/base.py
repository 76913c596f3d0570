"""Shared async HTTP plumbing for outbound API clients."""

from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)


# Errors worth one more try; HTTP status errors are final
TRANSIENT_ERRORS = (httpx.TimeoutException, httpx.NetworkError)


class BaseAsyncClient:
    """
    One pooled `httpx.AsyncClient` per `async with` block.

    Subclasses set `DEFAULT_HEADERS` and call `_get_json` for their
    endpoints; the transport is injectable for tests.
    """

    DEFAULT_HEADERS: dict[str, str] = {"Accept": "application/json"}

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport
        self._http: httpx.AsyncClient | None = None

    async def __aenter__(self):
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.DEFAULT_HEADERS,
            timeout=httpx.Timeout(self.timeout),
            transport=self.transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        http, self._http = self._http, None
        if http is not None:
            await http.aclose()

    def _require_open(self) -> httpx.AsyncClient:
        if self._http is None:
            raise RuntimeError(f"{type(self).__name__} must be opened with 'async with' before use")
        return self._http

    @retry(
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=2),
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        reraise=True,
    )
    async def _get_json(self, path: str, params: dict[str, str] | None = None) -> Any:
        """GET `path` and decode the JSON body; non-2xx raises `httpx.HTTPStatusError`."""
        response = await self._require_open().get(path, params=params)
        response.raise_for_status()
        return response.json()
