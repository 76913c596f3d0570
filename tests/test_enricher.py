"""Tests for suggestion enrichment and the autocomplete client."""

import asyncio

import httpx
import pytest

from keyword_funnel.clients.suggest_client import GoogleSuggestClient
from keyword_funnel.services.enricher import NullEnricher, SuggestionEnricher


class FakeSource:
    def __init__(self, responses=None, fail_on=(), delay=0.0):
        self.responses = responses or {}
        self.fail_on = set(fail_on)
        self.delay = delay
        self.calls: list[tuple[str, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch_suggestions(self, term: str, locale: str) -> list[str]:
        self.calls.append((term, locale))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if term in self.fail_on:
                raise httpx.ConnectError("unreachable")
            return self.responses.get(term, [f"{term} online", f"best {term}"])
        finally:
            self.in_flight -= 1


@pytest.mark.asyncio
async def test_enrich_many_aligned_with_input():
    source = FakeSource()
    enricher = SuggestionEnricher(source)

    results = await enricher.enrich_many(["shoes", "boots", "socks"], "pt-PT")

    assert results == [
        ["shoes online", "best shoes"],
        ["boots online", "best boots"],
        ["socks online", "best socks"],
    ]
    assert all(locale == "pt-PT" for _, locale in source.calls)


@pytest.mark.asyncio
async def test_failure_degrades_to_empty_list():
    source = FakeSource(fail_on={"boots"})
    enricher = SuggestionEnricher(source)

    results = await enricher.enrich_many(["shoes", "boots"], "pt-PT")

    assert results[0] == ["shoes online", "best shoes"]
    assert results[1] == []


@pytest.mark.asyncio
async def test_timeout_degrades_to_empty_list():
    source = FakeSource(delay=1.0)
    enricher = SuggestionEnricher(source, timeout=0.01)

    assert await enricher.enrich("shoes", "pt-PT") == []


@pytest.mark.asyncio
async def test_cleans_limits_and_dedupes():
    source = FakeSource(responses={
        "shoes": ["Shoes", " red shoes ", "red shoes", "", "blue shoes", "green shoes"],
    })
    enricher = SuggestionEnricher(source, limit=2)

    assert await enricher.enrich("shoes", "en-US") == ["red shoes", "blue shoes"]


@pytest.mark.asyncio
async def test_concurrency_bound():
    source = FakeSource(delay=0.01)
    enricher = SuggestionEnricher(source, max_concurrency=2)

    results = await enricher.enrich_many([f"kw{i}" for i in range(8)], "pt-PT")

    assert len(results) == 8
    assert source.max_in_flight <= 2


@pytest.mark.asyncio
async def test_unbounded_runs_concurrently():
    source = FakeSource(delay=0.01)
    enricher = SuggestionEnricher(source)

    await enricher.enrich_many([f"kw{i}" for i in range(5)], "pt-PT")

    assert source.max_in_flight == 5


@pytest.mark.asyncio
async def test_empty_batch():
    source = FakeSource()
    assert await SuggestionEnricher(source).enrich_many([], "pt-PT") == []
    assert source.calls == []


@pytest.mark.asyncio
async def test_null_enricher():
    assert await NullEnricher().enrich_many(["a", "b"], "pt-PT") == [[], []]


class TestGoogleSuggestClient:
    @pytest.mark.asyncio
    async def test_request_params_and_parsing(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=["sapatos", ["sapatos nike", "sapatos homem", 3]])

        client = GoogleSuggestClient(transport=httpx.MockTransport(handler))
        async with client:
            suggestions = await client.fetch_suggestions("sapatos", "pt-PT")

        assert suggestions == ["sapatos nike", "sapatos homem"]
        params = seen[0].url.params
        assert seen[0].url.path == "/complete/search"
        assert params["q"] == "sapatos"
        assert params["hl"] == "pt"
        assert params["gl"] == "PT"
        assert params["client"] == "firefox"

    @pytest.mark.asyncio
    async def test_language_only_locale_has_no_region(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=["schuhe", []])

        async with GoogleSuggestClient(transport=httpx.MockTransport(handler)) as client:
            assert await client.fetch_suggestions("schuhe", "de") == []

        assert "gl" not in seen[0].url.params

    @pytest.mark.asyncio
    async def test_server_error_degrades_through_enricher(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500)

        client = GoogleSuggestClient(transport=httpx.MockTransport(handler))
        enricher = SuggestionEnricher(client)

        assert await enricher.enrich_many(["shoes", "boots"], "pt-PT") == [[], []]

    @pytest.mark.asyncio
    async def test_requires_open_context(self):
        client = GoogleSuggestClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        with pytest.raises(RuntimeError):
            await client.fetch_suggestions("shoes", "pt-PT")

    @pytest.mark.asyncio
    async def test_transient_error_retried_once(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ConnectError("reset", request=request)
            return httpx.Response(200, json=["shoes", ["shoes sale"]])

        async with GoogleSuggestClient(transport=httpx.MockTransport(handler)) as client:
            assert await client.fetch_suggestions("shoes", "en-US") == ["shoes sale"]

        assert len(calls) == 2
