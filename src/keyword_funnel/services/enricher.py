"""Suggestion enrichment for imported keywords."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Sequence

from keyword_funnel.clients.suggest_client import SuggestionSource
from keyword_funnel.utils.logging import get_logger
from keyword_funnel.utils.text_utils import dedupe_preserving_order, normalize_identity


logger = get_logger(__name__)


class SuggestionEnricher:
    """
    Fetches a bounded list of related terms per keyword.

    A failing or slow source never fails the batch: that keyword simply
    gets no suggestions.
    """

    def __init__(
        self,
        source: SuggestionSource,
        limit: int = 10,
        timeout: float | None = 10.0,
        max_concurrency: int | None = None,
    ):
        self.source = source
        self.limit = limit
        self.timeout = timeout
        self.max_concurrency = max_concurrency

    def _clean(self, keyword: str, suggestions: Sequence[str]) -> list[str]:
        identity = normalize_identity(keyword)
        cleaned = [s.strip() for s in suggestions if s and s.strip()]
        cleaned = [s for s in cleaned if normalize_identity(s) != identity]
        return dedupe_preserving_order(cleaned)[: self.limit]

    async def _fetch(self, keyword: str, language: str, guard: asyncio.Semaphore | None) -> list[str]:
        try:
            async with guard if guard else contextlib.nullcontext():
                suggestions = await asyncio.wait_for(
                    self.source.fetch_suggestions(keyword, language),
                    timeout=self.timeout,
                )
        except Exception as exc:
            logger.warning("Suggestions unavailable for '%s': %s", keyword, str(exc) or type(exc).__name__)
            return []
        return self._clean(keyword, suggestions)

    async def _open_source(self, stack: contextlib.AsyncExitStack) -> None:
        if isinstance(self.source, contextlib.AbstractAsyncContextManager):
            await stack.enter_async_context(self.source)

    async def enrich(self, keyword: str, language: str) -> list[str]:
        """Suggestions for one keyword; empty on any failure."""
        async with contextlib.AsyncExitStack() as stack:
            await self._open_source(stack)
            return await self._fetch(keyword, language, None)

    async def enrich_many(self, keywords: Sequence[str], language: str) -> list[list[str]]:
        """
        Suggestions for many keywords, fetched concurrently.

        Returns:
            One list per keyword, aligned with the input order
        """
        if not keywords:
            return []

        guard = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None
        async with contextlib.AsyncExitStack() as stack:
            await self._open_source(stack)
            results = await asyncio.gather(
                *(self._fetch(kw, language, guard) for kw in keywords)
            )

        degraded = sum(1 for r in results if not r)
        logger.debug("Enriched %d keywords (%d without suggestions)", len(keywords), degraded)
        return list(results)


class NoSuggestions:
    """Suggestion source that never returns anything."""

    async def fetch_suggestions(self, term: str, locale: str) -> list[str]:
        return []


class NullEnricher(SuggestionEnricher):
    """Enricher used when suggestions are disabled."""

    def __init__(self) -> None:
        super().__init__(source=NoSuggestions(), limit=0, timeout=None)

    async def enrich(self, keyword: str, language: str) -> list[str]:
        return []

    async def enrich_many(self, keywords: Sequence[str], language: str) -> list[list[str]]:
        return [[] for _ in keywords]
