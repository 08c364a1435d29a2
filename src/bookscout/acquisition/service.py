# ABOUTME: Fetch orchestrator and end-to-end search pipeline across all catalog providers.
# ABOUTME: Fans out concurrently, absorbs provider failures, then dedupes, ranks, and enriches.

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

import httpx

from bookscout.acquisition.concurrency import gather_until_cancelled
from bookscout.acquisition.config import SearchSettings
from bookscout.acquisition.dedupe import dedupe
from bookscout.acquisition.enrichment import DescriptionEnricher
from bookscout.acquisition.googlebooks import GoogleBooksProvider
from bookscout.acquisition.openlibrary import OpenLibraryProvider
from bookscout.acquisition.provider import BookProvider, ProviderError
from bookscout.acquisition.relevance import DEFAULT_THRESHOLD, filter_and_rank
from bookscout.acquisition.retry import RetryExecutor
from bookscout.acquisition.types import CanonicalRecord, SearchQuery

logger = logging.getLogger(__name__)


def _is_cancelled(cancel_event: asyncio.Event | None) -> bool:
    return cancel_event is not None and cancel_event.is_set()


class BookSearchService:
    """Searches every configured provider and merges the results.

    Provider failures never reach the caller: a failing provider contributes
    nothing, and a search where every provider fails returns an empty list.
    """

    def __init__(
        self,
        providers: Sequence[BookProvider],
        *,
        enricher: DescriptionEnricher | None = None,
        relevance_threshold: float = DEFAULT_THRESHOLD,
    ) -> None:
        self._providers = list(providers)
        self._enricher = enricher
        self._threshold = relevance_threshold

    @property
    def providers(self) -> list[BookProvider]:
        return list(self._providers)

    async def fetch_candidates(
        self,
        query: SearchQuery,
        cancel_event: asyncio.Event | None = None,
    ) -> list[CanonicalRecord]:
        """Query all providers concurrently and flatten their records.

        Records are collected in provider completion order. When cancel_event
        is set, outstanding providers are abandoned and whatever already
        completed is returned.
        """
        outcomes = await gather_until_cancelled(
            [self._run_provider(provider, query) for provider in self._providers],
            cancel_event,
        )

        combined: list[CanonicalRecord] = []
        for _, records in outcomes:
            if records is not None:
                combined.extend(records)
        return combined

    async def _run_provider(
        self, provider: BookProvider, query: SearchQuery
    ) -> list[CanonicalRecord] | None:
        """Run one provider, turning its failure into None."""
        try:
            records = await provider.search(query)
        except ProviderError as exc:
            logger.warning("Provider %s failed (%s): %s", provider.name, exc.kind.value, exc)
            return None
        logger.debug("Provider %s returned %d record(s)", provider.name, len(records))
        return records

    async def search_books(
        self,
        title: str,
        author: str = "",
        isbn: str | None = None,
        limit: int = 10,
        cancel_event: asyncio.Event | None = None,
    ) -> list[CanonicalRecord]:
        """Find candidate records for a title/author/ISBN search.

        Returns at most limit records, most relevant first. A cancelled
        search returns an empty list.

        Raises:
            ValueError: If limit is less than 1.
        """
        query = SearchQuery(title=title, author=author, isbn=isbn, limit=limit)
        if query.is_empty:
            return []

        candidates = await self.fetch_candidates(query, cancel_event)
        if _is_cancelled(cancel_event):
            logger.info("Search cancelled")
            return []

        unique = dedupe(candidates)
        if query.has_text:
            results = filter_and_rank(
                unique, query.title, query.author, query.limit, threshold=self._threshold
            )
        else:
            results = unique[: query.limit]

        if self._enricher is not None and results:
            results = await self._enricher.enrich_all(results, cancel_event)
            if _is_cancelled(cancel_event):
                logger.info("Search cancelled")
                return []

        logger.debug(
            "Search %r/%r: %d fetched, %d unique, %d returned",
            query.title,
            query.author,
            len(candidates),
            len(unique),
            len(results),
        )
        return results


def create_search_service(
    settings: SearchSettings,
    client: httpx.AsyncClient,
    *,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> BookSearchService:
    """Wire the Google Books and Open Library providers over a shared client."""
    executor = RetryExecutor(client, sleep=sleep)
    google = GoogleBooksProvider(
        executor,
        settings.google_books_api_key,
        max_attempts=settings.google_books_max_attempts,
        initial_delay=settings.initial_delay,
        backoff_factor=settings.backoff_factor,
    )
    open_library = OpenLibraryProvider(
        executor,
        max_attempts=settings.open_library_max_attempts,
        description_max_attempts=settings.enrichment_max_attempts,
        initial_delay=settings.initial_delay,
        backoff_factor=settings.backoff_factor,
    )

    enricher = None
    if settings.enrich_descriptions:
        enricher = DescriptionEnricher(
            open_library, max_concurrency=settings.enrichment_concurrency
        )

    return BookSearchService(
        [google, open_library],
        enricher=enricher,
        relevance_threshold=settings.relevance_threshold,
    )
