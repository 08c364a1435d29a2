# ABOUTME: Open Library metadata provider implementation.
# ABOUTME: Looks up books by exact ISBN first, falls back to title/author search, fetches descriptions.

import logging
from collections.abc import Callable
from typing import Any, TypeVar

from bookscout.acquisition.cleaning import clean_isbn
from bookscout.acquisition.openlibrary_parser import (
    parse_books_api_response,
    parse_search_results,
    parse_works_description,
)
from bookscout.acquisition.provider import ProviderError, ProviderErrorKind
from bookscout.acquisition.retry import (
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_INITIAL_DELAY,
    FetchError,
    RetryExecutor,
)
from bookscout.acquisition.types import CanonicalRecord, Provenance, SearchQuery

logger = logging.getLogger(__name__)

T = TypeVar("T")

_OL_BASE = "https://openlibrary.org"
_SEARCH_URL = f"{_OL_BASE}/search.json"
_BOOKS_API_URL = f"{_OL_BASE}/api/books"


class OpenLibraryProvider:
    """Metadata provider backed by the Open Library API.

    ISBN lookups use the Books API (most precise); otherwise the search
    endpoint is queried by title and author. Descriptions are not part of
    search results and are fetched separately through fetch_description.
    """

    def __init__(
        self,
        executor: RetryExecutor,
        *,
        max_attempts: int = 2,
        description_max_attempts: int = 3,
        initial_delay: float = DEFAULT_INITIAL_DELAY,
        backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
    ) -> None:
        self._executor = executor
        self._max_attempts = max_attempts
        self._description_max_attempts = description_max_attempts
        self._initial_delay = initial_delay
        self._backoff_factor = backoff_factor

    @property
    def name(self) -> str:
        return "openlibrary"

    @property
    def provenance(self) -> Provenance:
        return Provenance.OPEN_LIBRARY

    async def search(self, query: SearchQuery) -> list[CanonicalRecord]:
        """Search Open Library, preferring an exact ISBN match.

        If the ISBN is unknown and the query also has title or author text,
        falls back to the free-text search.
        """
        if query.isbn:
            records = await self.search_by_isbn(query.isbn)
            if records or not query.has_text:
                return records
            logger.debug("ISBN %s not found, falling back to title/author search", query.isbn)
        return await self.search_by_title_author(query)

    async def search_by_isbn(self, isbn: str) -> list[CanonicalRecord]:
        """Look up a single edition through the Books API."""
        clean = clean_isbn(isbn)
        params = {"bibkeys": f"ISBN:{clean}", "format": "json", "jscmd": "data"}
        return await self._fetch(
            _BOOKS_API_URL,
            params,
            lambda data: parse_books_api_response(data, clean),
            self._max_attempts,
        )

    async def search_by_title_author(self, query: SearchQuery) -> list[CanonicalRecord]:
        """Run a single search.json query. Empty fields are left out of the URL."""
        params: dict[str, str] = {}
        if query.title:
            params["title"] = query.title
        if query.author:
            params["author"] = query.author
        if not params:
            raise ProviderError(
                ProviderErrorKind.EMPTY_QUERY, f"{self.name}: no title or author to search"
            )
        params["limit"] = str(query.limit)
        params["page"] = "1"

        return await self._fetch(
            _SEARCH_URL,
            params,
            parse_search_results,
            self._max_attempts,
        )

    async def fetch_description(self, source_id: str) -> str | None:
        """Fetch the long-form description for a works or edition key.

        Returns None when the record has no description.
        """
        key = source_id if source_id.startswith("/") else f"/{source_id}"
        description = await self._fetch(
            f"{_OL_BASE}{key}.json",
            None,
            parse_works_description,
            self._description_max_attempts,
        )
        return description or None

    async def _fetch(
        self,
        url: str,
        params: dict[str, str] | None,
        parse: Callable[[Any], T | None],
        max_attempts: int,
    ) -> T:
        try:
            return await self._executor.execute(
                url,
                parse,
                params=params,
                max_attempts=max_attempts,
                initial_delay=self._initial_delay,
                backoff_factor=self._backoff_factor,
            )
        except FetchError as exc:
            raise ProviderError.from_fetch_error(self.name, exc) from exc
