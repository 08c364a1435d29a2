# ABOUTME: Google Books metadata provider implementation.
# ABOUTME: Builds intitle/inauthor/isbn volume queries and fails fast when no API key is configured.

import logging

from bookscout.acquisition.cleaning import clean_isbn
from bookscout.acquisition.googlebooks_parser import parse_volumes_response
from bookscout.acquisition.provider import ProviderError, ProviderErrorKind
from bookscout.acquisition.retry import (
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_INITIAL_DELAY,
    FetchError,
    RetryExecutor,
)
from bookscout.acquisition.types import CanonicalRecord, Provenance, SearchQuery

logger = logging.getLogger(__name__)

_VOLUMES_URL = "https://www.googleapis.com/books/v1/volumes"

# The volumes endpoint rejects maxResults above 40.
_MAX_RESULTS_CAP = 40


def build_query(query: SearchQuery) -> str:
    """Build the Google Books "q" expression from the non-empty query fields."""
    parts: list[str] = []
    if query.title:
        parts.append(f"intitle:{query.title}")
    if query.author:
        parts.append(f"inauthor:{query.author}")
    if query.isbn:
        parts.append(f"isbn:{clean_isbn(query.isbn)}")
    return " ".join(parts)


class GoogleBooksProvider:
    """Metadata provider backed by the Google Books volumes API.

    Requires an API key; without one every search raises UNAUTHORIZED
    immediately rather than spending requests on anonymous quota.
    """

    def __init__(
        self,
        executor: RetryExecutor,
        api_key: str | None,
        *,
        max_attempts: int = 3,
        initial_delay: float = DEFAULT_INITIAL_DELAY,
        backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
    ) -> None:
        self._executor = executor
        self._api_key = (api_key or "").strip()
        self._max_attempts = max_attempts
        self._initial_delay = initial_delay
        self._backoff_factor = backoff_factor

    @property
    def name(self) -> str:
        return "googlebooks"

    @property
    def provenance(self) -> Provenance:
        return Provenance.GOOGLE_BOOKS

    def build_params(self, query: SearchQuery) -> dict[str, str]:
        """Query parameters for a volumes search. Empty values are omitted."""
        params = {
            "q": build_query(query),
            "maxResults": str(min(query.limit, _MAX_RESULTS_CAP)),
            "projection": "full",
            "key": self._api_key,
        }
        return {k: v for k, v in params.items() if v}

    async def search(self, query: SearchQuery) -> list[CanonicalRecord]:
        """Search volumes by title, author, and ISBN combined."""
        if not self._api_key:
            raise ProviderError(
                ProviderErrorKind.UNAUTHORIZED, f"{self.name}: no API key configured"
            )

        params = self.build_params(query)
        if "q" not in params:
            raise ProviderError(ProviderErrorKind.EMPTY_QUERY, f"{self.name}: empty query")

        user_isbn = clean_isbn(query.isbn) if query.isbn else None
        try:
            records = await self._executor.execute(
                _VOLUMES_URL,
                lambda data: parse_volumes_response(data, user_isbn),
                params=params,
                max_attempts=self._max_attempts,
                initial_delay=self._initial_delay,
                backoff_factor=self._backoff_factor,
            )
        except FetchError as exc:
            raise ProviderError.from_fetch_error(self.name, exc) from exc

        logger.debug("%s returned %d record(s) for %r", self.name, len(records), params["q"])
        return records
