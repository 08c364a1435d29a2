# ABOUTME: Runtime settings for the acquisition pipeline.
# ABOUTME: Defaults live here; credentials and timeouts can be supplied through the environment.

import os
from collections.abc import Mapping
from dataclasses import dataclass

from bookscout.acquisition.http import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT
from bookscout.acquisition.relevance import DEFAULT_THRESHOLD
from bookscout.acquisition.retry import DEFAULT_BACKOFF_FACTOR, DEFAULT_INITIAL_DELAY

API_KEY_ENV = "GOOGLE_BOOKS_API_KEY"
TIMEOUT_ENV = "BOOKSCOUT_REQUEST_TIMEOUT"


@dataclass(frozen=True)
class SearchSettings:
    """Configuration for building a BookSearchService.

    A missing Google Books key is allowed: that provider then fails fast on
    every search and Open Library results are still returned.
    """

    google_books_api_key: str | None = None
    request_timeout: float = DEFAULT_TIMEOUT
    google_books_max_attempts: int = 3
    open_library_max_attempts: int = 2
    enrichment_max_attempts: int = 3
    initial_delay: float = DEFAULT_INITIAL_DELAY
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR
    relevance_threshold: float = DEFAULT_THRESHOLD
    enrich_descriptions: bool = True
    enrichment_concurrency: int = 5
    user_agent: str = DEFAULT_USER_AGENT

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "SearchSettings":
        """Build settings from environment variables, falling back to defaults.

        Raises:
            ValueError: If the timeout variable is set but not a positive number.
        """
        env = os.environ if environ is None else environ

        api_key = env.get(API_KEY_ENV, "").strip() or None

        timeout = DEFAULT_TIMEOUT
        raw_timeout = env.get(TIMEOUT_ENV, "").strip()
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError as exc:
                msg = f"{TIMEOUT_ENV} must be a number, got {raw_timeout!r}"
                raise ValueError(msg) from exc
            if not timeout > 0:
                msg = f"{TIMEOUT_ENV} must be positive, got {timeout}"
                raise ValueError(msg)

        return cls(google_books_api_key=api_key, request_timeout=timeout)
