# ABOUTME: Metadata acquisition package: provider adapters, retry, dedupe, ranking, enrichment.
# ABOUTME: Exports the canonical record types and the search service entry point.

from bookscout.acquisition.provider import BookProvider, ProviderError, ProviderErrorKind
from bookscout.acquisition.service import BookSearchService, create_search_service
from bookscout.acquisition.types import CanonicalRecord, Provenance, SearchQuery

__all__ = [
    "BookProvider",
    "BookSearchService",
    "CanonicalRecord",
    "Provenance",
    "ProviderError",
    "ProviderErrorKind",
    "SearchQuery",
    "create_search_service",
]
