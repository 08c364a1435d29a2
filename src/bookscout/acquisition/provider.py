# ABOUTME: BookProvider protocol defining the contract for external catalog adapters.
# ABOUTME: Also defines ProviderError, the failure type every adapter raises.

from enum import Enum
from typing import Protocol, runtime_checkable

from bookscout.acquisition.retry import FetchError, FetchErrorKind
from bookscout.acquisition.types import CanonicalRecord, Provenance, SearchQuery


class ProviderErrorKind(Enum):
    """Provider-level failure categories."""

    NETWORK = "network"
    RATE_LIMITED = "rate_limited"
    BAD_RESPONSE = "bad_response"
    EMPTY_RESPONSE = "empty_response"
    PARSE_FAILED = "parse_failed"
    UNAUTHORIZED = "unauthorized"
    EMPTY_QUERY = "empty_query"


_FETCH_TO_PROVIDER_KIND: dict[FetchErrorKind, ProviderErrorKind] = {
    FetchErrorKind.NETWORK: ProviderErrorKind.NETWORK,
    FetchErrorKind.RATE_LIMITED: ProviderErrorKind.RATE_LIMITED,
    FetchErrorKind.REQUEST_FAILED: ProviderErrorKind.BAD_RESPONSE,
    FetchErrorKind.SERVER_ERROR: ProviderErrorKind.BAD_RESPONSE,
    FetchErrorKind.EMPTY_RESPONSE: ProviderErrorKind.EMPTY_RESPONSE,
    FetchErrorKind.PARSING_FAILED: ProviderErrorKind.PARSE_FAILED,
}


class ProviderError(Exception):
    """Raised when a provider cannot produce results for a query."""

    def __init__(self, kind: ProviderErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind

    @classmethod
    def from_fetch_error(cls, provider: str, exc: FetchError) -> "ProviderError":
        """Translate an executor failure into the provider taxonomy."""
        return cls(_FETCH_TO_PROVIDER_KIND[exc.kind], f"{provider}: {exc}")


@runtime_checkable
class BookProvider(Protocol):
    """Protocol for bibliographic catalog adapters.

    Implementations turn a SearchQuery into zero or more CanonicalRecords.
    An empty list means the catalog had no matches; every failure is raised
    as ProviderError.
    """

    @property
    def name(self) -> str: ...

    @property
    def provenance(self) -> Provenance: ...

    async def search(self, query: SearchQuery) -> list[CanonicalRecord]: ...


@runtime_checkable
class DescriptionSource(Protocol):
    """Protocol for providers that can fetch a long-form description by record id."""

    @property
    def provenance(self) -> Provenance: ...

    async def fetch_description(self, source_id: str) -> str | None: ...
