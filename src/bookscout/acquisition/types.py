# ABOUTME: Core data structures for the book metadata acquisition pipeline.
# ABOUTME: CanonicalRecord is the provider-agnostic output every adapter normalizes into.

from dataclasses import dataclass
from datetime import date
from enum import Enum

UNKNOWN_TITLE = "Unknown Title"
UNKNOWN_AUTHOR = "Unknown Author"


class Provenance(Enum):
    """The external catalog a record was parsed from."""

    GOOGLE_BOOKS = "googlebooks"
    OPEN_LIBRARY = "openlibrary"


@dataclass(frozen=True)
class CanonicalRecord:
    """Normalized book metadata returned by the acquisition pipeline.

    Created once per parsed provider item and never mutated afterwards.
    Title and authors are always non-empty; adapters substitute
    UNKNOWN_TITLE / UNKNOWN_AUTHOR when a provider omits them. The ISBN is
    passed through as the provider supplied it, without validation.
    """

    title: str
    authors: str
    provenance: Provenance
    published_date: date | None = None
    publisher: str | None = None
    genre: str | None = None
    series: str | None = None
    isbn: str | None = None
    description: str | None = None
    source_id: str | None = None

    def __post_init__(self) -> None:
        if not self.title or not self.title.strip():
            raise ValueError("title must be a non-empty string")
        if not self.authors or not self.authors.strip():
            raise ValueError("authors must be a non-empty string")


@dataclass(frozen=True)
class SearchQuery:
    """User-supplied search terms, whitespace-stripped.

    A blank ISBN is stored as None so adapters can test it directly.
    """

    title: str = ""
    author: str = ""
    isbn: str | None = None
    limit: int = 10

    def __post_init__(self) -> None:
        if self.limit < 1:
            msg = f"limit must be at least 1, got {self.limit}"
            raise ValueError(msg)
        # Frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, "title", (self.title or "").strip())
        object.__setattr__(self, "author", (self.author or "").strip())
        isbn = (self.isbn or "").strip()
        object.__setattr__(self, "isbn", isbn or None)

    @property
    def has_text(self) -> bool:
        """Whether a title or author was supplied."""
        return bool(self.title or self.author)

    @property
    def is_empty(self) -> bool:
        """Whether there is nothing at all to search for."""
        return not self.has_text and self.isbn is None
