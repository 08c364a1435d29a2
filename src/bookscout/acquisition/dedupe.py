# ABOUTME: Cross-provider deduplication of canonical records.
# ABOUTME: Keeps the first record seen for each ISBN or title+authors identity key.

from bookscout.acquisition.cleaning import clean_isbn
from bookscout.acquisition.types import CanonicalRecord


def identity_key(record: CanonicalRecord) -> str:
    """Derive the key used to detect the same book across providers.

    ISBN is the most reliable signal when present; otherwise the lowercased
    title and authors are combined. The prefixes keep the two key spaces
    from colliding.
    """
    if record.isbn and record.isbn.strip():
        return f"isbn:{clean_isbn(record.isbn).lower()}"
    title = record.title.strip().lower()
    authors = record.authors.strip().lower()
    return f"title:{title}|{authors}"


def dedupe(records: list[CanonicalRecord]) -> list[CanonicalRecord]:
    """Drop records whose identity key was already seen.

    Order-preserving: the first occurrence wins, so whichever provider's
    results were collected first decides which variant survives.
    """
    seen: set[str] = set()
    unique: list[CanonicalRecord] = []
    for record in records:
        key = identity_key(record)
        if key in seen:
            continue
        seen.add(key)
        unique.append(record)
    return unique
