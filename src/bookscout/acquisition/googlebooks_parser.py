# ABOUTME: Parsing functions for Google Books volumes API JSON responses.
# ABOUTME: Converts volumeInfo entries into CanonicalRecords, picking the best ISBN per volume.

from typing import Any

from bookscout.acquisition.cleaning import (
    first_text,
    join_authors,
    parse_published_date,
    sanitize_description,
    text_or_none,
)
from bookscout.acquisition.types import UNKNOWN_TITLE, CanonicalRecord, Provenance

_ISBN_TYPES = ("ISBN_13", "ISBN_10")


def full_title(volume_info: dict[str, Any]) -> str:
    """Combine title and subtitle as "Title: Subtitle"."""
    title = text_or_none(volume_info.get("title")) or UNKNOWN_TITLE
    subtitle = text_or_none(volume_info.get("subtitle"))
    return f"{title}: {subtitle}" if subtitle else title


def primary_isbn(volume_info: dict[str, Any], user_isbn: str | None = None) -> str | None:
    """Pick the ISBN to report for a volume.

    An identifier equal to the ISBN the user searched for wins; otherwise the
    first ISBN_13 or ISBN_10 listed. Other identifier types are ignored.
    """
    identifiers = volume_info.get("industryIdentifiers")
    if not isinstance(identifiers, list):
        return None
    entries = [i for i in identifiers if isinstance(i, dict)]

    if user_isbn:
        for entry in entries:
            if entry.get("identifier") == user_isbn:
                return user_isbn

    for entry in entries:
        if entry.get("type") in _ISBN_TYPES:
            return text_or_none(entry.get("identifier"))
    return None


def parse_volume(item: dict[str, Any], user_isbn: str | None = None) -> CanonicalRecord | None:
    """Parse one entry of the volumes "items" list.

    Returns None for entries without a volumeInfo object.
    """
    volume_info = item.get("volumeInfo")
    if not isinstance(volume_info, dict):
        return None

    return CanonicalRecord(
        title=full_title(volume_info),
        authors=join_authors(volume_info.get("authors")),
        provenance=Provenance.GOOGLE_BOOKS,
        published_date=parse_published_date(text_or_none(volume_info.get("publishedDate"))),
        publisher=text_or_none(volume_info.get("publisher")),
        genre=first_text(volume_info.get("categories")),
        series=text_or_none(volume_info.get("series")),
        isbn=primary_isbn(volume_info, user_isbn),
        description=sanitize_description(text_or_none(volume_info.get("description"))),
        source_id=text_or_none(item.get("id")),
    )


def parse_volumes_response(data: Any, user_isbn: str | None = None) -> list[CanonicalRecord]:
    """Parse a Google Books volumes search response.

    A response without "items" (totalItems == 0) is a valid empty result.
    """
    if not isinstance(data, dict):
        msg = f"expected a JSON object, got {type(data).__name__}"
        raise TypeError(msg)

    items = data.get("items") or []
    if not isinstance(items, list):
        raise TypeError("'items' must be a list")

    results: list[CanonicalRecord] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        record = parse_volume(item, user_isbn)
        if record is not None:
            results.append(record)
    return results
