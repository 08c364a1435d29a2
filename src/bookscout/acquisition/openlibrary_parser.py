# ABOUTME: Parsing functions for Open Library API JSON responses.
# ABOUTME: Converts search docs, Books API entries, and works descriptions into canonical fields.

from typing import Any

from bookscout.acquisition.cleaning import (
    first_text,
    join_authors,
    parse_published_date,
    sanitize_description,
    text_or_none,
)
from bookscout.acquisition.types import UNKNOWN_TITLE, CanonicalRecord, Provenance


def _require_object(data: Any) -> dict[str, Any]:
    if not isinstance(data, dict):
        msg = f"expected a JSON object, got {type(data).__name__}"
        raise TypeError(msg)
    return data


def parse_search_results(data: Any) -> list[CanonicalRecord]:
    """Parse an Open Library Search API response into canonical records.

    Each doc carries title, author_name, publisher, isbn, subject, and the
    works key. A response with no docs is a valid, empty result. A doc without
    an ISBN list gets no ISBN; different works must not share one.
    """
    docs = _require_object(data).get("docs") or []
    if not isinstance(docs, list):
        raise TypeError("'docs' must be a list")

    results: list[CanonicalRecord] = []
    for doc in docs:
        if not isinstance(doc, dict):
            continue
        results.append(
            CanonicalRecord(
                title=text_or_none(doc.get("title")) or UNKNOWN_TITLE,
                authors=join_authors(doc.get("author_name")),
                provenance=Provenance.OPEN_LIBRARY,
                published_date=parse_published_date(doc.get("first_publish_year")),
                publisher=first_text(doc.get("publisher")),
                genre=first_text(doc.get("subject")),
                isbn=first_text(doc.get("isbn")),
                source_id=text_or_none(doc.get("key")),
            )
        )
    return results


def _names(entries: Any) -> list[str]:
    """Pull the "name" field out of a list of {name: ...} objects."""
    if not isinstance(entries, list):
        return []
    return [e["name"] for e in entries if isinstance(e, dict) and isinstance(e.get("name"), str)]


def parse_books_api_response(data: Any, isbn: str) -> list[CanonicalRecord]:
    """Parse an Open Library Books API (jscmd=data) response for one ISBN.

    The response is keyed by bibkey ("ISBN:<isbn>"). A missing key means the
    ISBN is unknown to Open Library, which is an empty result, not an error.
    """
    entry = _require_object(data).get(f"ISBN:{isbn}")
    if not isinstance(entry, dict):
        return []

    excerpts = entry.get("excerpts")
    excerpt = None
    if isinstance(excerpts, list) and excerpts and isinstance(excerpts[0], dict):
        excerpt = excerpts[0].get("text")

    return [
        CanonicalRecord(
            title=text_or_none(entry.get("title")) or UNKNOWN_TITLE,
            authors=join_authors(_names(entry.get("authors"))),
            provenance=Provenance.OPEN_LIBRARY,
            published_date=parse_published_date(text_or_none(entry.get("publish_date"))),
            publisher=first_text(_names(entry.get("publishers"))),
            genre=first_text(_names(entry.get("subjects"))),
            isbn=isbn,
            description=sanitize_description(excerpt if isinstance(excerpt, str) else None),
            source_id=text_or_none(entry.get("key")),
        )
    ]


def parse_works_description(data: Any) -> str:
    """Extract the description from an Open Library Works response.

    Handles the OL quirk where description can be either a plain string
    or a dict with {"type": ..., "value": "actual text"}. Returns an empty
    string when the work has no description, so the lookup is not retried.
    """
    desc = _require_object(data).get("description")
    if isinstance(desc, dict):
        desc = desc.get("value")
    if not isinstance(desc, str):
        return ""
    return sanitize_description(desc) or ""
