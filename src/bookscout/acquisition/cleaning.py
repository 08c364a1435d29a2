# ABOUTME: Field-level cleanup shared by the provider parsers.
# ABOUTME: Sanitizes HTML descriptions, parses partial publication dates, and joins author lists.

import re
from datetime import date, datetime
from typing import Any

from bookscout.acquisition.types import UNKNOWN_AUTHOR

_HTML_TAG_RE = re.compile(r"<[^>]+>")
_ISBN_STRIP_RE = re.compile(r"[\s-]")
_YEAR_RE = re.compile(r"\b(\d{4})\b")

# Applied in order before tags are stripped, so paragraph breaks survive.
_HTML_REPLACEMENTS: tuple[tuple[str, str], ...] = (
    ("<br>", "\n\n"),
    ("<br/>", "\n\n"),
    ("<br />", "\n\n"),
    ("</p>", "\n\n"),
    ("<p>", ""),
    ("&nbsp;", " "),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&amp;", "&"),
)

_DATE_FORMATS = ("%Y-%m-%d", "%Y-%m", "%Y")


def sanitize_description(text: str | None) -> str | None:
    """Strip HTML markup and common entities from a provider description.

    Returns None for missing or effectively empty text.
    """
    if not text:
        return None
    for needle, replacement in _HTML_REPLACEMENTS:
        text = text.replace(needle, replacement)
    text = _HTML_TAG_RE.sub("", text).strip()
    return text or None


def parse_published_date(value: Any) -> date | None:
    """Parse a provider publication date.

    Accepts "YYYY-MM-DD", "YYYY-MM", "YYYY", or a bare integer year; any other
    type yields None. Partial dates resolve to the first day of the month or
    year. Free-form strings such as "March 1983" fall back to the first
    four-digit year they contain.
    """
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        return None
    if isinstance(value, int):
        return _year_to_date(value)

    text = value.strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    match = _YEAR_RE.search(text)
    if match:
        return _year_to_date(int(match.group(1)))
    return None


def _year_to_date(year: int) -> date | None:
    try:
        return date(year, 1, 1)
    except ValueError:
        return None


def clean_isbn(isbn: str) -> str:
    """Strip hyphens and whitespace from an ISBN."""
    return _ISBN_STRIP_RE.sub("", isbn)


def join_authors(names: Any) -> str:
    """Join a provider author list into display form.

    Non-string and blank entries are dropped; an empty result becomes
    UNKNOWN_AUTHOR so the record invariant holds.
    """
    if not isinstance(names, list):
        return UNKNOWN_AUTHOR
    cleaned = [n.strip() for n in names if isinstance(n, str) and n.strip()]
    return ", ".join(cleaned) if cleaned else UNKNOWN_AUTHOR


def first_text(values: Any) -> str | None:
    """Return the first non-blank string of a list, or None."""
    if not isinstance(values, list):
        return None
    for value in values:
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def text_or_none(value: Any) -> str | None:
    """Normalize a provider string field: blanks and non-strings become None."""
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None
