# ABOUTME: Fuzzy relevance filtering and ranking of candidates against the search query.
# ABOUTME: Scores title and author distance with difflib and keeps candidates matching either one.

import re
from difflib import SequenceMatcher

from bookscout.acquisition.types import CanonicalRecord

DEFAULT_THRESHOLD = 0.3

_PUNCTUATION_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")


def _normalize_author(name: str) -> str:
    """Normalize 'Last, First' to 'First Last'."""
    if "," in name:
        parts = [p.strip() for p in name.split(",", 1)]
        name = f"{parts[1]} {parts[0]}"
    return name


def _normalize_text(text: str) -> str:
    """Lowercase, drop punctuation, and collapse whitespace."""
    text = _PUNCTUATION_RE.sub(" ", text.lower())
    return _WHITESPACE_RE.sub(" ", text).strip()


def _similarity(a: str, b: str) -> float:
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0
    return SequenceMatcher(None, a, b).ratio()


def relevance_score(query: str, text: str) -> float:
    """Fuzzy distance between query text and a candidate field.

    0.0 is an exact match and 1.0 is no similarity. Token order is ignored
    by also comparing the sorted word lists and keeping the better ratio,
    so "Herbert Frank" and "Frank Herbert" score as identical.
    """
    a = _normalize_text(query)
    b = _normalize_text(text)
    direct = _similarity(a, b)
    sorted_tokens = _similarity(" ".join(sorted(a.split())), " ".join(sorted(b.split())))
    return 1.0 - max(direct, sorted_tokens)


def author_relevance_score(query: str, authors: str) -> float:
    """Author distance, treating each joined author as a separate candidate.

    Multi-author records match when the query is close to any one author or
    to the joined list. 'Last, First' query strings are normalized first.
    """
    query = _normalize_author(query)
    names = [n for n in authors.split(", ") if n.strip()]
    scores = [relevance_score(query, authors)]
    if len(names) > 1:
        scores.extend(relevance_score(query, name) for name in names)
    return min(scores)


def filter_and_rank(
    records: list[CanonicalRecord],
    query_title: str,
    query_author: str,
    limit: int,
    *,
    threshold: float = DEFAULT_THRESHOLD,
) -> list[CanonicalRecord]:
    """Keep relevant candidates, best first, capped at limit.

    A candidate is kept when its title or its author scores below threshold;
    a strong match on either alone is enough. A blank query field takes no
    part in the decision, and with both blank every candidate is kept.
    Survivors are stably sorted by their mean score, so ties keep their
    incoming order.
    """
    if limit < 1:
        return []

    query_title = query_title.strip()
    query_author = query_author.strip()

    scored: list[tuple[float, CanonicalRecord]] = []
    for record in records:
        scores: list[float] = []
        if query_title:
            scores.append(relevance_score(query_title, record.title))
        if query_author:
            scores.append(author_relevance_score(query_author, record.authors))

        if not scores:
            scored.append((0.0, record))
        elif any(score < threshold for score in scores):
            scored.append((sum(scores) / len(scores), record))

    scored.sort(key=lambda pair: pair[0])
    return [record for _, record in scored[:limit]]
