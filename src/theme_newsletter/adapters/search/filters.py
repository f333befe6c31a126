"""Matching and ranking feed entries."""

import re

TERM_RE = re.compile(r"\w{3,}")


def matches_keywords(title: str, content: str, keywords: list[str]) -> bool:
    """Check if an entry mentions any keyword as a whole word or phrase.

    Matching is case-insensitive; an empty keyword list matches everything.
    """
    keywords = [k.strip() for k in keywords if k.strip()]
    if not keywords:
        return True

    text = f"{title} {content}"
    return any(
        re.search(rf"(?<!\w){re.escape(keyword)}(?!\w)", text, re.IGNORECASE)
        for keyword in keywords
    )


def query_terms(query: str) -> set[str]:
    """Lowercased words of three or more characters."""
    return {term.lower() for term in TERM_RE.findall(query)}


def relevance(title: str, content: str, terms: set[str]) -> int:
    """Number of query terms the entry shares."""
    return len(terms & query_terms(f"{title} {content}"))
