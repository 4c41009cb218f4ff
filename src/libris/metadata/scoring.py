# ABOUTME: Relevance scoring for discovery candidates against a title/author query.
# ABOUTME: Substring agreement only: 50 points for the title, 50 for the author.

import re
import unicodedata

_TITLE_POINTS = 50
_AUTHOR_POINTS = 50

# Anything that is not a letter, digit, or whitespace after casefolding.
_PUNCTUATION_RE = re.compile(r"[^\w\s]|_")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_text(text: str | None) -> str:
    """Casefold, strip punctuation, and collapse whitespace.

    Unicode is NFKC-normalized first so composed and decomposed forms of
    accented letters compare equal.
    """
    if not text:
        return ""
    text = unicodedata.normalize("NFKC", text).casefold()
    text = _PUNCTUATION_RE.sub(" ", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def score(
    candidate_title: str | None,
    candidate_authors: list[str] | None,
    query_title: str | None,
    query_author: str | None = None,
) -> int:
    """Score how well a candidate matches a query.

    The candidate title only needs to *contain* the query title, so
    subtitle-bearing editions still match. No partial credit is given.

    Returns:
        0, 50, or 100.
    """
    total = 0

    wanted_title = normalize_text(query_title)
    if wanted_title and wanted_title in normalize_text(candidate_title):
        total += _TITLE_POINTS

    wanted_author = normalize_text(query_author)
    if wanted_author and any(
        wanted_author in normalize_text(name) for name in candidate_authors or []
    ):
        total += _AUTHOR_POINTS

    return total
