# ABOUTME: Parsing functions for Open Library search API JSON responses.
# ABOUTME: Converts OL search docs into DiscoveryCandidate instances and cover URLs.

from typing import Any

from libris.metadata.candidate import DiscoveryCandidate

_COVERS_BASE_URL = "https://covers.openlibrary.org/b/id"
OPENLIBRARY_SOURCE = "openlibrary"


def build_cover_url(cover_id: int | str, size: str = "L") -> str:
    """Build an Open Library cover image URL for a cover id.

    Args:
        cover_id: The ``cover_i`` value from a search doc.
        size: Image size: "S" (small), "M" (medium), or "L" (large).
    """
    return f"{_COVERS_BASE_URL}/{cover_id}-{size}.jpg"


def parse_search_results(data: dict[str, Any], size: str = "L") -> list[DiscoveryCandidate]:
    """Parse an Open Library Search API response into unscored candidates.

    Docs without a ``cover_i`` keep ``cover_url=None``.
    """
    docs = data.get("docs") or []
    results: list[DiscoveryCandidate] = []

    for doc in docs:
        cover_id = doc.get("cover_i")
        results.append(
            DiscoveryCandidate(
                title=doc.get("title") or "",
                authors=list(doc.get("author_name") or []),
                cover_url=build_cover_url(cover_id, size) if cover_id else None,
                source=OPENLIBRARY_SOURCE,
            )
        )

    return results


def parse_doc_key(doc: dict[str, Any]) -> str | None:
    """Work key such as ``/works/OL45883W``, if present."""
    return doc.get("key") or None


def parse_doc_language(doc: dict[str, Any]) -> str | None:
    languages = doc.get("language") or []
    return languages[0] if languages else None
