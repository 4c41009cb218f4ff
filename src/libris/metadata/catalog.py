# ABOUTME: Catalog search for the discovery UI: Open Library hits decorated with archive links.
# ABOUTME: Unscored passthrough; a failed request yields an empty list.

import logging
from dataclasses import dataclass, field
from urllib.parse import quote_plus

from libris.metadata.http import HttpClient, MetadataFetchError
from libris.metadata.openlibrary import OL_BASE
from libris.metadata.openlibrary_parser import (
    build_cover_url,
    parse_doc_key,
    parse_doc_language,
)
from libris.metadata.types import UNKNOWN_AUTHOR

logger = logging.getLogger(__name__)

_SEARCH_LIMIT = 10
CATALOG_SOURCE = "OpenLibrary"

# Outbound search pages, keyed by display name.
EXTERNAL_SEARCH_URLS = {
    "Anna's Archive": "https://annas-archive.org/search?q={query}",
    "Library Genesis": "https://libgen.is/search.php?req={query}",
}


@dataclass
class CatalogResult:
    """One search hit shown in the discovery UI."""

    id: str
    title: str
    author: str
    cover_url: str | None = None
    source: str = CATALOG_SOURCE
    language: str | None = None
    external_links: dict[str, str] = field(default_factory=dict)


def build_external_links(title: str, author: str | None = None) -> dict[str, str]:
    terms = " ".join(part for part in (title, author) if part and part != UNKNOWN_AUTHOR)
    query = quote_plus(terms)
    return {name: template.format(query=query) for name, template in EXTERNAL_SEARCH_URLS.items()}


async def search_catalog(http: HttpClient, query: str) -> list[CatalogResult]:
    """Search Open Library and decorate each hit with archive search links."""
    query = (query or "").strip()
    if not query:
        return []

    try:
        data = await http.get_json(
            f"{OL_BASE}/search.json", params={"q": query, "limit": str(_SEARCH_LIMIT)}
        )
    except MetadataFetchError as exc:
        logger.warning("Catalog search failed for %s: %s", query, exc)
        return []

    results: list[CatalogResult] = []
    for doc in (data.get("docs") or [])[:_SEARCH_LIMIT]:
        title = doc.get("title") or ""
        authors = doc.get("author_name") or []
        author = authors[0] if authors else UNKNOWN_AUTHOR
        cover_id = doc.get("cover_i")
        results.append(
            CatalogResult(
                id=parse_doc_key(doc) or title,
                title=title,
                author=author,
                cover_url=build_cover_url(cover_id, "M") if cover_id else None,
                language=parse_doc_language(doc),
                external_links=build_external_links(title, author),
            )
        )
    return results
