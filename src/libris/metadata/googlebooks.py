# ABOUTME: Google Books discovery strategy for cover lookups.
# ABOUTME: Exact-phrase title/author query; first hit scoring >= 40 whose image loads wins.

import logging
from typing import Any

from libris.metadata.candidate import DiscoveryCandidate
from libris.metadata.http import HttpClient, MetadataFetchError
from libris.metadata.images import image_loads
from libris.metadata.provider import usable_author
from libris.metadata.scoring import score

logger = logging.getLogger(__name__)

GOOGLE_BOOKS_URL = "https://www.googleapis.com/books/v1/volumes"
GOOGLE_BOOKS_SOURCE = "googlebooks"
_MAX_RESULTS = 10
MIN_ACCEPT_SCORE = 40


def build_query(title: str, author: str | None = None) -> str:
    """Build an exact-phrase ``intitle``/``inauthor`` query string."""
    query = f'intitle:"{title.replace(chr(34), "")}"'
    author = usable_author(author)
    if author:
        query += f' inauthor:"{author.replace(chr(34), "")}"'
    return query


def _cover_from_links(links: dict[str, Any]) -> str | None:
    url = links.get("thumbnail") or links.get("smallThumbnail")
    if not url:
        return None
    # Thumbnails come back as http:// with a page-curl effect baked in.
    return url.replace("http://", "https://", 1).replace("&edge=curl", "")


def parse_volumes(data: dict[str, Any]) -> list[DiscoveryCandidate]:
    """Parse a Google Books volumes response into unscored candidates."""
    results: list[DiscoveryCandidate] = []
    for item in data.get("items") or []:
        info = item.get("volumeInfo") or {}
        results.append(
            DiscoveryCandidate(
                title=info.get("title") or "",
                authors=list(info.get("authors") or []),
                cover_url=_cover_from_links(info.get("imageLinks") or {}),
                source=GOOGLE_BOOKS_SOURCE,
            )
        )
    return results


class GoogleBooksStrategy:
    """Discovery strategy backed by the public Google Books volumes API."""

    def __init__(self, http_client: HttpClient) -> None:
        self._http = http_client

    @property
    def name(self) -> str:
        return GOOGLE_BOOKS_SOURCE

    async def find(self, title: str, author: str | None = None) -> DiscoveryCandidate | None:
        params = {"q": build_query(title, author), "maxResults": str(_MAX_RESULTS)}
        try:
            data = await self._http.get_json(GOOGLE_BOOKS_URL, params=params)
        except MetadataFetchError as exc:
            logger.warning("Google Books search failed for %s: %s", title, exc)
            return None

        query_author = usable_author(author)
        for candidate in parse_volumes(data)[:_MAX_RESULTS]:
            candidate.score = score(candidate.title, candidate.authors, title, query_author)
            if candidate.score < MIN_ACCEPT_SCORE or not candidate.cover_url:
                continue
            if await image_loads(self._http, candidate.cover_url):
                return candidate
            logger.debug("Skipping %s: cover image did not load", candidate.cover_url)

        return None
