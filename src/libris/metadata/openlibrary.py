# ABOUTME: Open Library discovery strategy for cover lookups.
# ABOUTME: Searches openlibrary.org by title/author and keeps the best-scoring covered hit.

import logging

from libris.metadata.candidate import DiscoveryCandidate
from libris.metadata.http import HttpClient, MetadataFetchError
from libris.metadata.openlibrary_parser import OPENLIBRARY_SOURCE, parse_search_results
from libris.metadata.provider import usable_author
from libris.metadata.scoring import score

logger = logging.getLogger(__name__)

OL_BASE = "https://openlibrary.org"
_SEARCH_LIMIT = 10
MIN_ACCEPT_SCORE = 50


class OpenLibraryStrategy:
    """Discovery strategy backed by the Open Library search API.

    Scores up to ten hits and accepts only the single best one, and only
    when it reaches MIN_ACCEPT_SCORE. Uses dependency-injected HttpClient
    for testability.
    """

    def __init__(self, http_client: HttpClient) -> None:
        self._http = http_client

    @property
    def name(self) -> str:
        return OPENLIBRARY_SOURCE

    async def search(self, title: str, author: str | None = None) -> list[DiscoveryCandidate]:
        """Run one search and return scored candidates in API order.

        Returns an empty list when the request fails.
        """
        params: dict[str, str] = {"title": title, "limit": str(_SEARCH_LIMIT)}
        query_author = usable_author(author)
        if query_author:
            params["author"] = query_author

        try:
            data = await self._http.get_json(f"{OL_BASE}/search.json", params=params)
        except MetadataFetchError as exc:
            logger.warning(
                "Open Library search failed for title=%s author=%s: %s", title, author, exc
            )
            return []

        candidates = parse_search_results(data)[:_SEARCH_LIMIT]
        for candidate in candidates:
            candidate.score = score(candidate.title, candidate.authors, title, query_author)
        return candidates

    async def find(self, title: str, author: str | None = None) -> DiscoveryCandidate | None:
        candidates = [c for c in await self.search(title, author) if c.cover_url]
        if not candidates:
            return None

        best = max(candidates, key=lambda c: c.score)
        if best.score < MIN_ACCEPT_SCORE:
            logger.debug("Open Library best score %d below %d", best.score, MIN_ACCEPT_SCORE)
            return None
        return best
