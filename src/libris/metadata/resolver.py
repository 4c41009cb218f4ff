# ABOUTME: Remote discovery resolver: runs every strategy concurrently and picks a cover.
# ABOUTME: First non-empty answer in strategy order wins; always resolves to some URL.

import asyncio
import logging
from collections.abc import Mapping, Sequence

from libris.metadata.candidate import DiscoveryCandidate
from libris.metadata.googlebooks import GoogleBooksStrategy
from libris.metadata.http import HttpClient
from libris.metadata.openlibrary import OpenLibraryStrategy
from libris.metadata.provider import DiscoveryStrategy
from libris.metadata.scoring import normalize_text
from libris.metadata.storefront import StorefrontStrategy
from libris.metadata.types import PLACEHOLDER_COVER_URL, CoverResult

logger = logging.getLogger(__name__)

OVERRIDE_SOURCE = "override"

_NUTUK_COVER_URL = "https://covers.openlibrary.org/b/olid/OL27234398M-L.jpg"

# Author spellings whose books all share one known cover; keys are normalized.
AUTHOR_COVER_OVERRIDES: dict[str, str] = {
    "mustafa kemal atatürk": _NUTUK_COVER_URL,
    "gazi mustafa kemal atatürk": _NUTUK_COVER_URL,
    "m kemal atatürk": _NUTUK_COVER_URL,
    "atatürk": _NUTUK_COVER_URL,
}


class CoverResolver:
    """Fans a title/author query out to several discovery strategies.

    All strategies start together and are awaited as a group, so latency is
    that of the slowest one. The answer is the first non-empty result in
    the order the strategies were given, not the best-scoring one.
    """

    def __init__(
        self,
        strategies: Sequence[DiscoveryStrategy],
        overrides: Mapping[str, str] | None = None,
    ) -> None:
        self._strategies = tuple(strategies)
        self._overrides = dict(AUTHOR_COVER_OVERRIDES if overrides is None else overrides)

    @classmethod
    def default(cls, http_client: HttpClient) -> "CoverResolver":
        """Storefront scrape, then Google Books, then Open Library."""
        return cls(
            [
                StorefrontStrategy(http_client),
                GoogleBooksStrategy(http_client),
                OpenLibraryStrategy(http_client),
            ]
        )

    @property
    def strategy_names(self) -> list[str]:
        return [strategy.name for strategy in self._strategies]

    def _override_for(self, author: str | None) -> str | None:
        if not author:
            return None
        return self._overrides.get(normalize_text(author))

    async def _run(
        self, strategy: DiscoveryStrategy, title: str, author: str | None
    ) -> DiscoveryCandidate | None:
        try:
            return await strategy.find(title, author)
        except Exception as exc:
            logger.warning("Discovery strategy %s failed for %s: %s", strategy.name, title, exc)
            return None

    async def find_cover(self, title: str, author: str | None = None) -> CoverResult:
        """Find a cover URL (and possibly an author) for a title.

        Never raises: when every strategy comes back empty the placeholder
        URL is returned with no author.
        """
        override = self._override_for(author)
        if override:
            logger.debug("Using fixed cover for author %s", author)
            return CoverResult(url=override, author=author, source=OVERRIDE_SOURCE)

        results = await asyncio.gather(
            *(self._run(strategy, title, author) for strategy in self._strategies)
        )

        for strategy, candidate in zip(self._strategies, results):
            if candidate is not None and candidate.cover_url:
                logger.debug(
                    "Cover for %s from %s (score %d)", title, strategy.name, candidate.score
                )
                return CoverResult(
                    url=candidate.cover_url,
                    author=candidate.primary_author,
                    source=strategy.name,
                )

        logger.info("No cover found for %s", title)
        return CoverResult(url=PLACEHOLDER_COVER_URL)
