# ABOUTME: Storefront scrape discovery strategy: bookstore search page fetched through a proxy.
# ABOUTME: Parses the first result block with BeautifulSoup for a cover image and author.

import logging
from collections.abc import Sequence
from urllib.parse import quote, urlencode

from bs4 import BeautifulSoup

from libris.metadata.candidate import DiscoveryCandidate
from libris.metadata.http import HttpClient, MetadataFetchError
from libris.metadata.provider import usable_author
from libris.metadata.scoring import score

logger = logging.getLogger(__name__)

STOREFRONT_SOURCE = "storefront"
STOREFRONT_SEARCH_URL = "https://www.kitapyurdu.com/index.php"

# Tried in order; each takes the percent-encoded target URL.
DEFAULT_PROXIES = (
    "https://api.allorigins.win/raw?url={url}",
    "https://corsproxy.io/?url={url}",
)

_RESULT_SELECTOR = "div.product-cr"
_IMAGE_SELECTOR = "div.image img"
_NAME_SELECTOR = "div.name"
_AUTHOR_SELECTOR = "div.author"


def build_search_url(title: str, author: str | None = None) -> str:
    query = " ".join(part for part in (title, usable_author(author)) if part)
    params = {"route": "product/search", "filter_name": query}
    return f"{STOREFRONT_SEARCH_URL}?{urlencode(params)}"


def _text(block, selector: str) -> str:
    node = block.select_one(selector)
    return node.get_text(" ", strip=True) if node is not None else ""


def parse_storefront_results(html: str) -> DiscoveryCandidate | None:
    """Extract the first result block's image and author from a search page.

    Returns None when no recognizable block, or no absolute image URL,
    is present.
    """
    soup = BeautifulSoup(html, "html.parser")
    block = soup.select_one(_RESULT_SELECTOR)
    if block is None:
        return None

    image = block.select_one(_IMAGE_SELECTOR)
    if image is None:
        return None
    src = image.get("data-src") or image.get("src") or ""
    if src.startswith("//"):
        src = f"https:{src}"
    if not src.startswith(("http://", "https://")):
        return None

    author = _text(block, _AUTHOR_SELECTOR)
    return DiscoveryCandidate(
        title=_text(block, _NAME_SELECTOR) or image.get("alt", ""),
        authors=[author] if author else [],
        cover_url=src,
        source=STOREFRONT_SOURCE,
    )


class StorefrontStrategy:
    """Scrapes a bookstore's search results page.

    The page is requested through each proxy in turn until one answers.
    No score threshold applies: a recognizable result block is accepted.
    """

    def __init__(self, http_client: HttpClient, proxies: Sequence[str] = DEFAULT_PROXIES) -> None:
        self._http = http_client
        self._proxies = tuple(proxies)

    @property
    def name(self) -> str:
        return STOREFRONT_SOURCE

    async def _fetch_page(self, target: str) -> str | None:
        encoded = quote(target, safe="")
        for proxy in self._proxies:
            try:
                return await self._http.get_text(proxy.format(url=encoded))
            except MetadataFetchError as exc:
                logger.warning("Storefront proxy %s failed: %s", proxy.split("?")[0], exc)
        return None

    async def find(self, title: str, author: str | None = None) -> DiscoveryCandidate | None:
        html = await self._fetch_page(build_search_url(title, author))
        if not html:
            return None

        candidate = parse_storefront_results(html)
        if candidate is None:
            logger.debug("No storefront result block for %s", title)
            return None

        candidate.score = score(candidate.title, candidate.authors, title, usable_author(author))
        return candidate
