# ABOUTME: Unit tests for the Open Library, Google Books, and storefront discovery strategies.
# ABOUTME: Uses a FakeHttpClient with canned responses; nothing touches the network.

import asyncio

from libris.metadata.googlebooks import GoogleBooksStrategy, build_query, parse_volumes
from libris.metadata.http import MetadataFetchError
from libris.metadata.openlibrary import OpenLibraryStrategy
from libris.metadata.openlibrary_parser import build_cover_url, parse_search_results
from libris.metadata.provider import DiscoveryStrategy, usable_author
from libris.metadata.storefront import (
    StorefrontStrategy,
    build_search_url,
    parse_storefront_results,
)
from tests.fixtures.discovery_responses import (
    GOOGLE_BOOKS_RESPONSE,
    SEARCH_RESPONSE,
    SEARCH_RESPONSE_EMPTY,
    SEARCH_RESPONSE_NO_COVERS,
    SEARCH_RESPONSE_TITLE_ONLY,
    STOREFRONT_HTML,
    STOREFRONT_HTML_NO_RESULTS,
)
from tests.fixtures.fakes import FakeHttpClient
from tests.fixtures.images import make_image

ROSE = "The Name of the Rose"
ECO = "Umberto Eco"


class TestUsableAuthor:
    def test_placeholders_and_short_names_are_dropped(self) -> None:
        assert usable_author(None) is None
        assert usable_author("Al") is None
        assert usable_author("Unknown") is None
        assert usable_author("bilinmiyor") is None

    def test_real_author_is_kept(self) -> None:
        assert usable_author("  Umberto Eco ") == ECO


class TestProtocol:
    def test_strategies_satisfy_protocol(self) -> None:
        http = FakeHttpClient()
        for strategy in (
            OpenLibraryStrategy(http),
            GoogleBooksStrategy(http),
            StorefrontStrategy(http),
        ):
            assert isinstance(strategy, DiscoveryStrategy)


class TestOpenLibraryParsing:
    def test_cover_url(self) -> None:
        assert build_cover_url(240727) == "https://covers.openlibrary.org/b/id/240727-L.jpg"
        assert build_cover_url(1, "M").endswith("/1-M.jpg")

    def test_parse_search_results(self) -> None:
        candidates = parse_search_results(SEARCH_RESPONSE)
        assert [c.title for c in candidates][0] == ROSE
        assert candidates[0].authors == [ECO]
        assert candidates[2].cover_url is None
        assert all(c.score == 0 for c in candidates)


class TestOpenLibraryStrategy:
    """Tests for OpenLibraryStrategy."""

    def test_picks_best_covered_candidate(self) -> None:
        http = FakeHttpClient({"openlibrary.org/search.json": SEARCH_RESPONSE})
        candidate = asyncio.run(OpenLibraryStrategy(http).find(ROSE, ECO))
        assert candidate is not None
        assert candidate.score == 100
        assert candidate.cover_url == build_cover_url(240727)

    def test_sends_title_limit_and_usable_author(self) -> None:
        http = FakeHttpClient({"openlibrary.org/search.json": SEARCH_RESPONSE_EMPTY})
        asyncio.run(OpenLibraryStrategy(http).find(ROSE, ECO))
        _, params = http.request_log[0]
        assert params == {"title": ROSE, "limit": "10", "author": ECO}

    def test_placeholder_author_not_sent(self) -> None:
        http = FakeHttpClient({"openlibrary.org/search.json": SEARCH_RESPONSE_EMPTY})
        asyncio.run(OpenLibraryStrategy(http).find(ROSE, "Unknown"))
        _, params = http.request_log[0]
        assert "author" not in params

    def test_title_match_alone_is_enough(self) -> None:
        http = FakeHttpClient({"openlibrary.org/search.json": SEARCH_RESPONSE_TITLE_ONLY})
        candidate = asyncio.run(OpenLibraryStrategy(http).find(ROSE, ECO))
        assert candidate is not None
        assert candidate.score == 50
        assert candidate.cover_url == build_cover_url(222)

    def test_below_threshold_is_rejected(self) -> None:
        http = FakeHttpClient({"openlibrary.org/search.json": SEARCH_RESPONSE})
        assert asyncio.run(OpenLibraryStrategy(http).find("Dune", "Frank Herbert")) is None

    def test_candidates_without_covers_are_ignored(self) -> None:
        http = FakeHttpClient({"openlibrary.org/search.json": SEARCH_RESPONSE_NO_COVERS})
        assert asyncio.run(OpenLibraryStrategy(http).find(ROSE, ECO)) is None

    def test_fetch_failure_yields_nothing(self) -> None:
        http = FakeHttpClient({"openlibrary.org": MetadataFetchError("HTTP 500")})
        assert asyncio.run(OpenLibraryStrategy(http).find(ROSE, ECO)) is None


class TestGoogleBooks:
    """Tests for GoogleBooksStrategy and its helpers."""

    def test_build_query(self) -> None:
        assert build_query("Dune") == 'intitle:"Dune"'
        assert build_query("Dune", "Frank Herbert") == 'intitle:"Dune" inauthor:"Frank Herbert"'
        assert build_query("Dune", "Unknown") == 'intitle:"Dune"'

    def test_parse_volumes_upgrades_thumbnails(self) -> None:
        candidates = parse_volumes(GOOGLE_BOOKS_RESPONSE)
        cover = candidates[1].cover_url
        assert cover.startswith("https://")
        assert "edge=curl" not in cover
        assert candidates[2].cover_url is None

    def test_first_scoring_candidate_with_loading_image(self) -> None:
        http = FakeHttpClient(
            {
                "googleapis.com/books": GOOGLE_BOOKS_RESPONSE,
                "id=abc": make_image((128, 192)),
            }
        )
        candidate = asyncio.run(GoogleBooksStrategy(http).find(ROSE, ECO))
        assert candidate is not None
        assert candidate.title == ROSE
        assert candidate.score == 100
        # The zero-score first hit never had its image fetched.
        assert not any("id=zzz" in url for url in http.urls)

    def test_tiny_image_is_rejected(self) -> None:
        http = FakeHttpClient(
            {
                "googleapis.com/books": GOOGLE_BOOKS_RESPONSE,
                "id=abc": make_image((5, 5)),
            }
        )
        assert asyncio.run(GoogleBooksStrategy(http).find(ROSE, ECO)) is None

    def test_sends_exact_phrase_query(self) -> None:
        http = FakeHttpClient({"googleapis.com/books": {"totalItems": 0}})
        asyncio.run(GoogleBooksStrategy(http).find(ROSE, ECO))
        _, params = http.request_log[0]
        assert params["q"] == f'intitle:"{ROSE}" inauthor:"{ECO}"'
        assert params["maxResults"] == "10"

    def test_fetch_failure_yields_nothing(self) -> None:
        http = FakeHttpClient({"googleapis.com": MetadataFetchError("HTTP 403")})
        assert asyncio.run(GoogleBooksStrategy(http).find(ROSE, ECO)) is None


class TestStorefront:
    """Tests for the storefront scrape."""

    def test_search_url(self) -> None:
        url = build_search_url("Gülün Adı", ECO)
        assert "route=product%2Fsearch" in url
        assert "Umberto+Eco" in url

    def test_parse_first_result_block(self) -> None:
        candidate = parse_storefront_results(STOREFRONT_HTML)
        assert candidate is not None
        assert candidate.cover_url == "https://img.kitapyurdu.com/v1/getImage/fn:1/wh:true/wi:220"
        assert candidate.authors == [ECO]
        assert candidate.title == "Gülün Adı"

    def test_no_result_block(self) -> None:
        assert parse_storefront_results(STOREFRONT_HTML_NO_RESULTS) is None

    def test_relative_image_is_rejected(self) -> None:
        html = '<div class="product-cr"><div class="image"><img src="/a.jpg"></div></div>'
        assert parse_storefront_results(html) is None

    def test_protocol_relative_image_gets_https(self) -> None:
        html = (
            '<div class="product-cr"><div class="image">'
            '<img src="//cdn.example/a.jpg"></div></div>'
        )
        candidate = parse_storefront_results(html)
        assert candidate.cover_url == "https://cdn.example/a.jpg"
        assert candidate.authors == []

    def test_falls_back_to_secondary_proxy(self) -> None:
        http = FakeHttpClient(
            {
                "allorigins": MetadataFetchError("HTTP 522"),
                "corsproxy.io": STOREFRONT_HTML,
            }
        )
        candidate = asyncio.run(StorefrontStrategy(http).find("Gülün Adı", ECO))
        assert candidate is not None
        assert candidate.source == "storefront"
        assert candidate.score == 100
        assert "allorigins" in http.urls[0]
        assert "corsproxy.io" in http.urls[1]

    def test_all_proxies_fail(self) -> None:
        http = FakeHttpClient(
            {
                "allorigins": MetadataFetchError("HTTP 522"),
                "corsproxy.io": MetadataFetchError("HTTP 500"),
            }
        )
        assert asyncio.run(StorefrontStrategy(http).find("Gülün Adı", ECO)) is None
