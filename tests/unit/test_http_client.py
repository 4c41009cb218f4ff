# ABOUTME: Unit tests for the async HTTP client abstraction.
# ABOUTME: Tests the HttpClient protocol, LibrisHttpClient retries, and error handling.

import asyncio

import httpx
import pytest

from libris.metadata.http import HttpClient, LibrisHttpClient, MetadataFetchError


class FakeTransport:
    """Builds an httpx.MockTransport that replays canned responses in order."""

    def __init__(self, responses: list[httpx.Response] | None = None) -> None:
        self._responses = list(responses or [])
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self._responses:
            return self._responses.pop(0)
        return httpx.Response(200, json={"ok": True})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def _run(fake: FakeTransport, call):
    async def go():
        async with LibrisHttpClient(retry_delay=0.0, transport=fake.transport()) as client:
            return await call(client)

    return asyncio.run(go())


class TestHttpClientProtocol:
    def test_libris_client_satisfies_protocol(self) -> None:
        async def go() -> bool:
            async with LibrisHttpClient() as client:
                return isinstance(client, HttpClient)

        assert asyncio.run(go())


class TestLibrisHttpClient:
    """Tests for LibrisHttpClient."""

    def test_get_json_returns_body_and_sends_params(self) -> None:
        fake = FakeTransport()
        result = _run(fake, lambda c: c.get_json("https://example.com/api", params={"q": "dune"}))
        assert result == {"ok": True}
        assert fake.requests[0].url.params["q"] == "dune"

    def test_user_agent_header(self) -> None:
        fake = FakeTransport()
        _run(fake, lambda c: c.get_json("https://example.com/api"))
        assert fake.requests[0].headers["user-agent"].startswith("libris/")

    def test_get_text_and_bytes(self) -> None:
        fake = FakeTransport(
            [httpx.Response(200, text="<html></html>"), httpx.Response(200, content=b"\x89PNG")]
        )

        async def call(client: LibrisHttpClient) -> tuple[str, bytes]:
            text = await client.get_text("https://example.com/page")
            data = await client.get_bytes("https://example.com/img.png", timeout=5.0)
            return text, data

        assert _run(fake, call) == ("<html></html>", b"\x89PNG")

    def test_http_error_raises_metadata_fetch_error(self) -> None:
        fake = FakeTransport([httpx.Response(404, json={"error": "not found"})])
        with pytest.raises(MetadataFetchError, match="404"):
            _run(fake, lambda c: c.get_json("https://example.com/missing"))
        assert len(fake.requests) == 1

    def test_retries_transient_errors(self) -> None:
        fake = FakeTransport([httpx.Response(503), httpx.Response(200, json={"ok": 1})])
        assert _run(fake, lambda c: c.get_json("https://example.com/flaky")) == {"ok": 1}
        assert len(fake.requests) == 2

    def test_gives_up_after_retries(self) -> None:
        fake = FakeTransport([httpx.Response(503), httpx.Response(429)])
        with pytest.raises(MetadataFetchError, match="after 2 attempts"):
            _run(fake, lambda c: c.get_json("https://example.com/down"))

    def test_invalid_json(self) -> None:
        fake = FakeTransport([httpx.Response(200, text="not json")])
        with pytest.raises(MetadataFetchError, match="Invalid JSON"):
            _run(fake, lambda c: c.get_json("https://example.com/html"))

    def test_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async def go() -> None:
            transport = httpx.MockTransport(handler)
            async with LibrisHttpClient(retry_delay=0.0, transport=transport) as client:
                await client.get_json("https://example.com/unreachable")

        with pytest.raises(MetadataFetchError, match="Request failed"):
            asyncio.run(go())
