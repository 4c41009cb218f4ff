# ABOUTME: Async HTTP client abstraction for discovery sources and the remote backend.
# ABOUTME: Provides retry with backoff, per-call timeouts, and injectable transport for testing.

import asyncio
import logging
from typing import Any, Protocol, runtime_checkable

import httpx

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
_USER_AGENT = "libris/0.1.0"


class MetadataFetchError(Exception):
    """Raised when an HTTP request to an external source fails."""


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for the GET operations discovery strategies rely on."""

    async def get_json(
        self, url: str, params: dict[str, str] | None = None
    ) -> dict[str, Any]: ...

    async def get_text(
        self, url: str, params: dict[str, str] | None = None
    ) -> str: ...

    async def get_bytes(self, url: str, *, timeout: float | None = None) -> bytes: ...


class LibrisHttpClient:
    """HTTP client with retry for external metadata and cover lookups.

    Wraps httpx.AsyncClient with retry logic for transient failures
    (429, 5xx). Must be closed with ``aclose()`` or used as an async
    context manager.
    """

    def __init__(
        self,
        *,
        timeout: float = 15.0,
        max_retries: int = 1,
        retry_delay: float = 0.5,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        client_kwargs: dict[str, Any] = {
            "headers": {"User-Agent": _USER_AGENT},
            "timeout": timeout,
            "follow_redirects": True,
        }
        if transport is not None:
            client_kwargs["transport"] = transport
        self._client = httpx.AsyncClient(**client_kwargs)
        self._max_retries = max_retries
        self._retry_delay = retry_delay

    async def __aenter__(self) -> "LibrisHttpClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_json(
        self, url: str, params: dict[str, str] | None = None
    ) -> dict[str, Any]:
        """GET a URL and decode the JSON body.

        Raises:
            MetadataFetchError: On HTTP errors, exhausted retries, or a body
                that is not JSON.
        """
        response = await self._get(url, params=params)
        try:
            return response.json()
        except ValueError as exc:
            raise MetadataFetchError(f"Invalid JSON from {url}: {exc}") from exc

    async def get_text(self, url: str, params: dict[str, str] | None = None) -> str:
        """GET a URL and return the decoded body text."""
        response = await self._get(url, params=params)
        return response.text

    async def get_bytes(self, url: str, *, timeout: float | None = None) -> bytes:
        """GET a URL and return the raw body, optionally with a tighter timeout."""
        response = await self._get(url, timeout=timeout)
        return response.content

    async def _get(
        self,
        url: str,
        *,
        params: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        """Send a GET request with retry.

        Raises:
            MetadataFetchError: On non-retryable HTTP errors or exhausted retries.
        """
        request_kwargs: dict[str, Any] = {"params": params}
        if timeout is not None:
            request_kwargs["timeout"] = timeout

        attempts = 1 + self._max_retries
        last_status = 0
        for attempt in range(attempts):
            try:
                response = await self._client.get(url, **request_kwargs)
                last_status = response.status_code
            except httpx.HTTPError as exc:
                raise MetadataFetchError(f"Request failed: {url}: {exc}") from exc

            if response.status_code == 200:
                return response

            if response.status_code not in _RETRYABLE_STATUS_CODES:
                raise MetadataFetchError(f"HTTP {response.status_code} from {url}")

            if attempt < attempts - 1:
                delay = self._retry_delay * (2**attempt)
                logger.warning(
                    "HTTP %d from %s, retrying in %.1fs (attempt %d/%d)",
                    response.status_code,
                    url,
                    delay,
                    attempt + 1,
                    self._max_retries,
                )
                await asyncio.sleep(delay)

        raise MetadataFetchError(f"HTTP {last_status} from {url} after {attempts} attempts")
