# ABOUTME: Remote metadata backend: a PostgREST-style HTTP table of book rows.
# ABOUTME: Permission refusals are raised as RemotePermissionError so callers can fall back.

import logging
from typing import Any, Protocol, runtime_checkable

import httpx

from libris.db.mapping import BookRecord, record_to_remote, remote_to_record

logger = logging.getLogger(__name__)

_PERMISSION_STATUS_CODES = {401, 403}
# Postgres "insufficient_privilege", returned when a row-level policy refuses a write.
_PERMISSION_ERROR_CODE = "42501"


class RemoteBackendError(Exception):
    """Raised when the remote backend fails or refuses a request."""


class RemotePermissionError(RemoteBackendError):
    """Raised when the remote backend refuses a request for the current identity."""


@runtime_checkable
class RemoteBackend(Protocol):
    """Protocol for the hosted metadata table."""

    async def upsert(self, record: BookRecord) -> None: ...

    async def fetch_all(self, user_id: str) -> list[BookRecord]: ...

    async def delete(self, book_id: str) -> int: ...


class RestBackend:
    """Talks to a ``/rest/v1/<table>`` endpoint with an API key and bearer token.

    Only metadata rows go here; file and cover bytes stay in the local store.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        access_token: str | None = None,
        table: str = "books",
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {access_token or api_key}",
            "Content-Type": "application/json",
        }
        client_kwargs: dict[str, Any] = {
            "base_url": base_url.rstrip("/"),
            "headers": headers,
            "timeout": timeout,
        }
        if transport is not None:
            client_kwargs["transport"] = transport
        self._client = httpx.AsyncClient(**client_kwargs)
        self._path = f"/rest/v1/{table}"

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, self._path, **kwargs)
        except httpx.HTTPError as exc:
            raise RemoteBackendError(f"{method} {self._path} failed: {exc}") from exc
        _raise_for_status(method, self._path, response)
        return response

    async def upsert(self, record: BookRecord) -> None:
        await self._request(
            "POST",
            params={"on_conflict": "id"},
            json=[record_to_remote(record)],
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
        )

    async def fetch_all(self, user_id: str) -> list[BookRecord]:
        response = await self._request(
            "GET",
            params={"select": "*", "user_id": f"eq.{user_id}", "order": "created_at.desc"},
        )
        return [remote_to_record(row) for row in response.json()]

    async def delete(self, book_id: str) -> int:
        """Delete a row and return how many rows the backend removed."""
        response = await self._request(
            "DELETE",
            params={"id": f"eq.{book_id}"},
            headers={"Prefer": "return=representation"},
        )
        try:
            return len(response.json())
        except ValueError:
            return 0


def _error_code(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    return body.get("code") if isinstance(body, dict) else None


def _raise_for_status(method: str, path: str, response: httpx.Response) -> None:
    if response.is_success:
        return
    message = f"{method} {path}: HTTP {response.status_code}"
    if (
        response.status_code in _PERMISSION_STATUS_CODES
        or _error_code(response) == _PERMISSION_ERROR_CODE
    ):
        raise RemotePermissionError(message)
    raise RemoteBackendError(message)
