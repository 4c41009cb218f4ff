# ABOUTME: BookRecord, the library's unit of state, and its row/JSON conversions.
# ABOUTME: Local rows keep everything; remote payloads drop transient pipeline fields.

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from libris.metadata.types import (
    PLACEHOLDER_COVER_URL,
    BookFormat,
    EnrichmentState,
    is_placeholder_cover,
)

LOCAL_SCHEME = "local://"
STORAGE_LOCAL = "local"
STORAGE_REMOTE = "remote"


def blob_ref(key: str) -> str:
    """Opaque handle for a blob in the local store."""
    return f"{LOCAL_SCHEME}{key}"


def blob_key(ref: str) -> str | None:
    """Inverse of blob_ref; None for anything that is not a local handle."""
    if ref and ref.startswith(LOCAL_SCHEME):
        return ref[len(LOCAL_SCHEME):]
    return None


def cover_blob_key(book_id: str) -> str:
    return f"cover_{book_id}"


def utc_now() -> str:
    return datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%S.%f")


@dataclass
class BookRecord:
    """A book in the library.

    Starts life as a placeholder and is refined in place by one background
    enrichment pass. ``enrichment_state``, ``generation`` and ``storage``
    describe the pipeline, not the book, and never leave this process
    except into the local store.
    """

    id: str
    title: str
    author: str
    format: BookFormat
    cover_ref: str = PLACEHOLDER_COVER_URL
    file_ref: str = ""
    user_id: str | None = None
    progress: dict[str, Any] = field(default_factory=dict)
    enrichment_state: EnrichmentState = EnrichmentState.PENDING
    generation: int = 0
    storage: str = STORAGE_LOCAL
    created_at: str = field(default_factory=utc_now)
    updated_at: str = field(default_factory=utc_now)

    @property
    def has_placeholder_cover(self) -> bool:
        return is_placeholder_cover(self.cover_ref)

    @property
    def cover_is_local(self) -> bool:
        return blob_key(self.cover_ref) is not None

    def touch(self) -> None:
        self.updated_at = utc_now()


def record_to_row(record: BookRecord) -> dict[str, Any]:
    """Convert a BookRecord to a dict suitable for INSERT into the local store."""
    return {
        "id": record.id,
        "user_id": record.user_id,
        "title": record.title,
        "author": record.author,
        "format": record.format.value,
        "cover_ref": record.cover_ref,
        "file_ref": record.file_ref,
        "progress": json.dumps(record.progress),
        "enrichment_state": record.enrichment_state.value,
        "created_at": record.created_at,
        "updated_at": record.updated_at,
    }


def row_to_record(row: Any) -> BookRecord:
    """Convert a local database row (dict-like) back to a BookRecord."""
    return BookRecord(
        id=row["id"],
        user_id=row["user_id"],
        title=row["title"],
        author=row["author"] or "",
        format=BookFormat(row["format"]),
        cover_ref=row["cover_ref"],
        file_ref=row["file_ref"],
        progress=json.loads(row["progress"]) if row["progress"] else {},
        enrichment_state=EnrichmentState(row["enrichment_state"]),
        storage=STORAGE_LOCAL,
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def record_to_remote(record: BookRecord) -> dict[str, Any]:
    """Payload for the remote backend. Pipeline-only fields are left out."""
    return {
        "id": record.id,
        "user_id": record.user_id,
        "title": record.title,
        "author": record.author,
        "format": record.format.value,
        "cover_url": record.cover_ref,
        "file_url": record.file_ref,
        "progress": record.progress,
        "created_at": record.created_at,
        "updated_at": record.updated_at,
    }


def remote_to_record(data: dict[str, Any]) -> BookRecord:
    """Build a BookRecord from a remote row. Remote rows are always complete."""
    return BookRecord(
        id=data["id"],
        user_id=data.get("user_id"),
        title=data.get("title") or "",
        author=data.get("author") or "",
        format=BookFormat(data.get("format") or BookFormat.REFLOWABLE.value),
        cover_ref=data.get("cover_url") or PLACEHOLDER_COVER_URL,
        file_ref=data.get("file_url") or blob_ref(data["id"]),
        progress=data.get("progress") or {},
        enrichment_state=EnrichmentState.COMPLETE,
        storage=STORAGE_REMOTE,
        created_at=data.get("created_at") or utc_now(),
        updated_at=data.get("updated_at") or utc_now(),
    )
