# ABOUTME: Core data structures shared by the ingestion pipeline.
# ABOUTME: Uploaded files, ingest hints, extraction results, and the Lookup result type.

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Generic, TypeVar

T = TypeVar("T")

# Every record starts with this cover; any other value counts as confirmed.
PLACEHOLDER_COVER_URL = "https://placehold.co/400x600/1e293b/e2e8f0?text=No+Cover"
PLACEHOLDER_COVER_HOST = "placehold.co"

UNKNOWN_AUTHOR = "Unknown"
UNTITLED = "Untitled"


def is_placeholder_cover(cover_ref: str | None) -> bool:
    """Whether a cover reference is empty or points at the placeholder host."""
    if not cover_ref:
        return True
    return PLACEHOLDER_COVER_HOST in cover_ref


class BookFormat(str, Enum):
    """Container format of an ingested book."""

    REFLOWABLE = "reflowable"
    FIXED_PAGE = "fixed-page"


class EnrichmentState(str, Enum):
    """Where a record is in its single background enrichment pass."""

    PENDING = "pending"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass(frozen=True)
class UploadedFile:
    """A raw book file as handed over by the caller, held in memory."""

    name: str
    data: bytes
    content_type: str | None = None

    @classmethod
    def from_path(cls, path: Path, content_type: str | None = None) -> "UploadedFile":
        return cls(name=path.name, data=path.read_bytes(), content_type=content_type)

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class IngestHints:
    """Caller-supplied metadata. Any field set here pre-empts extraction."""

    title: str | None = None
    author: str | None = None
    cover_url: str | None = None


@dataclass(frozen=True)
class ExtractedMetadata:
    """Title/author read from inside a book file. Either may be missing."""

    title: str | None = None
    author: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.title and not self.author


@dataclass(frozen=True)
class Lookup(Generic[T]):
    """Outcome of a best-effort lookup.

    Keeps "nothing there" and "the attempt blew up" apart even though the
    pipeline treats both as absence.
    """

    value: T | None = None
    error: Exception | None = None

    @classmethod
    def found(cls, value: T) -> "Lookup[T]":
        return cls(value=value)

    @classmethod
    def missing(cls) -> "Lookup[T]":
        return cls()

    @classmethod
    def failed(cls, error: Exception) -> "Lookup[T]":
        return cls(error=error)

    @property
    def is_found(self) -> bool:
        return self.value is not None

    @property
    def is_failure(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class CoverResult:
    """Answer from the discovery resolver. Always has a URL."""

    url: str
    author: str | None = None
    source: str = "placeholder"

    @property
    def is_placeholder(self) -> bool:
        return is_placeholder_cover(self.url)
