# ABOUTME: Ingestion coordinator: placeholder record now, one background enrichment pass later.
# ABOUTME: Tracks enrichment tasks per record so deletes cancel them and stale results are dropped.

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable

from libris.core.reconciler import Reconciler
from libris.db.mapping import BookRecord, blob_ref, cover_blob_key
from libris.formats.extractor import detect_format, extract_cover, extract_metadata, validate_file
from libris.metadata.normalizer import (
    clean_author,
    clean_display_text,
    hint_author,
    parse_filename,
    tidy_hint,
)
from libris.metadata.resolver import CoverResolver
from libris.metadata.types import (
    PLACEHOLDER_COVER_URL,
    UNKNOWN_AUTHOR,
    BookFormat,
    CoverResult,
    EnrichmentState,
    ExtractedMetadata,
    IngestHints,
    Lookup,
    UploadedFile,
    is_placeholder_cover,
)

logger = logging.getLogger(__name__)

RefreshListener = Callable[[BookRecord], None]
MetadataExtractor = Callable[[UploadedFile, BookFormat], Awaitable[Lookup[ExtractedMetadata]]]
CoverExtractor = Callable[[UploadedFile, BookFormat], Awaitable[Lookup[bytes]]]


class StaleEnrichment(Exception):
    """Raised inside an enrichment task whose record was cancelled or deleted."""


def _is_placeholder_author(author: str) -> bool:
    return not author or author == UNKNOWN_AUTHOR


class IngestionCoordinator:
    """Turns uploaded files into library records.

    ``ingest`` returns as soon as a placeholder record is persisted. A
    background task then reads the file's own metadata and cover, asks the
    cover resolver only when the file has no usable cover, merges what it
    found into the record, persists it again, and notifies subscribers.

    Each record carries a generation number. Cancelling a record bumps it,
    and the task checks its generation before every mutation, so a task
    that outlives its record never writes.
    """

    def __init__(
        self,
        reconciler: Reconciler,
        resolver: CoverResolver,
        *,
        metadata_extractor: MetadataExtractor = extract_metadata,
        cover_extractor: CoverExtractor = extract_cover,
    ) -> None:
        self._reconciler = reconciler
        self._resolver = resolver
        self._extract_metadata = metadata_extractor
        self._extract_cover = cover_extractor
        self._listeners: list[RefreshListener] = []
        self._tasks: dict[str, asyncio.Task[None]] = {}
        self._generations: dict[str, int] = {}

    def subscribe(self, listener: RefreshListener) -> None:
        """Register a callback that receives each record after enrichment."""
        self._listeners.append(listener)

    @property
    def pending(self) -> list[str]:
        return list(self._tasks)

    async def ingest(self, file: UploadedFile, hints: IngestHints | None = None) -> BookRecord:
        """Create and persist a placeholder record, then enrich it in the background.

        Raises:
            CorruptBookError: If the file cannot be opened as its format.
        """
        hints = hints or IngestHints()
        book_format = detect_format(file)
        validate_file(file, book_format)

        hints = IngestHints(
            title=tidy_hint(hints.title) or None,
            author=hint_author(hints.author) or None,
            cover_url=tidy_hint(hints.cover_url) or None,
        )
        parsed = parse_filename(file.name)
        title = hints.title or parsed.title
        author = hints.author or parsed.author or UNKNOWN_AUTHOR

        book_id = uuid.uuid4().hex
        record = BookRecord(
            id=book_id,
            title=title,
            author=author,
            format=book_format,
            cover_ref=hints.cover_url or PLACEHOLDER_COVER_URL,
            file_ref=blob_ref(book_id),
            user_id=self._reconciler.session.user_id,
        )

        self._reconciler.store_blob(book_id, file.data, file.content_type)
        try:
            await self._reconciler.write(record)
        except Exception:
            self._reconciler.delete_blob(book_id)
            raise
        logger.info("Added %s as %s (%s)", file.name, book_id, book_format.value)

        record.generation = self._generations.get(book_id, 0) + 1
        self._generations[book_id] = record.generation
        task = asyncio.create_task(
            self._enrich(record, file, hints, record.generation), name=f"enrich-{book_id}"
        )
        self._tasks[book_id] = task
        task.add_done_callback(lambda t, key=book_id: self._forget(key, t))
        return record

    def _forget(self, book_id: str, task: asyncio.Task[None]) -> None:
        if self._tasks.get(book_id) is task:
            del self._tasks[book_id]

    def cancel(self, book_id: str) -> bool:
        """Stop enriching a record. Returns whether a task was still running."""
        self._generations[book_id] = self._generations.get(book_id, 0) + 1
        task = self._tasks.pop(book_id, None)
        if task is None or task.done():
            return False
        task.cancel()
        logger.debug("Cancelled enrichment for %s", book_id)
        return True

    async def delete(self, book_id: str) -> None:
        """Cancel any enrichment for the record, then delete it everywhere."""
        self.cancel(book_id)
        await self._reconciler.delete(book_id)

    async def join(self) -> None:
        """Wait for every in-flight enrichment task to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)

    def _check_current(self, record: BookRecord, generation: int) -> None:
        if self._generations.get(record.id) != generation:
            raise StaleEnrichment(record.id)

    async def _enrich(
        self, record: BookRecord, file: UploadedFile, hints: IngestHints, generation: int
    ) -> None:
        try:
            await self._run_enrichment(record, file, hints, generation)
        except StaleEnrichment:
            logger.info("Discarding enrichment for %s, the record has moved on", record.id)
        except asyncio.CancelledError:
            logger.debug("Enrichment for %s cancelled", record.id)
            raise
        except Exception:
            logger.exception("Enrichment for %s failed", record.id)
            if self._generations.get(record.id) == generation:
                record.enrichment_state = EnrichmentState.FAILED
                try:
                    await self._reconciler.write(record)
                except Exception:
                    logger.exception("Could not record failed enrichment for %s", record.id)
                self._notify(record)

    async def _run_enrichment(
        self, record: BookRecord, file: UploadedFile, hints: IngestHints, generation: int
    ) -> None:
        found_title: str | None = None
        found_author: str | None = None
        found_cover: str | None = None

        if not (hints.title and hints.author):
            metadata = await self._extract_metadata(file, record.format)
            if metadata.is_found:
                if not hints.title:
                    found_title = clean_display_text(metadata.value.title or "")
                if not hints.author:
                    found_author = clean_author(metadata.value.author or "")

        if not hints.cover_url:
            cover = await self._extract_cover(file, record.format)
            self._check_current(record, generation)
            if cover.is_found:
                key = cover_blob_key(record.id)
                self._reconciler.store_blob(key, cover.value)
                found_cover = blob_ref(key)
                logger.debug("Using embedded cover for %s", record.id)
            else:
                result = await self._discover(
                    found_title or record.title, found_author or record.author
                )
                if not result.is_placeholder:
                    found_cover = result.url
                    if not hints.author and not found_author and result.author:
                        found_author = clean_author(result.author)

        self._check_current(record, generation)
        self._merge(record, found_title, found_author, found_cover)
        record.enrichment_state = EnrichmentState.COMPLETE
        await self._reconciler.write(record)
        self._notify(record)

    async def _discover(self, title: str, author: str) -> CoverResult:
        query_author = None if _is_placeholder_author(author) else author
        try:
            return await self._resolver.find_cover(title, query_author)
        except Exception as exc:
            logger.warning("Cover discovery for %s failed: %s", title, exc)
            return CoverResult(url=PLACEHOLDER_COVER_URL)

    @staticmethod
    def _merge(
        record: BookRecord,
        title: str | None,
        author: str | None,
        cover_ref: str | None,
    ) -> None:
        if title and title != record.title:
            logger.debug("Title for %s: %r -> %r", record.id, record.title, title)
            record.title = title
        if author and author != record.author:
            logger.debug("Author for %s: %r -> %r", record.id, record.author, author)
            record.author = author
        if cover_ref and not is_placeholder_cover(cover_ref):
            record.cover_ref = cover_ref

    def _notify(self, record: BookRecord) -> None:
        for listener in self._listeners:
            try:
                listener(record)
            except Exception:
                logger.exception("Refresh listener failed for %s", record.id)
