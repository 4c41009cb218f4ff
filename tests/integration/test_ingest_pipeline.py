# ABOUTME: Integration tests for ingestion with the real EPUB/PDF readers and a SQLite store.
# ABOUTME: Only cover discovery is faked; extraction, merging, and persistence run for real.

import asyncio
from pathlib import Path

from libris.core.ingest import IngestionCoordinator
from libris.core.reconciler import Reconciler
from libris.db.mapping import BookRecord
from libris.db.store import LocalStore
from libris.metadata.images import image_dimensions
from libris.metadata.types import (
    PLACEHOLDER_COVER_URL,
    BookFormat,
    CoverResult,
    EnrichmentState,
    UploadedFile,
)
from tests.fixtures.fakes import FakeResolver

REMOTE_COVER = CoverResult(
    url="https://covers.example/island.jpg", author="Umberto Eco", source="googlebooks"
)


def _ingest(store: LocalStore, resolver: FakeResolver, path: Path) -> BookRecord:
    async def go() -> BookRecord:
        coordinator = IngestionCoordinator(Reconciler(store), resolver)
        record = await coordinator.ingest(UploadedFile.from_path(path))
        await coordinator.join()
        return record

    return asyncio.run(go())


class TestEpubIngest:
    """EPUB files through the whole pipeline."""

    def test_declared_cover_is_kept_locally(
        self, store: LocalStore, sample_epub: Path, cover_bytes: bytes
    ) -> None:
        resolver = FakeResolver(REMOTE_COVER)
        record = _ingest(store, resolver, sample_epub)

        assert resolver.calls == []
        stored = store.get_book(record.id)
        assert stored.format is BookFormat.REFLOWABLE
        assert stored.title == "The Name of the Rose"
        assert stored.author == "Umberto Eco"
        assert stored.cover_ref == f"local://cover_{record.id}"
        assert stored.enrichment_state is EnrichmentState.COMPLETE
        assert store.get_blob(f"cover_{record.id}") == cover_bytes

    def test_manifest_cover_is_found(
        self, store: LocalStore, manifest_cover_epub: Path, cover_bytes: bytes
    ) -> None:
        resolver = FakeResolver(REMOTE_COVER)
        record = _ingest(store, resolver, manifest_cover_epub)

        assert resolver.calls == []
        assert record.title == "Foucault's Pendulum"
        assert store.get_blob(f"cover_{record.id}") == cover_bytes

    def test_coverless_epub_asks_the_resolver(
        self, store: LocalStore, coverless_epub: Path
    ) -> None:
        resolver = FakeResolver(REMOTE_COVER)
        record = _ingest(store, resolver, coverless_epub)

        assert resolver.calls == [("The Island of the Day Before", "Umberto Eco")]
        stored = store.get_book(record.id)
        assert stored.cover_ref == REMOTE_COVER.url
        assert stored.title == "The Island of the Day Before"
        assert store.get_blob(f"cover_{record.id}") is None

    def test_filename_author_fills_missing_creator(
        self, store: LocalStore, anonymous_epub: Path
    ) -> None:
        resolver = FakeResolver()
        record = _ingest(store, resolver, anonymous_epub)

        assert record.title == "Untitled Manuscript"
        assert record.author == "Umberto Eco"
        assert record.cover_ref == PLACEHOLDER_COVER_URL
        assert resolver.calls == [("Untitled Manuscript", "Umberto Eco")]


class TestPdfIngest:
    """PDF files through the whole pipeline."""

    def test_illustrated_first_page_becomes_the_cover(
        self, store: LocalStore, colorful_pdf: Path
    ) -> None:
        resolver = FakeResolver(REMOTE_COVER)
        record = _ingest(store, resolver, colorful_pdf)

        assert resolver.calls == []
        assert record.format is BookFormat.FIXED_PAGE
        assert record.title == "Dune"
        assert record.author == "Frank Herbert"
        cover = store.get_blob(f"cover_{record.id}")
        assert cover is not None
        assert image_dimensions(cover) is not None

    def test_text_only_pdf_uses_filename_and_discovery(
        self, store: LocalStore, text_pdf: Path
    ) -> None:
        resolver = FakeResolver(REMOTE_COVER)
        record = _ingest(store, resolver, text_pdf)

        assert resolver.calls == [("Children of Dune", "Frank Herbert")]
        assert record.title == "Children of Dune"
        assert record.cover_ref == REMOTE_COVER.url


class TestDeleteAfterIngest:
    """Deleting an ingested book releases everything stored for it."""

    def test_delete_releases_file_cover_and_drawings(
        self, store: LocalStore, sample_epub: Path
    ) -> None:
        async def go() -> str:
            reconciler = Reconciler(store)
            coordinator = IngestionCoordinator(reconciler, FakeResolver())
            record = await coordinator.ingest(UploadedFile.from_path(sample_epub))
            await coordinator.join()
            reconciler.save_drawing(record.id, "page-1", "[]")
            await coordinator.delete(record.id)
            return record.id

        book_id = asyncio.run(go())
        assert store.get_book(book_id) is None
        assert store.get_blob(book_id) is None
        assert store.get_blob(f"cover_{book_id}") is None
        assert store.scan_drawings(f"{book_id}-") == {}
