# ABOUTME: Unit tests for EPUB metadata and cover extraction.
# ABOUTME: Uses EPUBs built with ebooklib, including one whose cover is only in the manifest.

import io
import zipfile
from pathlib import Path

import pytest

from libris.formats.epub import read_epub_cover, read_epub_metadata, validate_epub
from libris.formats.errors import CorruptBookError, EpubReadError


class TestReadEpubMetadata:
    """Tests for read_epub_metadata."""

    def test_reads_title_and_author(self, sample_epub: Path) -> None:
        meta = read_epub_metadata(sample_epub.read_bytes())
        assert meta.title == "The Name of the Rose"
        assert meta.author == "Umberto Eco"

    def test_missing_creator(self, anonymous_epub: Path) -> None:
        meta = read_epub_metadata(anonymous_epub.read_bytes())
        assert meta.title == "Untitled Manuscript"
        assert meta.author is None

    def test_corrupt_file_raises(self, corrupt_epub: Path) -> None:
        with pytest.raises(EpubReadError):
            read_epub_metadata(corrupt_epub.read_bytes())


class TestReadEpubCover:
    """Tests for read_epub_cover."""

    def test_declared_cover(self, sample_epub: Path, cover_bytes: bytes) -> None:
        assert read_epub_cover(sample_epub.read_bytes()) == cover_bytes

    def test_manifest_scan_finds_undeclared_cover(
        self, manifest_cover_epub: Path, cover_bytes: bytes
    ) -> None:
        assert read_epub_cover(manifest_cover_epub.read_bytes()) == cover_bytes

    def test_no_cover(self, coverless_epub: Path) -> None:
        assert read_epub_cover(coverless_epub.read_bytes()) is None


class TestValidateEpub:
    """Tests for validate_epub."""

    def test_valid_epub_passes(self, sample_epub: Path) -> None:
        validate_epub(sample_epub.read_bytes())

    def test_not_a_zip(self, corrupt_epub: Path) -> None:
        with pytest.raises(CorruptBookError, match="zip"):
            validate_epub(corrupt_epub.read_bytes())

    def test_zip_without_container(self) -> None:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as archive:
            archive.writestr("mimetype", "application/epub+zip")
        with pytest.raises(EpubReadError, match="container"):
            validate_epub(buffer.getvalue())
