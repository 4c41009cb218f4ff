# ABOUTME: Shared pytest fixtures for Libris tests.
# ABOUTME: Builds sample EPUBs with ebooklib and PDFs with PyMuPDF, plus an in-memory store.

from collections.abc import Iterator
from pathlib import Path

import pymupdf as fitz
import pytest
from ebooklib import epub

from libris.db.store import MEMORY_DB, LocalStore
from tests.fixtures.images import make_image


def _base_book(
    title: str, author: str | None, identifier: str
) -> tuple[epub.EpubBook, epub.EpubHtml]:
    book = epub.EpubBook()
    book.set_identifier(identifier)
    book.set_title(title)
    book.set_language("en")
    if author:
        book.add_author(author)

    chapter = epub.EpubHtml(title="Chapter 1", file_name="chap01.xhtml", lang="en")
    chapter.content = b"<html><body><h1>Chapter 1</h1><p>Content.</p></body></html>"
    book.add_item(chapter)
    return book, chapter


def _finish_book(book: epub.EpubBook, chapter: epub.EpubHtml, path: Path) -> Path:
    book.toc = [epub.Link("chap01.xhtml", "Chapter 1", "chap01")]
    book.add_item(epub.EpubNcx())
    book.add_item(epub.EpubNav())
    book.spine = ["nav", chapter]
    epub.write_epub(str(path), book)
    return path


@pytest.fixture
def cover_bytes() -> bytes:
    return make_image()


@pytest.fixture
def sample_epub(tmp_path: Path, cover_bytes: bytes) -> Path:
    """EPUB with known metadata and a declared cover image."""
    book, chapter = _base_book("The Name of the Rose", "Umberto Eco", "rose-id")
    book.set_cover("cover.jpg", cover_bytes)
    return _finish_book(book, chapter, tmp_path / "name_of_the_rose.epub")


@pytest.fixture
def manifest_cover_epub(tmp_path: Path, cover_bytes: bytes) -> Path:
    """EPUB that declares no cover but ships images/cover.jpg under a neutral id."""
    book, chapter = _base_book("Foucault's Pendulum", "Umberto Eco", "pendulum-id")
    image = epub.EpubImage(
        uid="img1", file_name="images/cover.jpg", media_type="image/jpeg", content=cover_bytes
    )
    book.add_item(image)
    return _finish_book(book, chapter, tmp_path / "pendulum.epub")


@pytest.fixture
def coverless_epub(tmp_path: Path) -> Path:
    """EPUB with metadata but no images at all."""
    book, chapter = _base_book("The Island of the Day Before", "Umberto Eco", "island-id")
    return _finish_book(book, chapter, tmp_path / "island.epub")


@pytest.fixture
def anonymous_epub(tmp_path: Path) -> Path:
    """EPUB with a title but no creator and no cover."""
    book, chapter = _base_book("Untitled Manuscript", None, "anon-id")
    return _finish_book(book, chapter, tmp_path / "Baudolino - Umberto Eco.epub")


@pytest.fixture
def corrupt_epub(tmp_path: Path) -> Path:
    """A file that is not a valid EPUB."""
    filepath = tmp_path / "corrupt.epub"
    filepath.write_text("this is not a valid epub file")
    return filepath


@pytest.fixture
def colorful_pdf(tmp_path: Path) -> Path:
    """Two-page PDF: a solid illustrated cover, then a page of text."""
    doc = fitz.open()
    cover = doc.new_page(width=595, height=842)
    cover.draw_rect(cover.rect, color=(0.8, 0.1, 0.1), fill=(0.8, 0.1, 0.1))
    cover.draw_rect(fitz.Rect(100, 200, 495, 600), color=(0.1, 0.3, 0.8), fill=(0.1, 0.3, 0.8))
    text = doc.new_page(width=595, height=842)
    text.insert_text((72, 72), "Chapter One", fontsize=12)
    doc.set_metadata({"title": "Dune", "author": "Frank Herbert"})
    filepath = tmp_path / "dune.pdf"
    filepath.write_bytes(doc.tobytes())
    doc.close()
    return filepath


@pytest.fixture
def text_pdf(tmp_path: Path) -> Path:
    """Two mostly-white pages of text and no document info."""
    doc = fitz.open()
    for number in (1, 2):
        page = doc.new_page(width=595, height=842)
        page.insert_text((72, 72), f"Page {number}", fontsize=11)
    filepath = tmp_path / "Children of Dune - Frank Herbert.pdf"
    filepath.write_bytes(doc.tobytes())
    doc.close()
    return filepath


@pytest.fixture
def corrupt_pdf(tmp_path: Path) -> Path:
    filepath = tmp_path / "broken.pdf"
    filepath.write_bytes(b"%PDF-1.4\nthis is not really a pdf")
    return filepath


@pytest.fixture
def store() -> Iterator[LocalStore]:
    """An open in-memory LocalStore."""
    local = LocalStore(MEMORY_DB).open()
    yield local
    local.close()
