# ABOUTME: Format-aware entry points for local metadata and cover extraction.
# ABOUTME: Dispatches to the EPUB/PDF readers off the event loop and never raises.

import asyncio
import logging
from pathlib import PurePath

from libris.formats.epub import read_epub_cover, read_epub_metadata, validate_epub
from libris.formats.errors import CorruptBookError
from libris.formats.pdf import read_pdf_cover, read_pdf_metadata, validate_pdf
from libris.metadata.types import BookFormat, ExtractedMetadata, Lookup, UploadedFile

logger = logging.getLogger(__name__)

_PDF_MAGIC = b"%PDF"
_PDF_TYPES = {"application/pdf", "application/x-pdf"}


def detect_format(file: UploadedFile) -> BookFormat:
    """Work out the container format from magic bytes, extension, or MIME type.

    Anything that is not recognizably a PDF is treated as reflowable.
    """
    if file.data[:4] == _PDF_MAGIC:
        return BookFormat.FIXED_PAGE
    if PurePath(file.name).suffix.lower() == ".pdf":
        return BookFormat.FIXED_PAGE
    if (file.content_type or "").lower() in _PDF_TYPES:
        return BookFormat.FIXED_PAGE
    return BookFormat.REFLOWABLE


def validate_file(file: UploadedFile, book_format: BookFormat) -> None:
    """Make sure the file opens as its format at all.

    Raises:
        CorruptBookError: If the file cannot be parsed as ``book_format``.
    """
    if not file.data:
        raise CorruptBookError(f"{file.name} is empty")
    if book_format is BookFormat.FIXED_PAGE:
        validate_pdf(file.data)
    else:
        validate_epub(file.data)


def _read_metadata(file: UploadedFile, book_format: BookFormat) -> ExtractedMetadata:
    if book_format is BookFormat.FIXED_PAGE:
        return read_pdf_metadata(file.data)
    return read_epub_metadata(file.data)


def _read_cover(file: UploadedFile, book_format: BookFormat) -> bytes | None:
    if book_format is BookFormat.FIXED_PAGE:
        return read_pdf_cover(file.data)
    return read_epub_cover(file.data)


async def extract_metadata(
    file: UploadedFile, book_format: BookFormat | None = None
) -> Lookup[ExtractedMetadata]:
    """Pull the embedded title/author out of a book file.

    Parsing runs in a worker thread. Failures are logged and returned as
    ``Lookup.failed``; an empty metadata block is ``Lookup.missing``.
    """
    book_format = book_format or detect_format(file)
    try:
        metadata = await asyncio.to_thread(_read_metadata, file, book_format)
    except Exception as exc:
        logger.warning("Metadata extraction failed for %s: %s", file.name, exc)
        return Lookup.failed(exc)

    if metadata.is_empty:
        return Lookup.missing()
    return Lookup.found(metadata)


async def extract_cover(
    file: UploadedFile, book_format: BookFormat | None = None
) -> Lookup[bytes]:
    """Pull a cover image out of a book file. Never raises."""
    book_format = book_format or detect_format(file)
    try:
        cover = await asyncio.to_thread(_read_cover, file, book_format)
    except Exception as exc:
        logger.warning("Cover extraction failed for %s: %s", file.name, exc)
        return Lookup.failed(exc)

    if not cover:
        return Lookup.missing()
    return Lookup.found(cover)
