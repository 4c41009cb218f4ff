# ABOUTME: EPUB metadata and cover extraction using ebooklib, with a raw-archive cover fallback.
# ABOUTME: Works on in-memory bytes; malformed files surface as EpubReadError.

import io
import logging
import posixpath
import tempfile
import zipfile
from pathlib import Path
from urllib.parse import unquote

import ebooklib
from ebooklib import epub
from lxml import etree

from libris.formats.errors import EpubReadError
from libris.metadata.types import ExtractedMetadata

logger = logging.getLogger(__name__)

_CONTAINER_PATH = "META-INF/container.xml"
_NAMESPACES = {
    "container": "urn:oasis:names:tc:opendocument:xmlns:container",
    "opf": "http://www.idpf.org/2007/opf",
}


def _open_book(data: bytes) -> epub.EpubBook:
    """Parse EPUB bytes with ebooklib.

    ebooklib wants a filename, so the bytes are spilled to a temporary
    file. Item contents are loaded eagerly, so the file can go away
    as soon as parsing is done.
    """
    with tempfile.TemporaryDirectory(prefix="libris-") as tmp:
        path = Path(tmp) / "book.epub"
        path.write_bytes(data)
        try:
            return epub.read_epub(str(path), options={"ignore_ncx": True})
        except Exception as exc:
            raise EpubReadError(f"Failed to read EPUB: {exc}") from exc


def _get_metadata_value(book: epub.EpubBook, namespace: str, name: str) -> str | None:
    """Extract a single metadata value from an EpubBook, or None if missing."""
    values = book.get_metadata(namespace, name)
    if not values:
        return None
    # Metadata entries are tuples of (value, attributes)
    value = values[0][0]
    return str(value).strip() if value else None


def _get_authors(book: epub.EpubBook) -> list[str]:
    """Extract all author names from an EpubBook."""
    creators = book.get_metadata("DC", "creator")
    if not creators:
        return []
    return [str(entry[0]).strip() for entry in creators if entry[0]]


def _declared_cover(book: epub.EpubBook) -> bytes | None:
    """Return the cover the package document declares, if any.

    Checks the EPUB2 ``<meta name="cover">`` pointer first, then any
    item ebooklib classified as a cover image.
    """
    meta_entries = book.get_metadata("OPF", "cover")
    if meta_entries:
        cover_id = meta_entries[0][1].get("content")
        if cover_id:
            cover_item = book.get_item_with_id(cover_id)
            if cover_item is not None and cover_item.get_content():
                return cover_item.get_content()

    for item in book.get_items_of_type(ebooklib.ITEM_COVER):
        content = item.get_content()
        if content:
            return content

    return None


def _find_opf_path(archive: zipfile.ZipFile) -> str:
    root = etree.fromstring(archive.read(_CONTAINER_PATH))
    rootfile = root.find(".//container:rootfile", _NAMESPACES)
    if rootfile is None or not rootfile.get("full-path"):
        raise EpubReadError("container.xml does not name a package document")
    return rootfile.get("full-path")


def _scan_manifest_for_cover(data: bytes) -> bytes | None:
    """Find an image whose manifest id or href mentions "cover".

    Reads the resource straight out of the zip archive rather than going
    through ebooklib, so covers ebooklib failed to classify are still found.
    """
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        opf_path = _find_opf_path(archive)
        package = etree.fromstring(archive.read(opf_path))
        opf_dir = posixpath.dirname(opf_path)

        for item in package.iterfind(".//opf:manifest/opf:item", _NAMESPACES):
            media_type = item.get("media-type", "")
            if not media_type.startswith("image/"):
                continue
            item_id = item.get("id", "")
            href = item.get("href", "")
            if "cover" not in item_id.lower() and "cover" not in href.lower():
                continue

            member = posixpath.normpath(posixpath.join(opf_dir, unquote(href)))
            try:
                return archive.read(member)
            except KeyError:
                logger.debug("Manifest cover %s missing from archive", member)
                continue

    return None


def read_epub_metadata(data: bytes) -> ExtractedMetadata:
    """Extract title and first creator from EPUB bytes.

    Raises:
        EpubReadError: If the file cannot be read or parsed.
    """
    book = _open_book(data)
    authors = _get_authors(book)
    return ExtractedMetadata(
        title=_get_metadata_value(book, "DC", "title"),
        author=authors[0] if authors else None,
    )


def read_epub_cover(data: bytes) -> bytes | None:
    """Extract cover image bytes from an EPUB.

    Tries the declared cover first, then falls back to scanning the
    manifest for a cover-looking image.

    Raises:
        EpubReadError: If the file cannot be read or parsed.
    """
    book = _open_book(data)
    cover = _declared_cover(book)
    if cover is not None:
        return cover

    logger.debug("No declared cover, scanning manifest")
    try:
        return _scan_manifest_for_cover(data)
    except (KeyError, zipfile.BadZipFile, etree.XMLSyntaxError) as exc:
        raise EpubReadError(f"Failed to scan EPUB manifest: {exc}") from exc


def validate_epub(data: bytes) -> None:
    """Cheap structural check run before a placeholder record is created.

    Raises:
        EpubReadError: If the bytes are not a zip archive with an EPUB container.
    """
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            if _CONTAINER_PATH not in archive.namelist():
                raise EpubReadError(f"Missing {_CONTAINER_PATH}")
    except zipfile.BadZipFile as exc:
        raise EpubReadError(f"Not a zip archive: {exc}") from exc
