# ABOUTME: PDF metadata extraction and visual cover detection using PyMuPDF.
# ABOUTME: Renders the first pages small and picks one that looks like an illustrated cover.

import logging
from dataclasses import dataclass

import pymupdf as fitz

from libris.formats.errors import PdfReadError
from libris.metadata.types import ExtractedMetadata

logger = logging.getLogger(__name__)

# Only the first pages are considered; covers live at the front.
COVER_SCAN_PAGES = 2
RENDER_SCALE = 0.4
SAMPLE_STEP = 60

# A pixel counts as ink when any channel is below this value.
_WHITE_CUTOFF = 245
# A pixel counts as color when its channels spread wider than this.
_COLOR_SPREAD = 20
_COLOR_WEIGHT = 2
_GREY_WEIGHT = 1

MIN_FILL_RATIO = 0.05
MIN_COVER_SCORE = 8.0


@dataclass(frozen=True)
class PageScore:
    """How cover-like a rendered page looks."""

    sampled: int
    ink: int
    weight: int

    @property
    def fill_ratio(self) -> float:
        return self.ink / self.sampled if self.sampled else 0.0

    @property
    def score(self) -> float:
        return self.weight * self.fill_ratio

    @property
    def is_empty(self) -> bool:
        return self.fill_ratio < MIN_FILL_RATIO


def score_pixels(samples: bytes, channels: int, step: int = SAMPLE_STEP) -> PageScore:
    """Score raw RGB(A) pixel data.

    Every ``step``-th pixel is sampled. Ink pixels score 2 when colorful
    and 1 when grey; the sum is later scaled by the share of ink pixels,
    so dense, colorful pages win over pages of plain text.
    """
    if channels < 3:
        raise ValueError(f"expected RGB pixel data, got {channels} channel(s)")

    pixel_count = len(samples) // channels
    sampled = ink = weight = 0
    for index in range(0, pixel_count, step):
        offset = index * channels
        r, g, b = samples[offset], samples[offset + 1], samples[offset + 2]
        sampled += 1
        if r >= _WHITE_CUTOFF and g >= _WHITE_CUTOFF and b >= _WHITE_CUTOFF:
            continue
        ink += 1
        spread = max(r, g, b) - min(r, g, b)
        weight += _COLOR_WEIGHT if spread > _COLOR_SPREAD else _GREY_WEIGHT

    return PageScore(sampled=sampled, ink=ink, weight=weight)


def _open_document(data: bytes) -> fitz.Document:
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except Exception as exc:
        raise PdfReadError(f"Failed to open PDF: {exc}") from exc
    if doc.page_count == 0:
        doc.close()
        raise PdfReadError("PDF has no pages")
    return doc


def read_pdf_metadata(data: bytes) -> ExtractedMetadata:
    """Read the document-info title and author. No heuristic fallback.

    Raises:
        PdfReadError: If the file cannot be opened.
    """
    doc = _open_document(data)
    try:
        info = doc.metadata or {}
    finally:
        doc.close()
    title = (info.get("title") or "").strip()
    author = (info.get("author") or "").strip()
    return ExtractedMetadata(title=title or None, author=author or None)


def read_pdf_cover(data: bytes) -> bytes | None:
    """Render the first pages and return the most cover-like one as PNG bytes.

    Returns None when no page clears MIN_COVER_SCORE. This is a heuristic:
    it can miss sparse covers and accept busy interior pages.

    Raises:
        PdfReadError: If the file cannot be opened.
    """
    doc = _open_document(data)
    matrix = fitz.Matrix(RENDER_SCALE, RENDER_SCALE)
    best_score = 0.0
    best_png: bytes | None = None
    try:
        for page_number in range(min(COVER_SCAN_PAGES, doc.page_count)):
            pixmap = doc[page_number].get_pixmap(
                matrix=matrix, colorspace=fitz.csRGB, alpha=False
            )
            page_score = score_pixels(pixmap.samples, pixmap.n)
            logger.debug(
                "Page %d: fill=%.3f score=%.1f",
                page_number + 1,
                page_score.fill_ratio,
                page_score.score,
            )
            if page_score.is_empty:
                continue
            if page_score.score > best_score:
                best_score = page_score.score
                best_png = pixmap.tobytes("png")
    finally:
        doc.close()

    if best_png is None or best_score <= MIN_COVER_SCORE:
        return None
    return best_png


def validate_pdf(data: bytes) -> None:
    """Raise PdfReadError unless the bytes open as a PDF with at least one page."""
    _open_document(data).close()
