# ABOUTME: Exceptions raised when an uploaded book cannot be opened as its format.
# ABOUTME: Shared by the EPUB and PDF readers and by format validation at ingest time.


class CorruptBookError(Exception):
    """Raised when a file cannot be parsed as its declared book format."""


class EpubReadError(CorruptBookError):
    """Raised when an EPUB file cannot be read or parsed."""


class PdfReadError(CorruptBookError):
    """Raised when a PDF file cannot be opened or has no pages."""
