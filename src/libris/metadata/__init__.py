# ABOUTME: Metadata package: filename normalization, cover discovery, and catalog search.
# ABOUTME: Exports the shared types and the cover resolver used by the ingestion pipeline.

from libris.metadata.candidate import DiscoveryCandidate
from libris.metadata.normalizer import ParsedFilename, parse_filename
from libris.metadata.resolver import CoverResolver
from libris.metadata.types import CoverResult, ExtractedMetadata, IngestHints, UploadedFile

__all__ = [
    "CoverResolver",
    "CoverResult",
    "DiscoveryCandidate",
    "ExtractedMetadata",
    "IngestHints",
    "ParsedFilename",
    "UploadedFile",
    "parse_filename",
]
