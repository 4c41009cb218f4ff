# ABOUTME: Confirms that a remote cover URL serves a real, non-trivial image.
# ABOUTME: Downloads with a short timeout and lets Pillow read the dimensions.

import asyncio
import io
import logging

from PIL import Image

from libris.metadata.http import HttpClient, MetadataFetchError

logger = logging.getLogger(__name__)

IMAGE_LOAD_TIMEOUT = 5.0
# Tracking pixels and "no cover" stubs are tiny; real covers are not.
MIN_IMAGE_DIMENSION = 10


def image_dimensions(data: bytes) -> tuple[int, int] | None:
    """Return (width, height) of encoded image bytes, or None if unreadable."""
    try:
        with Image.open(io.BytesIO(data)) as image:
            return image.size
    except (OSError, Image.DecompressionBombError, ValueError):
        return None


async def image_loads(
    http: HttpClient, url: str, *, timeout: float = IMAGE_LOAD_TIMEOUT
) -> bool:
    """Whether ``url`` serves an image larger than MIN_IMAGE_DIMENSION on both sides."""
    try:
        data = await asyncio.wait_for(http.get_bytes(url, timeout=timeout), timeout)
    except (MetadataFetchError, TimeoutError) as exc:
        logger.debug("Image at %s did not load: %s", url, exc)
        return False

    size = image_dimensions(data)
    if size is None:
        logger.debug("Image at %s is not decodable", url)
        return False

    width, height = size
    return width > MIN_IMAGE_DIMENSION and height > MIN_IMAGE_DIMENSION
