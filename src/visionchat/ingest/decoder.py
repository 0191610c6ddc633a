"""
Image Decoder
=============

Decode capability used by the ingestion pipeline to read pixel dimensions.

Design Rules:
    - Decoders take raw bytes and return width/height only
    - Fails fast on empty or corrupt content
    - Each decode is an independent awaitable; CPU work runs in a worker
      thread so decodes within one submission overlap
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

import cv2
import numpy as np


logger = logging.getLogger(__name__)


_READ_FLAGS = {
    "unchanged": cv2.IMREAD_UNCHANGED,
    "color": cv2.IMREAD_COLOR,
    "grayscale": cv2.IMREAD_GRAYSCALE,
}


class ImageDecodeError(Exception):
    """Raised when image decoding fails."""
    pass


@dataclass(frozen=True, slots=True)
class ImageDimensions:
    """Pixel dimensions of a decoded image."""

    width: int
    height: int


class ImageDecoder(Protocol):
    """
    Protocol for decode backends.

    Implementations provide an async `decode` that returns the pixel
    dimensions of an encoded image or raises ImageDecodeError.
    """

    async def decode(self, content: bytes, name: str = "") -> ImageDimensions:
        ...


def read_dimensions(content: bytes, flags: int = cv2.IMREAD_UNCHANGED) -> ImageDimensions:
    """
    Decode encoded image bytes and return their dimensions.

    Args:
        content: Encoded image (PNG, JPEG, WebP, ...)
        flags: OpenCV imread flags

    Returns:
        ImageDimensions of the decoded image

    Raises:
        ImageDecodeError: If the content is empty or cannot be decoded
    """
    if not content:
        raise ImageDecodeError("Empty image content")

    try:
        buffer = np.frombuffer(content, np.uint8)
        image = cv2.imdecode(buffer, flags)
    except Exception as e:
        raise ImageDecodeError(f"Unexpected decode error: {e}") from e

    if image is None:
        raise ImageDecodeError("cv2.imdecode returned None")

    if image.ndim < 2 or image.shape[0] == 0 or image.shape[1] == 0:
        raise ImageDecodeError(f"Invalid image shape: {image.shape}")

    height, width = image.shape[:2]
    return ImageDimensions(width=int(width), height=int(height))


class OpenCVImageDecoder:
    """
    Decoder backed by OpenCV.

    Runs cv2.imdecode in a worker thread via asyncio.to_thread.

    Example:
        decoder = OpenCVImageDecoder()
        dims = await decoder.decode(png_bytes, "photo.png")
    """

    def __init__(self, read_flags: str = "unchanged") -> None:
        """
        Initialize decoder.

        Args:
            read_flags: 'unchanged', 'color' or 'grayscale'
        """
        if read_flags not in _READ_FLAGS:
            raise ValueError(f"Unknown read flags: {read_flags}")
        self._flags = _READ_FLAGS[read_flags]
        logger.info(f"OpenCVImageDecoder initialized: read_flags={read_flags}")

    async def decode(self, content: bytes, name: str = "") -> ImageDimensions:
        try:
            return await asyncio.to_thread(read_dimensions, content, self._flags)
        except ImageDecodeError as e:
            raise ImageDecodeError(f"Failed to decode {name or 'image'}: {e}") from e
