"""
Test Configuration
==================

Pytest fixtures and test configuration for VisionChat.
"""

import asyncio
import mimetypes
from typing import Dict, List, Optional, Tuple

import cv2
import numpy as np
import pytest

from visionchat.ingest.decoder import ImageDecodeError, ImageDimensions
from visionchat.models.image import FileInput, ImageDescriptor


def encode_image(width: int, height: int, ext: str = ".png") -> bytes:
    """Encode a solid test image with OpenCV."""
    pixels = np.full((height, width, 3), 127, dtype=np.uint8)
    ok, buffer = cv2.imencode(ext, pixels)
    assert ok
    return buffer.tobytes()


def make_candidate(
    name: str,
    content: bytes = b"\x89PNG fake",
    content_type: str = "image/png",
    size: Optional[int] = None,
) -> FileInput:
    return FileInput(
        content=content,
        declared_size=len(content) if size is None else size,
        content_type=content_type,
        name=name,
    )


def make_descriptor(name: str, image_id: Optional[str] = None, size: int = 1024) -> ImageDescriptor:
    return ImageDescriptor(
        id=image_id or f"id-{name}",
        content=b"",
        display_name=name,
        byte_size=size,
        width=64,
        height=48,
        content_type=mimetypes.guess_type(name)[0] or "",
    )


class ScriptedDecoder:
    """
    Fake decoder with per-name delays, failures and raw errors.

    Records the order in which decodes finish.
    """

    def __init__(
        self,
        delays: Optional[Dict[str, float]] = None,
        failures: Tuple[str, ...] = (),
        errors: Optional[Dict[str, Exception]] = None,
        dims: Tuple[int, int] = (640, 480),
    ) -> None:
        self.delays = delays or {}
        self.failures = set(failures)
        self.errors = errors or {}
        self.dims = dims
        self.started: List[str] = []
        self.finished: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def decode(self, content: bytes, name: str = "") -> ImageDimensions:
        self.started.append(name)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(name, 0.0))
            if name in self.failures:
                raise ImageDecodeError(f"corrupt data in {name}")
            if name in self.errors:
                raise self.errors[name]
            return ImageDimensions(width=self.dims[0], height=self.dims[1])
        finally:
            self.in_flight -= 1
            self.finished.append(name)


@pytest.fixture
def png_bytes():
    """Provide a real 32x16 PNG."""
    return encode_image(32, 16, ".png")


@pytest.fixture
def jpeg_bytes():
    """Provide a real 20x10 JPEG."""
    return encode_image(20, 10, ".jpg")


@pytest.fixture
def scripted_decoder():
    """Provide a ScriptedDecoder with no delays or failures."""
    return ScriptedDecoder()


@pytest.fixture
def sample_analysis_payload():
    """Provide an analysis service payload in its wire format."""
    return {
        "summary": {
            "total_images": 2,
            "total_size_mb": 3.5,
            "average_size_mb": 1.75,
            "unique_labels": ["person", "car"],
        },
        "images": [
            {
                "image_name": "x.jpg",
                "format": "JPEG",
                "size_mb": 2.0,
                "domain": "urban",
                "labels": ["person", "car"],
                "annotated_image_url": "https://example.invalid/x-annotated.jpg",
                "detections": [
                    {"class_name": "person", "conf": 0.8, "bbox": [1, 2, 3, 4]},
                    {"class_name": "car", "conf": 0.6, "bbox": [5, 6, 7, 8]},
                ],
            },
            {
                "image_name": "y.png",
                "format": "PNG",
                "size_mb": 1.5,
                "domain": "indoor",
                "detections": [
                    {"class_name": "person", "conf": 1.0, "bbox": [0, 0, 10, 10]},
                ],
            },
        ],
    }
