"""
Ingest Module
=============

Batch ingestion components.

    - ImageDecoder / OpenCVImageDecoder: Decode capability (dimensions only)
    - ProgressChannel: Async stream of ProgressEvents
    - IngestionPipeline: Filtering, capacity, concurrent decode, ordered join
"""

from visionchat.ingest.decoder import (
    ImageDecodeError,
    ImageDecoder,
    ImageDimensions,
    OpenCVImageDecoder,
)
from visionchat.ingest.progress import ProgressChannel
from visionchat.ingest.pipeline import IngestionPipeline, SubmitResult


__all__ = [
    "ImageDecodeError",
    "ImageDecoder",
    "ImageDimensions",
    "OpenCVImageDecoder",
    "ProgressChannel",
    "IngestionPipeline",
    "SubmitResult",
]
