"""
VisionChat
==========

Batch core for the VisionChat image analysis workspace.

This package assembles a bounded batch of image files, derives per-image
metadata (dimensions, size, format) and turns raw detection results into
summary, dashboard and detail statistics for display.

Components:
    - models: Image records, events, analysis input and view-model output
    - batch: Immutable batch state with selection rules
    - ingest: Concurrent decode pipeline with progress reporting
    - aggregate: Pure statistics engine
    - session: Single-writer session tying the pieces together

Example:
    from visionchat.models import FileInput
    from visionchat.session import BatchSession

    session = BatchSession()
    result = await session.add_files([FileInput.from_path("photo.jpg")])
    model = session.view()
"""

__version__ = "0.1.0"
__author__ = "VisionChat Project"

__all__ = [
    "__version__",
]
