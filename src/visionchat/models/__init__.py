"""
Data Models
===========

Data models for the VisionChat batch core.

This module re-exports all data models for convenient access.

Models:
    Image:
        - FileInput: Candidate file from acquisition
        - ImageDescriptor: Admitted image and its metadata

    Events:
        - ProgressEvent: One completed decode
        - DecodeFailure: One candidate that failed to decode

    Analysis (external input):
        - DetectionRecord, ImageAnalysis, AnalysisSummary, AnalysisResult

    View (output):
        - AggregateViewModel and its sections
"""

from visionchat.models.image import FileInput, ImageDescriptor
from visionchat.models.events import DecodeFailure, ProgressEvent
from visionchat.models.analysis import (
    AnalysisResult,
    AnalysisSummary,
    DetectionRecord,
    ImageAnalysis,
)
from visionchat.models.view import (
    AggregateViewModel,
    BatchStatistics,
    DashboardView,
    DetectionView,
    ImageDetails,
    LabelStatistics,
    SummaryView,
)

__all__ = [
    # Image
    "FileInput",
    "ImageDescriptor",
    # Events
    "ProgressEvent",
    "DecodeFailure",
    # Analysis
    "DetectionRecord",
    "ImageAnalysis",
    "AnalysisSummary",
    "AnalysisResult",
    # View
    "SummaryView",
    "DashboardView",
    "LabelStatistics",
    "BatchStatistics",
    "DetectionView",
    "ImageDetails",
    "AggregateViewModel",
]
