"""
Aggregate View Models
=====================

This module defines the read-only statistics contract consumed by the
presentation layer.

The view model is structured into tiers:
    1. Summary: description of the batch or selected image
    2. Dashboard: detection count, confidence, processing time
    3. Distributions: file formats and detected labels
    4. Batch: size statistics of the admitted images
    5. Details: metadata and top detections of the selected image

Output Contract:
    {
        "summary": {
            "title": "street.jpg",
            "description": "Analysis of street.jpg detected 2 objects in urban domain.",
            "labels": ["person", "car"],
            "confidence": 70
        },
        "dashboard": {
            "detection_count": 3,
            "average_confidence": 75,
            "processing_time": "2.4s"
        },
        "format_distribution": {"JPG": 2, "PNG": 1},
        "detection_distribution": [
            {"label": "person", "display_label": "Person", "count": 2, "average_confidence": 80}
        ],
        "batch": {...},
        "details": {...}
    }

Design Rules:
    - Recomputed on demand, never persisted
    - Percentages are integers rounded half-up, except detail-view
      detection confidences, which keep one decimal
    - Identical inputs always produce identical view models
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class SummaryView(BaseModel):
    """
    Headline description of the batch or the selected image.

    Attributes:
        title: Selected image name, or "Batch Analysis"
        description: Human-readable sentence
        labels: Unique labels reported by the analysis
        confidence: Mean confidence of the selected image (percent)
    """

    title: str = Field(default="Batch Analysis")
    description: str = Field(...)
    labels: List[str] = Field(default_factory=list)
    confidence: int = Field(default=0, ge=0, le=100)


class DashboardView(BaseModel):
    """
    Batch-wide detection figures.

    average_confidence is a mean of per-image means over images with at
    least one detection, so images with many detections do not dominate.
    """

    detection_count: int = Field(default=0, ge=0)
    detection_count_text: str = Field(default="0", description="Compact count, e.g. '1.5K'")
    average_confidence: int = Field(default=0, ge=0, le=100)
    processing_time: str = Field(default="0s")


class LabelStatistics(BaseModel):
    """Count and mean confidence of one detected label."""

    label: str = Field(..., description="Label as reported (case preserved)")
    display_label: str = Field(..., description="Label with a capitalised first letter")
    count: int = Field(..., ge=1)
    average_confidence: int = Field(..., ge=0, le=100)


class BatchStatistics(BaseModel):
    """
    Size figures for the admitted images.

    The *_text fields come from the analysis summary when one exists,
    otherwise from the descriptors' declared sizes.
    """

    image_count: int = Field(default=0, ge=0)
    total_size_bytes: int = Field(default=0, ge=0)
    average_size_bytes: float = Field(default=0.0, ge=0.0)
    total_size_text: str = Field(default="0 B")
    average_size_text: str = Field(default="0 B")
    oversized_count: int = Field(default=0, ge=0)
    oversized_names: List[str] = Field(default_factory=list)


class DetectionView(BaseModel):
    """One detection as listed in the detail view."""

    label: str
    confidence: float = Field(..., ge=0.0, le=100.0, description="Percent with one decimal")
    bbox: List[float] = Field(default_factory=list)


class ImageDetails(BaseModel):
    """Detail view of the selected image."""

    image_id: str
    name: str
    dimensions: Optional[str] = Field(
        default=None,
        description="'W×H' once decoded, None before",
    )
    size_text: str
    format: str
    content_type: str = Field(default="", description="Declared MIME type")
    domain: Optional[str] = None
    labels: List[str] = Field(default_factory=list)
    detection_count: int = Field(default=0, ge=0)
    detections: List[DetectionView] = Field(default_factory=list)
    annotated_image_url: Optional[str] = None
    analysed: bool = Field(default=False, description="Whether an analysis entry matched")


class AggregateViewModel(BaseModel):
    """
    Complete statistics object for one batch and its latest analysis.

    Attributes:
        summary: Headline description
        dashboard: Batch-wide detection figures
        format_distribution: Uppercased extension -> count, first-seen order
        detection_distribution: Label statistics, most frequent first
        batch: Size statistics of the admitted images
        details: Detail view of the selected image (None without selection)
    """

    summary: SummaryView
    dashboard: DashboardView = Field(default_factory=DashboardView)
    format_distribution: Dict[str, int] = Field(default_factory=dict)
    detection_distribution: List[LabelStatistics] = Field(default_factory=list)
    batch: BatchStatistics = Field(default_factory=BatchStatistics)
    details: Optional[ImageDetails] = None
