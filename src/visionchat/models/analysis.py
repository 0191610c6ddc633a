"""
Analysis Result Schema
======================

This module defines the Pydantic models for results returned by the
external analysis service.

Input Contract (from the analysis service):
    {
        "summary": {
            "total_images": 2,
            "total_size_mb": 3.4,
            "average_size_mb": 1.7,
            "unique_labels": ["person", "car"]
        },
        "images": [
            {
                "image_name": "street.jpg",
                "format": "JPEG",
                "size_mb": 1.9,
                "domain": "urban",
                "labels": ["person", "car"],
                "detections": [
                    {"class_name": "person", "conf": 0.91, "bbox": [12, 40, 88, 210]}
                ]
            }
        ]
    }

Per-image entries are joined to batch descriptors by file name only. They
need not cover every descriptor, and may name images already removed.

Example:
    from visionchat.models.analysis import AnalysisResult

    result = AnalysisResult.model_validate_json(raw)
    entry = result.find_image("street.jpg")
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class DetectionRecord(BaseModel):
    """
    One labeled, confidence-scored object instance.

    Attributes:
        class_name: Detected label (case preserved)
        confidence: Detector confidence in [0, 1]
        bbox: Bounding box coordinates, not interpreted here
    """

    model_config = ConfigDict(populate_by_name=True)

    class_name: str = Field(..., description="Detected label")

    confidence: float = Field(
        ...,
        alias="conf",
        ge=0.0,
        le=1.0,
        description="Detector confidence (0.0 to 1.0)",
    )

    bbox: List[float] = Field(
        default_factory=list,
        description="Bounding box coordinates (opaque)",
    )


class ImageAnalysis(BaseModel):
    """
    Analysis of a single image.

    Attributes:
        image_name: File name used to join with batch descriptors
        format: Image format reported by the service
        size_mb: Image size in megabytes
        domain: Scene domain classification
        detections: Detected objects
    """

    image_name: str = Field(..., description="File name of the analysed image")
    format: str = Field(default="", description="Image format")
    size_mb: float = Field(default=0.0, ge=0.0, description="Size in megabytes")
    domain: str = Field(default="", description="Scene domain")
    labels: List[str] = Field(default_factory=list, description="Labels found")
    input_image_url: Optional[str] = Field(default=None)
    annotated_image_url: Optional[str] = Field(default=None)
    detections: List[DetectionRecord] = Field(default_factory=list)

    @property
    def detection_count(self) -> int:
        return len(self.detections)

    def mean_confidence(self) -> Optional[float]:
        """Mean detection confidence, or None with no detections."""
        if not self.detections:
            return None
        return sum(d.confidence for d in self.detections) / len(self.detections)


class AnalysisSummary(BaseModel):
    """Batch-level figures reported by the analysis service."""

    total_images: int = Field(default=0, ge=0)
    total_size_mb: float = Field(default=0.0, ge=0.0)
    average_size_mb: float = Field(default=0.0, ge=0.0)
    unique_labels: List[str] = Field(default_factory=list)


class AnalysisResult(BaseModel):
    """
    Complete result from the analysis service.

    Attributes:
        summary: Batch-level figures
        images: Per-image analyses
        processing_time_s: Optional processing duration in seconds
    """

    summary: AnalysisSummary = Field(default_factory=AnalysisSummary)
    images: List[ImageAnalysis] = Field(default_factory=list)
    processing_time_s: Optional[float] = Field(default=None, ge=0.0)

    def find_image(self, name: str) -> Optional[ImageAnalysis]:
        """
        Look up a per-image entry by file name.

        Duplicate names resolve to the first entry.
        """
        for entry in self.images:
            if entry.image_name == name:
                return entry
        return None
