"""
Aggregation Engine
==================

Deterministic transform from a batch and its latest analysis result into
the AggregateViewModel consumed by presentation.

Derived from:
    - BatchState (formats, sizes, selection, dimensions)
    - AnalysisResult (detections, labels, domains, processing time)

Rules:
    - Pure and synchronous: no I/O, no mutation of inputs
    - Never raises on empty input; degrades to placeholder values
    - Confidence percentages are rounded half-up (detail view keeps one decimal)
    - Dashboard confidence is a mean of per-image means
"""

import logging
import math
from typing import Dict, Iterable, List, Optional

from visionchat.batch import BatchState
from visionchat.models.analysis import AnalysisResult, ImageAnalysis
from visionchat.models.image import ImageDescriptor, format_file_size
from visionchat.models.view import (
    AggregateViewModel,
    BatchStatistics,
    DashboardView,
    DetectionView,
    ImageDetails,
    LabelStatistics,
    SummaryView,
)


logger = logging.getLogger(__name__)


BATCH_TITLE = "Batch Analysis"
PLACEHOLDER_DESCRIPTION = "Upload and analyze images to see results here."
_BYTES_PER_MB = 1024 * 1024


def to_percent(fraction: float) -> int:
    """Fraction in [0, 1] as an integer percentage, rounded half-up."""
    return int(math.floor(fraction * 100 + 0.5))


def to_percent_tenths(fraction: float) -> float:
    """Fraction in [0, 1] as a percentage with one decimal, rounded half-up."""
    return math.floor(fraction * 1000 + 0.5) / 10


def format_count(count: int) -> str:
    """Compact count: 1500 -> '1.5K', 2300000 -> '2.3M'."""
    if count >= 1_000_000:
        return f"{count / 1_000_000:.1f}M"
    if count >= 1_000:
        return f"{count / 1_000:.1f}K"
    return str(count)


def capitalize_label(label: str) -> str:
    return label[:1].upper() + label[1:]


def format_distribution(descriptors: Iterable[ImageDescriptor]) -> Dict[str, int]:
    """
    Count images per uppercased file extension.

    Keys keep the order in which each format is first seen.
    """
    counts: Dict[str, int] = {}
    for descriptor in descriptors:
        ext = descriptor.extension
        counts[ext] = counts.get(ext, 0) + 1
    return counts


def detection_distribution(analysis: AnalysisResult) -> List[LabelStatistics]:
    """
    Group every detection by label.

    Sorted by count descending; ties keep first-seen label order.
    """
    counts: Dict[str, int] = {}
    conf_sums: Dict[str, float] = {}
    for image in analysis.images:
        for detection in image.detections:
            name = detection.class_name
            counts[name] = counts.get(name, 0) + 1
            conf_sums[name] = conf_sums.get(name, 0.0) + detection.confidence

    stats = [
        LabelStatistics(
            label=name,
            display_label=capitalize_label(name),
            count=count,
            average_confidence=to_percent(conf_sums[name] / count),
        )
        for name, count in counts.items()
    ]
    # sorted() is stable, so equal counts stay in first-seen order
    return sorted(stats, key=lambda s: s.count, reverse=True)


def average_image_confidence(images: Iterable[ImageAnalysis]) -> int:
    """
    Mean of per-image mean confidences, as a percentage.

    Images without detections are left out; 0 when none has detections.
    """
    means = [m for m in (image.mean_confidence() for image in images) if m is not None]
    if not means:
        return 0
    return to_percent(sum(means) / len(means))


class AggregationEngine:
    """
    Builds AggregateViewModels.

    Holds only presentation constants; aggregate() keeps no state between
    calls, so identical inputs give identical (deep-equal) outputs.
    """

    def __init__(
        self,
        placeholder_description: str = PLACEHOLDER_DESCRIPTION,
        default_processing_time: str = "0s",
        detail_detection_limit: int = 5,
        oversize_warning_mb: float = 25.0,
    ) -> None:
        """
        Initialize aggregation engine.

        Args:
            placeholder_description: Summary text before any analysis exists
            default_processing_time: Dashboard figure when analysis has none
            detail_detection_limit: Detections listed in the detail view
            oversize_warning_mb: Size above which images are flagged
        """
        self.placeholder_description = placeholder_description
        self.default_processing_time = default_processing_time
        self.detail_detection_limit = detail_detection_limit
        self.oversize_warning_bytes = int(oversize_warning_mb * _BYTES_PER_MB)
        logger.debug(
            f"AggregationEngine initialized: detail_limit={detail_detection_limit}, "
            f"oversize_warning_mb={oversize_warning_mb}"
        )

    def aggregate(
        self,
        batch: BatchState,
        analysis: Optional[AnalysisResult] = None,
    ) -> AggregateViewModel:
        """
        Compute the view model for a batch and optional analysis.

        Args:
            batch: Current batch
            analysis: Latest analysis result, or None

        Returns:
            Complete AggregateViewModel
        """
        selected = batch.selected
        entry: Optional[ImageAnalysis] = None
        if analysis is not None and selected is not None:
            entry = analysis.find_image(selected.display_name)

        return AggregateViewModel(
            summary=self._summary(selected, analysis, entry),
            dashboard=self._dashboard(analysis),
            format_distribution=format_distribution(batch.descriptors),
            detection_distribution=detection_distribution(analysis) if analysis is not None else [],
            batch=self._batch_statistics(batch, analysis),
            details=self._details(selected, entry),
        )

    # -------------------------------------------------------------------------
    # Sections
    # -------------------------------------------------------------------------

    def _summary(
        self,
        selected: Optional[ImageDescriptor],
        analysis: Optional[AnalysisResult],
        entry: Optional[ImageAnalysis],
    ) -> SummaryView:
        title = selected.display_name if selected else BATCH_TITLE

        if analysis is None:
            return SummaryView(title=title, description=self.placeholder_description)

        if selected is not None and entry is not None:
            description = (
                f"Analysis of {selected.display_name} detected "
                f"{entry.detection_count} objects in {entry.domain} domain."
            )
            mean = entry.mean_confidence()
            confidence = to_percent(mean) if mean is not None else 0
        else:
            description = (
                f"Analysis of {analysis.summary.total_images} images with "
                f"{len(analysis.summary.unique_labels)} unique labels detected."
            )
            confidence = 0

        return SummaryView(
            title=title,
            description=description,
            labels=list(analysis.summary.unique_labels),
            confidence=confidence,
        )

    def _dashboard(self, analysis: Optional[AnalysisResult]) -> DashboardView:
        if analysis is None:
            return DashboardView()

        if analysis.processing_time_s is not None:
            processing_time = f"{analysis.processing_time_s:.1f}s"
        else:
            processing_time = self.default_processing_time

        total = sum(image.detection_count for image in analysis.images)
        return DashboardView(
            detection_count=total,
            detection_count_text=format_count(total),
            average_confidence=average_image_confidence(analysis.images),
            processing_time=processing_time,
        )

    def _batch_statistics(
        self,
        batch: BatchState,
        analysis: Optional[AnalysisResult],
    ) -> BatchStatistics:
        count = len(batch.descriptors)
        total = batch.total_bytes
        average = total / count if count else 0.0
        oversized = [d.display_name for d in batch.descriptors if d.byte_size > self.oversize_warning_bytes]

        if analysis is not None:
            total_text = f"{analysis.summary.total_size_mb:.2f} MB"
            average_text = f"{analysis.summary.average_size_mb:.2f} MB"
        else:
            total_text = format_file_size(total)
            average_text = format_file_size(int(average))

        return BatchStatistics(
            image_count=count,
            total_size_bytes=total,
            average_size_bytes=average,
            total_size_text=total_text,
            average_size_text=average_text,
            oversized_count=len(oversized),
            oversized_names=oversized,
        )

    def _details(
        self,
        selected: Optional[ImageDescriptor],
        entry: Optional[ImageAnalysis],
    ) -> Optional[ImageDetails]:
        if selected is None:
            return None

        dimensions = None
        if selected.has_dimensions:
            dimensions = f"{selected.width}×{selected.height}"

        details = ImageDetails(
            image_id=selected.id,
            name=selected.display_name,
            dimensions=dimensions,
            size_text=selected.size_text,
            format=selected.extension,
            content_type=selected.content_type,
        )
        if entry is None:
            return details

        shown = entry.detections[: self.detail_detection_limit]
        return details.model_copy(update={
            "domain": entry.domain,
            "labels": list(entry.labels),
            "detection_count": entry.detection_count,
            "detections": [
                DetectionView(
                    label=d.class_name,
                    confidence=to_percent_tenths(d.confidence),
                    bbox=list(d.bbox),
                )
                for d in shown
            ],
            "annotated_image_url": entry.annotated_image_url,
            "analysed": True,
        })


_default_engine = AggregationEngine()


def aggregate(
    batch: BatchState,
    analysis: Optional[AnalysisResult] = None,
) -> AggregateViewModel:
    """Aggregate with default presentation constants."""
    return _default_engine.aggregate(batch, analysis)
