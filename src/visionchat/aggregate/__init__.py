"""
Aggregate Module
================

Pure transforms from batch + analysis into presentation statistics.
"""

from visionchat.aggregate.engine import (
    AggregationEngine,
    aggregate,
    average_image_confidence,
    detection_distribution,
    format_count,
    format_distribution,
    to_percent,
    to_percent_tenths,
)

__all__ = [
    "AggregationEngine",
    "aggregate",
    "average_image_confidence",
    "detection_distribution",
    "format_count",
    "format_distribution",
    "to_percent",
    "to_percent_tenths",
]
