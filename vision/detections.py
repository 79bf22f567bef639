"""Stable detection schemas for the search pipeline.

Bounding boxes are normalized to the source frame dimensions and represented as
``(x, y, width, height)`` with each value in the inclusive range ``[0.0, 1.0]``.
The origin is the bottom-left corner of the frame: ``y`` grows upward, so a
small centre ``y`` means the object sits low in the picture.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

BBox = tuple[float, float, float, float]


@dataclass(frozen=True)
class RawObservation:
    """Single unfiltered observation produced by the inference runtime."""

    label: str
    confidence: float
    bbox: BBox
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DetectedObject:
    """Filtered, spatially classified detection for one inference cycle."""

    label: str
    confidence: float
    bbox: BBox
    spatial_position: str

    @property
    def center(self) -> tuple[float, float]:
        x, y, width, height = self.bbox
        return (x + width / 2.0, y + height / 2.0)

    @property
    def area(self) -> float:
        return self.bbox[2] * self.bbox[3]

    @property
    def confidence_percent(self) -> int:
        return int(self.confidence * 100)


@dataclass(frozen=True)
class DetectionBatch:
    """Filtered detections for one processed frame."""

    timestamp: float
    objects: tuple[DetectedObject, ...] = ()
    frame_id: int | None = None

    def __len__(self) -> int:
        return len(self.objects)
