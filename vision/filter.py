"""Confidence thresholding, capping and spatial bucketing of raw detections."""

from __future__ import annotations

import time
from typing import Iterable

from vision.detections import BBox, DetectedObject, DetectionBatch, RawObservation

MAX_DETECTIONS = 5
DEFAULT_CONFIDENCE_THRESHOLD = 0.4

LOW_EDGE = 0.35
HIGH_EDGE = 0.65


def horizontal_bucket(cx: float) -> str:
    if cx < LOW_EDGE:
        return "left"
    if cx > HIGH_EDGE:
        return "right"
    return "center"


def vertical_bucket(cy: float) -> str:
    # bottom-left origin: small y is low in the frame
    if cy < LOW_EDGE:
        return "bottom"
    if cy > HIGH_EDGE:
        return "top"
    return "center"


def spatial_position(bbox: BBox) -> str:
    """Describe where the centre of ``bbox`` sits in the frame."""

    x, y, width, height = bbox
    horizontal = horizontal_bucket(x + width / 2.0)
    vertical = vertical_bucket(y + height / 2.0)
    if horizontal == "center" and vertical == "center":
        return "centered"
    if horizontal == "center":
        return vertical
    if vertical == "center":
        return horizontal
    return f"{vertical} {horizontal}"


class DetectionFilter:
    """Turn one cycle of raw observations into at most five canonical objects."""

    def __init__(self, confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD) -> None:
        self.confidence_threshold = float(confidence_threshold)
        self.max_detections = MAX_DETECTIONS

    def apply(self, observations: Iterable[RawObservation]) -> list[DetectedObject]:
        """Keep confident observations in runtime order, capped at ``max_detections``."""

        objects: list[DetectedObject] = []
        for observation in observations:
            if observation.confidence < self.confidence_threshold:
                continue
            objects.append(
                DetectedObject(
                    label=observation.label.strip().lower(),
                    confidence=float(observation.confidence),
                    bbox=tuple(observation.bbox),
                    spatial_position=spatial_position(observation.bbox),
                )
            )
            if len(objects) >= self.max_detections:
                break
        return objects

    def build_batch(
        self,
        observations: Iterable[RawObservation],
        timestamp: float | None = None,
        frame_id: int | None = None,
    ) -> DetectionBatch:
        return DetectionBatch(
            timestamp=time.monotonic() if timestamp is None else timestamp,
            objects=tuple(self.apply(observations)),
            frame_id=frame_id,
        )
