"""Inference boundary: run the detector runtime and normalize its payloads."""

from __future__ import annotations

import math
import threading
from typing import Any, Callable, Protocol

from core.logging import logger
from vision.detections import BBox, RawObservation


LABEL_KEYS = ("label", "class_name", "class", "name")
CONFIDENCE_KEYS = ("score", "confidence")
BOX_KEYS = ("bbox", "box", "rect", "rectangle")
CORNER_KEYS = ("xmin", "ymin", "xmax", "ymax")
_KNOWN_FIELDS = set(LABEL_KEYS + CONFIDENCE_KEYS + BOX_KEYS + CORNER_KEYS) | {
    "x",
    "y",
    "w",
    "h",
    "width",
    "height",
}

METADATA_DETECTION_KEYS = (
    "imx500_detections",
    "detections",
    "objects",
    "ai_outputs",
    "imx500",
)


class DetectorRuntime(Protocol):
    """Anything that can turn a frame into raw detection payloads."""

    def detect(self, frame: Any) -> list[Any]:
        ...


class InferenceStage:
    """Black-box wrapper around the detector runtime.

    Runtime failures are logged and reported as an empty observation list so a
    stalled or broken model never takes the pipeline down.
    """

    def __init__(
        self,
        runtime: DetectorRuntime | Callable[[Any], list[Any]],
        bbox_origin: str = "top_left",
    ) -> None:
        if bbox_origin not in ("top_left", "bottom_left"):
            raise ValueError(f"Unsupported bbox origin: {bbox_origin!r}")
        self._runtime = runtime
        self._bbox_origin = bbox_origin
        self._lock = threading.Lock()
        self._calls = 0
        self._failures = 0

    def infer(self, frame: Any) -> list[RawObservation]:
        with self._lock:
            self._calls += 1
        try:
            detect = getattr(self._runtime, "detect", None)
            raw = detect(frame) if callable(detect) else self._runtime(frame)
        except Exception:
            with self._lock:
                self._failures += 1
            logger.exception("[INFERENCE] Runtime failed; treating frame as empty")
            return []

        if raw is None:
            return []
        observations: list[RawObservation] = []
        for item in raw if isinstance(raw, (list, tuple)) else [raw]:
            observation = self._convert(item)
            if observation is not None:
                observations.append(observation)
        return observations

    def get_runtime_status(self) -> dict[str, int]:
        with self._lock:
            return {"calls": self._calls, "failures": self._failures}

    def _convert(self, raw: Any) -> RawObservation | None:
        if isinstance(raw, RawObservation):
            return raw

        payload = self._to_mapping(raw)
        if payload is None:
            return None

        bbox = self._extract_bbox(payload)
        if bbox is None:
            logger.debug("[INFERENCE] Skipping payload without a usable box: %s", payload)
            return None
        if self._bbox_origin == "top_left":
            x, y, w, h = bbox
            bbox = (x, max(0.0, 1.0 - y - h), w, h)

        metadata = {k: v for k, v in payload.items() if k not in _KNOWN_FIELDS}
        return RawObservation(
            label=self._extract_label(payload),
            confidence=self._extract_confidence(payload),
            bbox=bbox,
            metadata=metadata,
        )

    def _to_mapping(self, raw: Any) -> dict[str, Any] | None:
        if isinstance(raw, dict):
            return raw

        mapping: dict[str, Any] = {}
        for field in _KNOWN_FIELDS:
            if hasattr(raw, field):
                mapping[field] = getattr(raw, field)
        return mapping or None

    def _extract_confidence(self, payload: dict[str, Any]) -> float:
        value = next((payload[key] for key in CONFIDENCE_KEYS if key in payload), 0.0)
        confidence = _to_finite_float(value)
        if confidence is None:
            return 0.0
        return max(0.0, min(1.0, confidence))

    def _extract_label(self, payload: dict[str, Any]) -> str:
        value = next((payload[key] for key in LABEL_KEYS if payload.get(key) is not None), None)
        label = str(value).strip() if value is not None else ""
        return label or "unknown"

    def _extract_bbox(self, payload: dict[str, Any]) -> BBox | None:
        raw_bbox = next((payload[key] for key in BOX_KEYS if key in payload), None)

        if isinstance(raw_bbox, (list, tuple)) and len(raw_bbox) >= 4:
            values = [_to_finite_float(v) for v in raw_bbox[:4]]
            if None in values:
                return None
            return _normalize_bbox(*values)

        if set(CORNER_KEYS).issubset(payload.keys()):
            xmin, ymin, xmax, ymax = (_to_finite_float(payload[key]) for key in CORNER_KEYS)
            if None in (xmin, ymin, xmax, ymax):
                return None
            return _normalize_bbox(xmin, ymin, xmax - xmin, ymax - ymin)

        if "x" not in payload or "y" not in payload:
            return None
        x = _to_finite_float(payload.get("x"))
        y = _to_finite_float(payload.get("y"))
        w = _to_finite_float(payload.get("w", payload.get("width", 0.0)))
        h = _to_finite_float(payload.get("h", payload.get("height", 0.0)))
        if None in (x, y, w, h):
            return None
        return _normalize_bbox(x, y, w, h)


class Imx500Runtime:
    """Read on-sensor detections that picamera2 attaches to frame metadata."""

    def detect(self, frame: Any) -> list[Any]:
        metadata = getattr(frame, "metadata", None)
        if not isinstance(metadata, dict):
            return []
        for key in METADATA_DETECTION_KEYS:
            candidate = metadata.get(key)
            if candidate is not None:
                return list(candidate) if isinstance(candidate, (list, tuple)) else [candidate]
        return []


def _to_finite_float(value: Any) -> float | None:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _normalize_bbox(x: float, y: float, w: float, h: float) -> BBox:
    x = max(0.0, min(1.0, x))
    y = max(0.0, min(1.0, y))
    w = max(0.0, min(1.0 - x, w))
    h = max(0.0, min(1.0 - y, h))
    return (x, y, w, h)
