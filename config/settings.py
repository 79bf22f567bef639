"""Typed settings snapshots built from the loaded YAML configuration.

Components never read :class:`ConfigController` directly. The entry point builds
these frozen dataclasses once and passes them into the pipeline, so tests can
construct them with literal values.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from core.logging import logger


SUPPORTED_LANGUAGES = ("tr", "en")


def _clamp(name: str, value: float, low: float, high: float) -> float:
    if value < low or value > high:
        clamped = max(low, min(high, value))
        logger.warning(
            "[CONFIG] %s=%s outside [%s, %s]; using %s", name, value, low, high, clamped
        )
        return clamped
    return value


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


@dataclass(frozen=True)
class FeedbackSettings:
    """User preferences for detection, speech and haptic feedback."""

    audio_enabled: bool = True
    speech_rate: float = 0.52
    speech_pitch: float = 1.0
    haptic_enabled: bool = True
    haptic_intensity: int = 1
    confidence_threshold: float = 0.4
    debounce_interval: float = 3.0
    feedback_language: str = "tr"

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "FeedbackSettings":
        """Build settings from the flat config keys, clamping to documented ranges."""

        defaults = cls()
        language = str(config.get("feedbackLanguage", defaults.feedback_language)).strip().lower()
        if language not in SUPPORTED_LANGUAGES:
            logger.warning("[CONFIG] Unsupported feedbackLanguage=%r; using 'tr'", language)
            language = "tr"

        return cls(
            audio_enabled=_as_bool(config.get("audioEnabled"), defaults.audio_enabled),
            speech_rate=_clamp(
                "speechRate", float(config.get("speechRate", defaults.speech_rate)), 0.3, 0.7
            ),
            speech_pitch=_clamp(
                "speechPitch", float(config.get("speechPitch", defaults.speech_pitch)), 0.8, 1.2
            ),
            haptic_enabled=_as_bool(config.get("hapticEnabled"), defaults.haptic_enabled),
            haptic_intensity=int(
                _clamp(
                    "hapticIntensity",
                    int(config.get("hapticIntensity", defaults.haptic_intensity)),
                    0,
                    2,
                )
            ),
            confidence_threshold=_clamp(
                "confidenceThreshold",
                float(config.get("confidenceThreshold", defaults.confidence_threshold)),
                0.3,
                0.9,
            ),
            debounce_interval=_clamp(
                "debounceInterval",
                float(config.get("debounceInterval", defaults.debounce_interval)),
                1.0,
                5.0,
            ),
            feedback_language=language,
        )

    @property
    def speech_locale(self) -> str:
        return "tr-TR" if self.feedback_language == "tr" else "en-US"


@dataclass(frozen=True)
class ThermalSettings:
    """Thermal sensor location, thresholds and polling period."""

    enabled: bool = True
    zone_path: str = "/sys/class/thermal/thermal_zone0/temp"
    fair_c: float = 60.0
    serious_c: float = 70.0
    critical_c: float = 80.0
    poll_period_s: float = 5.0

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "ThermalSettings":
        section = config.get("thermal") or {}
        defaults = cls()
        return cls(
            enabled=_as_bool(section.get("enabled"), defaults.enabled),
            zone_path=str(section.get("zone_path", defaults.zone_path)),
            fair_c=float(section.get("fair_c", defaults.fair_c)),
            serious_c=float(section.get("serious_c", defaults.serious_c)),
            critical_c=float(section.get("critical_c", defaults.critical_c)),
            poll_period_s=max(float(section.get("poll_period_s", defaults.poll_period_s)), 0.5),
        )


@dataclass(frozen=True)
class CameraSettings:
    """Capture size and source frame rate for the camera frame source."""

    enabled: bool = True
    width: int = 640
    height: int = 480
    fps: int = 30

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "CameraSettings":
        section = config.get("camera") or {}
        defaults = cls()
        return cls(
            enabled=_as_bool(section.get("enabled"), defaults.enabled),
            width=int(section.get("width", defaults.width)),
            height=int(section.get("height", defaults.height)),
            fps=max(int(section.get("fps", defaults.fps)), 1),
        )


@dataclass(frozen=True)
class InferenceSettings:
    """Runtime model selection and box conventions."""

    model: str = "yolo11n_pp"
    bbox_origin: str = "top_left"

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "InferenceSettings":
        section = config.get("inference") or {}
        defaults = cls()
        origin = str(section.get("bbox_origin", defaults.bbox_origin))
        if origin not in ("top_left", "bottom_left"):
            logger.warning("[CONFIG] Unknown inference.bbox_origin=%r; using top_left", origin)
            origin = "top_left"
        return cls(model=str(section.get("model", defaults.model)), bbox_origin=origin)


@dataclass(frozen=True)
class PipelineSettings:
    """Search pipeline queue size and standard announcement toggle."""

    announce_other_objects: bool = False
    bus_maxlen: int = 200

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "PipelineSettings":
        section = config.get("pipeline") or {}
        defaults = cls()
        return cls(
            announce_other_objects=_as_bool(
                section.get("announce_other_objects"), defaults.announce_other_objects
            ),
            bus_maxlen=max(int(section.get("bus_maxlen", defaults.bus_maxlen)), 1),
        )
