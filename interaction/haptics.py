"""Haptic cue patterns driven by search feedback events."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import time
from typing import Callable, Protocol

from config.settings import FeedbackSettings
from core.logging import logger
from interaction.feedback import FeedbackEvent, FeedbackKind

SUCCESS_DEBOUNCE_S = 1.5


class HapticStyle(str, Enum):
    LIGHT = "light"
    MEDIUM = "medium"
    HEAVY = "heavy"
    SELECTION = "selection"
    ERROR = "error"


@dataclass(frozen=True)
class HapticPulse:
    """One pulse, played ``delay_s`` after the start of its pattern."""

    style: HapticStyle
    delay_s: float = 0.0


SUCCESS_PATTERN = (HapticPulse(HapticStyle.HEAVY), HapticPulse(HapticStyle.HEAVY, 0.15))
WARNING_PATTERN = (
    HapticPulse(HapticStyle.LIGHT),
    HapticPulse(HapticStyle.LIGHT, 0.1),
    HapticPulse(HapticStyle.LIGHT, 0.2),
)
ERROR_PATTERN = (HapticPulse(HapticStyle.ERROR),)
SELECTION_PATTERN = (HapticPulse(HapticStyle.SELECTION),)

INTENSITY_STYLES = {0: HapticStyle.LIGHT, 1: HapticStyle.MEDIUM, 2: HapticStyle.HEAVY}


class HapticDriver(Protocol):
    def play(self, pattern: tuple[HapticPulse, ...]) -> None:
        ...


class LoggingHapticDriver:
    """Driver that records and logs patterns instead of vibrating."""

    def __init__(self) -> None:
        self.played: list[tuple[HapticPulse, ...]] = []

    def play(self, pattern: tuple[HapticPulse, ...]) -> None:
        self.played.append(pattern)
        logger.debug("[HAPTIC] %s", ", ".join(f"{p.style.value}@{p.delay_s:.2f}s" for p in pattern))


class HapticController:
    """Map feedback events and UI actions onto haptic patterns."""

    def __init__(
        self,
        driver: HapticDriver,
        settings: FeedbackSettings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._driver = driver
        self.settings = settings or FeedbackSettings()
        self._clock = clock
        self._last_success: float | None = None

    def handle_event(self, event: FeedbackEvent) -> None:
        if event.kind in (FeedbackKind.SEARCH_STARTED, FeedbackKind.SEARCH_CLEARED):
            self.reset_debounce()
            self.trigger_selection()
        elif event.kind is FeedbackKind.FIRST_FIND:
            self.trigger_success()

    def trigger_success(self) -> bool:
        if not self.settings.haptic_enabled:
            return False
        now = self._clock()
        if self._last_success is not None and (now - self._last_success) < SUCCESS_DEBOUNCE_S:
            return False
        self._last_success = now
        return self._play(SUCCESS_PATTERN)

    def trigger_warning(self) -> bool:
        return self._play(WARNING_PATTERN)

    def trigger_error(self) -> bool:
        return self._play(ERROR_PATTERN)

    def trigger_selection(self) -> bool:
        return self._play(SELECTION_PATTERN)

    def trigger_impact(self) -> bool:
        style = INTENSITY_STYLES.get(self.settings.haptic_intensity, HapticStyle.MEDIUM)
        return self._play((HapticPulse(style),))

    def trigger_distance(self, intensity: float) -> bool:
        """Stronger pulse the closer the object is (0.0 far, 1.0 touching)."""

        if intensity > 0.8:
            style = HapticStyle.HEAVY
        elif intensity > 0.4:
            style = HapticStyle.MEDIUM
        else:
            style = HapticStyle.LIGHT
        return self._play((HapticPulse(style),))

    def reset_debounce(self) -> None:
        self._last_success = None

    def _play(self, pattern: tuple[HapticPulse, ...]) -> bool:
        if not self.settings.haptic_enabled:
            return False
        try:
            self._driver.play(pattern)
        except Exception:
            logger.exception("[HAPTIC] Driver failed to play pattern")
            return False
        return True
