"""Thermal level model and the frame-skip governor derived from it."""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable

from core.logging import logger


class ThermalLevel(str, Enum):
    """Discrete device heat states, coolest first."""

    NOMINAL = "nominal"
    FAIR = "fair"
    SERIOUS = "serious"
    CRITICAL = "critical"


SKIP_INTERVALS: dict[ThermalLevel, int] = {
    ThermalLevel.NOMINAL: 5,
    ThermalLevel.FAIR: 8,
    ThermalLevel.SERIOUS: 12,
    ThermalLevel.CRITICAL: 20,
}
DEFAULT_SKIP_INTERVAL = 10


def coerce_level(value: Any) -> ThermalLevel | None:
    """Return the matching level for an enum, name or value, else ``None``."""

    if isinstance(value, ThermalLevel):
        return value
    if isinstance(value, str):
        key = value.strip().lower()
        for level in ThermalLevel:
            if key in (level.value, level.name.lower()):
                return level
    return None


def skip_interval_for(level: Any) -> int:
    """Frames to skip between inference attempts for ``level``.

    Unrecognized levels fall back to :data:`DEFAULT_SKIP_INTERVAL`.
    """

    resolved = coerce_level(level)
    if resolved is None:
        return DEFAULT_SKIP_INTERVAL
    return SKIP_INTERVALS[resolved]


class ThermalGovernor:
    """Track the latest thermal level and expose the current skip interval.

    Updates may come from any thread; readers tolerate a one-frame stale value.
    """

    def __init__(
        self,
        initial_level: Any = ThermalLevel.NOMINAL,
        provider: Callable[[], Any] | None = None,
    ) -> None:
        self._provider = provider
        self._level: Any = initial_level
        self._interval = skip_interval_for(initial_level)
        if provider is not None:
            self.refresh()

    @property
    def level(self) -> Any:
        return self._level

    def current_skip_interval(self) -> int:
        return self._interval

    def update_level(self, level: Any) -> int:
        """Apply a new thermal level and return the resulting interval."""

        interval = skip_interval_for(level)
        previous = self._interval
        self._level = level
        self._interval = interval
        if interval != previous:
            label = level.value if isinstance(level, ThermalLevel) else repr(level)
            logger.info("[THERMAL] %s - frame skip: %s", label, interval)
        return interval

    def refresh(self) -> int:
        """Poll the injected provider, if any, and apply its level."""

        if self._provider is None:
            return self._interval
        try:
            level = self._provider()
        except Exception:
            logger.exception("[THERMAL] Level provider failed; keeping interval %s", self._interval)
            return self._interval
        return self.update_level(level)

    def handle_status_event(self, event: Any) -> None:
        """Handler suitable for :meth:`ThermalMonitor.register_event_handler`."""

        self.update_level(getattr(event, "level", None))
