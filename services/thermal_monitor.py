"""Thermal monitor that samples a heat source and reports level changes."""

from __future__ import annotations

from dataclasses import dataclass
import threading
import time
from typing import Callable, Iterable

from core.logging import logger as LOGGER
from vision.thermal import ThermalLevel, coerce_level


@dataclass(frozen=True)
class ThermalStatusEvent:
    """Thermal level change notification; ``level`` is None for an unrecognized reading."""

    timestamp: float
    level: ThermalLevel | None
    previous_level: ThermalLevel | None = None
    temperature_c: float | None = None


class ThermalMonitor:
    """Background sampling loop around a ``read_level`` source."""

    def __init__(
        self,
        read_level: Callable[[], object],
        read_temperature: Callable[[], float] | None = None,
    ) -> None:
        self._read_level = read_level
        self._read_temperature = read_temperature
        self._stop_event = threading.Event()
        self._loop_thread: threading.Thread | None = None
        self._lock = threading.Lock()
        self._latest_event: ThermalStatusEvent | None = None
        self._event_handlers: set[Callable[[ThermalStatusEvent], None]] = set()
        self._loop_period_s = 5.0

    def start_loop(self, loop_period_s: float = 5.0) -> None:
        if self._loop_thread is None or not self._loop_thread.is_alive():
            self._loop_period_s = max(loop_period_s, 0.5)
            self._stop_event.clear()
            self._loop_thread = threading.Thread(
                target=self._loop,
                name="thermal-monitor",
                daemon=True,
            )
            self._loop_thread.start()

    def stop_loop(self, timeout_s: float = 2.0) -> None:
        if self._loop_thread is not None:
            self._stop_event.set()
            self._loop_thread.join(timeout=timeout_s)
            if self._loop_thread.is_alive():
                LOGGER.warning(
                    "[THERMAL] Loop thread did not exit within %.2fs; continuing shutdown.",
                    timeout_s,
                )
                return
            self._loop_thread = None

    def is_loop_alive(self) -> bool:
        return self._loop_thread is not None and self._loop_thread.is_alive()

    def get_latest_event(self) -> ThermalStatusEvent | None:
        with self._lock:
            return self._latest_event

    def register_event_handler(self, handler: Callable[[ThermalStatusEvent], None]) -> None:
        self._event_handlers.add(handler)

    def unregister_event_handler(self, handler: Callable[[ThermalStatusEvent], None]) -> None:
        self._event_handlers.discard(handler)

    def sample(self) -> ThermalStatusEvent | None:
        """Read the source once; returns the emitted event when the level changed."""

        raw_level = self._read_level()
        level = coerce_level(raw_level)
        if level is None:
            LOGGER.warning("[THERMAL] Unrecognized level %r from source; reporting unknown", raw_level)

        temperature = None
        if self._read_temperature is not None:
            try:
                temperature = float(self._read_temperature())
            except Exception:
                LOGGER.debug("[THERMAL] Temperature read failed", exc_info=True)

        with self._lock:
            previous = self._latest_event
            if previous is not None and previous.level is level:
                return None
            event = ThermalStatusEvent(
                timestamp=time.time(),
                level=level,
                previous_level=previous.level if previous else None,
                temperature_c=temperature,
            )
            self._latest_event = event

        self._emit_events([event])
        return event

    def _loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.sample()
            except Exception as exc:
                LOGGER.exception("[THERMAL] Error in loop (retrying): %s", exc)
            self._stop_event.wait(timeout=self._loop_period_s)

    def _emit_events(self, events: Iterable[ThermalStatusEvent]) -> None:
        handlers = list(self._event_handlers)
        for event in events:
            LOGGER.info(
                "[THERMAL] Level %s -> %s (temp=%s)",
                event.previous_level.value if event.previous_level else "none",
                event.level.value if event.level else "unknown",
                f"{event.temperature_c:.1f}C" if event.temperature_c is not None else "n/a",
            )
            for handler in handlers:
                try:
                    handler(event)
                except Exception as exc:
                    LOGGER.exception("[THERMAL] Event handler failed: %s", exc)
