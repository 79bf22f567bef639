"""Single-writer search pipeline: the only thread that mutates search state."""

from __future__ import annotations

import threading
from typing import Any

from core.event_bus import Event, EventBus
from core.logging import logger as LOGGER
from interaction.announcer import Announcer
from vision.detections import DetectionBatch
from vision.target import SearchState, TargetStateMachine


KIND_SET_TARGET = "set_target"
KIND_CLEAR = "clear"
KIND_DETECTIONS = "detections"
DETECTIONS_DEDUPE_KEY = "detections"


class SearchPipeline:
    """Serialize commands and detection batches onto one worker thread.

    Producers (the inference worker, voice callbacks, the CLI) only publish to
    the bus. Commands go out at high priority so a clear overtakes batches that
    are still pending; only the newest pending batch is kept.
    """

    def __init__(
        self,
        state_machine: TargetStateMachine,
        event_bus: EventBus | None = None,
        announcer: Announcer | None = None,
        announce_other_objects: bool = False,
    ) -> None:
        self._state_machine = state_machine
        self._event_bus = event_bus or EventBus()
        self._announcer = announcer
        self._announce_other_objects = announce_other_objects
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._batches_applied = 0
        self._commands_applied = 0

    @property
    def state_machine(self) -> TargetStateMachine:
        return self._state_machine

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    def get_state(self) -> SearchState:
        return self._state_machine.get_state()

    # Producer side -------------------------------------------------------

    def set_target(self, target: str | None) -> None:
        self._event_bus.publish(
            Event(source="command", kind=KIND_SET_TARGET, priority="high", payload=target)
        )

    def clear(self) -> None:
        self._event_bus.publish(Event(source="command", kind=KIND_CLEAR, priority="high"))

    def submit_batch(self, batch: DetectionBatch) -> None:
        self._event_bus.publish(
            Event(
                source="inference",
                kind=KIND_DETECTIONS,
                payload=batch,
                dedupe_key=DETECTIONS_DEDUPE_KEY,
            ),
            coalesce=True,
        )

    # Consumer side -------------------------------------------------------

    def start(self) -> None:
        if self._thread is None or not self._thread.is_alive():
            self._stop_event.clear()
            self._thread = threading.Thread(target=self._run, name="search-pipeline", daemon=True)
            self._thread.start()
            LOGGER.info("[PIPELINE] Worker started")

    def stop(self, timeout_s: float = 2.0) -> None:
        self._stop_event.set()
        self._event_bus.notify()
        if self._thread is not None:
            self._thread.join(timeout=timeout_s)
            if self._thread.is_alive():
                LOGGER.warning("[PIPELINE] Worker did not exit within %.2fs", timeout_s)
                return
            self._thread = None
            LOGGER.info("[PIPELINE] Worker stopped")

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def process_pending(self) -> int:
        """Apply every queued message on the calling thread; returns how many were applied."""

        applied = 0
        while True:
            event = self._event_bus.get_next(timeout=0)
            if event is None:
                return applied
            self._dispatch(event)
            applied += 1

    def get_runtime_status(self) -> dict[str, Any]:
        state = self._state_machine.get_state()
        return {
            "running": self.is_running(),
            "pending": self._event_bus.pending(),
            "batches_applied": self._batches_applied,
            "commands_applied": self._commands_applied,
            "phase": state.phase.value,
            "target": state.target,
        }

    def _run(self) -> None:
        while not self._stop_event.is_set():
            event = self._event_bus.get_next(timeout=0.5)
            if event is None:
                continue
            self._dispatch(event)

    def _dispatch(self, event: Event) -> None:
        try:
            self._apply(event)
        except Exception as exc:
            LOGGER.exception("[PIPELINE] Failed to apply %s/%s: %s", event.source, event.kind, exc)

    def _apply(self, event: Event) -> None:
        if event.kind == KIND_SET_TARGET:
            self._commands_applied += 1
            self._state_machine.set_target(event.payload)
        elif event.kind == KIND_CLEAR:
            self._commands_applied += 1
            self._state_machine.clear()
        elif event.kind == KIND_DETECTIONS:
            self._batches_applied += 1
            batch: DetectionBatch = event.payload
            self._state_machine.process_batch(batch)
            self._announce_others(batch)
        else:
            LOGGER.warning("[PIPELINE] Unknown message kind %r from %s", event.kind, event.source)

    def _announce_others(self, batch: DetectionBatch) -> None:
        if self._announcer is None or not self._announce_other_objects:
            return
        target = self._state_machine.target
        for detected in batch.objects:
            if target is not None and target in detected.label.lower():
                continue
            self._announcer.announce_object(detected)
