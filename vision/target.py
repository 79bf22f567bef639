"""Target acquisition state machine with debounced announcements."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import time
from typing import Callable

from core.logging import logger
from interaction.feedback import FeedbackEvent, FeedbackHandler, FeedbackKind
from vision.detections import DetectedObject, DetectionBatch

TARGET_DEBOUNCE_S = 5.0
LOST_KEY_PREFIX = "lost_"


class SearchPhase(str, Enum):
    """High-level search modes."""

    IDLE = "idle"
    SEARCHING = "searching"
    FOUND = "found"
    LOST = "lost"


@dataclass(frozen=True)
class SearchState:
    """Snapshot of the search state."""

    phase: SearchPhase = SearchPhase.IDLE
    target: str | None = None
    last_object: DetectedObject | None = None

    @property
    def found(self) -> bool:
        return self.phase is SearchPhase.FOUND


class AnnouncementLedger:
    """Last emission time per announcement key."""

    def __init__(self) -> None:
        self._entries: dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str) -> float | None:
        return self._entries.get(key)

    def allows(self, key: str, now: float, window_s: float) -> bool:
        """Return whether ``key`` has no emission within the last ``window_s`` seconds."""

        last = self._entries.get(key)
        return last is None or (now - last) >= window_s

    def record(self, key: str, now: float) -> None:
        last = self._entries.get(key)
        if last is not None and now < last:
            return
        self._entries[key] = now

    def clear(self) -> None:
        self._entries.clear()


def normalize_target(target: str | None) -> str | None:
    if target is None:
        return None
    cleaned = target.strip().lower()
    return cleaned or None


class TargetStateMachine:
    """Own the search target, found/lost state and target announcement debounce.

    All mutations must come from one execution context; the pipeline worker is
    the only caller in the running application.
    """

    def __init__(
        self,
        debounce_s: float = TARGET_DEBOUNCE_S,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._debounce_s = debounce_s
        self._clock = clock
        self._phase = SearchPhase.IDLE
        self._target: str | None = None
        self._found = False
        self._last_object: DetectedObject | None = None
        self._last_batch: DetectionBatch | None = None
        self.ledger = AnnouncementLedger()
        self._event_handlers: list[FeedbackHandler] = []

    @property
    def target(self) -> str | None:
        return self._target

    @property
    def found(self) -> bool:
        return self._found

    @property
    def last_batch(self) -> DetectionBatch | None:
        return self._last_batch

    def get_state(self) -> SearchState:
        return SearchState(
            phase=self._phase,
            target=self._target,
            last_object=self._last_object if self._found else None,
        )

    def register_event_handler(self, handler: FeedbackHandler) -> None:
        if handler not in self._event_handlers:
            self._event_handlers.append(handler)

    def unregister_event_handler(self, handler: FeedbackHandler) -> None:
        if handler in self._event_handlers:
            self._event_handlers.remove(handler)

    def set_target(self, target: str | None) -> bool:
        """Change the search target; returns whether anything changed."""

        target = normalize_target(target)
        if target is None:
            if self._phase is SearchPhase.IDLE and self._target is None:
                return False
            self._reset_search(None)
            self._transition(SearchPhase.IDLE, "target cleared")
            return True

        if target == self._target:
            logger.debug("[TARGET] Ignoring repeated target %r", target)
            return False

        self._reset_search(target)
        self._transition(SearchPhase.SEARCHING, f"target={target}")
        self._emit(FeedbackEvent(kind=FeedbackKind.SEARCH_STARTED, target=target, timestamp=self._clock()))
        return True

    def clear(self) -> None:
        self.set_target(None)
        self._emit(FeedbackEvent(kind=FeedbackKind.SEARCH_CLEARED, timestamp=self._clock()))

    def process_batch(self, batch: DetectionBatch, now: float | None = None) -> SearchState:
        """Apply one filtered detection batch and emit any resulting feedback."""

        self._last_batch = batch
        target = self._target
        if target is None:
            return self.get_state()

        now = self._clock() if now is None else now
        match = self._find_match(batch, target)

        if match is not None and not self._found:
            self._found = True
            self._last_object = match
            self._transition(SearchPhase.FOUND, f"{match.label} {match.spatial_position}")
            self.ledger.record(match.label, now)
            self._emit(FeedbackEvent.for_object(FeedbackKind.FIRST_FIND, match, target, now))

        elif match is not None:
            self._last_object = match
            if self.ledger.allows(match.label, now, self._debounce_s):
                self.ledger.record(match.label, now)
                self._emit(FeedbackEvent.for_object(FeedbackKind.POSITION_UPDATE, match, target, now))

        elif self._found:
            self._found = False
            self._last_object = None
            self._transition(SearchPhase.LOST, "no match in batch")
            lost_key = f"{LOST_KEY_PREFIX}{target}"
            if self.ledger.allows(lost_key, now, self._debounce_s):
                self.ledger.record(lost_key, now)
                self._emit(FeedbackEvent(kind=FeedbackKind.LOST, target=target, timestamp=now))

        return self.get_state()

    def _find_match(self, batch: DetectionBatch, target: str) -> DetectedObject | None:
        for detected in batch.objects:
            if target in detected.label.lower():
                return detected
        return None

    def _reset_search(self, target: str | None) -> None:
        self._target = target
        self._found = False
        self._last_object = None
        self.ledger.clear()

    def _transition(self, new_phase: SearchPhase, reason: str) -> None:
        old_phase = self._phase
        self._phase = new_phase
        if old_phase is new_phase:
            return
        logger.info("[TARGET] %s -> %s (%s)", old_phase.value, new_phase.value, reason)

    def _emit(self, event: FeedbackEvent) -> None:
        for handler in list(self._event_handlers):
            try:
                handler(event)
            except Exception as exc:
                logger.exception("[TARGET] Feedback handler failed for %s: %s", event.kind.value, exc)
