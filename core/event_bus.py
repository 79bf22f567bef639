"""Thread-safe message bus feeding the single search-state owner."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
import threading
import time
from typing import Any, Deque, Iterable

from core.logging import logger as LOGGER


PRIORITIES = {"critical": 3, "high": 2, "normal": 1, "low": 0}


@dataclass(frozen=True)
class Event:
    """Message posted by a producer thread for the pipeline owner."""

    source: str
    kind: str
    priority: str = "normal"
    payload: Any = None
    metadata: dict[str, object] = field(default_factory=dict)
    dedupe_key: str | None = None
    ttl_s: float | None = None
    created_at: float = field(default_factory=time.monotonic)

    def is_expired(self, now: float | None = None) -> bool:
        if self.ttl_s is None:
            return False
        if now is None:
            now = time.monotonic()
        return now - self.created_at > self.ttl_s


class EventBus:
    """Thread-safe queue for pending pipeline messages."""

    def __init__(self, maxlen: int = 200) -> None:
        self._maxlen = maxlen
        self._lock = threading.Lock()
        self._cond = threading.Condition(self._lock)
        self._queue: Deque[Event] = deque()
        self._closed = False

    def publish(self, event: Event, *, coalesce: bool = False) -> None:
        with self._cond:
            if self._closed:
                LOGGER.debug("[BUS] Closed; ignoring %s/%s", event.source, event.kind)
                return
            if coalesce and event.dedupe_key:
                self._remove_matching(event.dedupe_key)
            if len(self._queue) >= self._maxlen:
                dropped = self._queue.popleft()
                LOGGER.warning("[BUS] Full; dropping oldest event from %s.", dropped.source)
            self._queue.append(event)
            self._cond.notify()

    def get_next(self, timeout: float | None = None) -> Event | None:
        with self._cond:
            if not self._queue and not self._closed:
                self._cond.wait(timeout=timeout)
            while self._queue:
                event = self._pop_highest_priority()
                if event.is_expired():
                    LOGGER.debug("[BUS] Dropping expired %s/%s", event.source, event.kind)
                    continue
                return event
            return None

    def drain(self) -> Iterable[Event]:
        with self._cond:
            events = list(self._queue)
            self._queue.clear()
            return events

    def pending(self) -> int:
        with self._cond:
            return len(self._queue)

    def notify(self) -> None:
        with self._cond:
            self._cond.notify_all()

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def is_closed(self) -> bool:
        with self._cond:
            return self._closed

    def _remove_matching(self, dedupe_key: str) -> None:
        if not self._queue:
            return
        for index, event in enumerate(self._queue):
            if event.dedupe_key == dedupe_key:
                del self._queue[index]
                return

    def _pop_highest_priority(self) -> Event:
        if len(self._queue) == 1:
            return self._queue.popleft()
        best_index = 0
        best_score = -1
        for index, event in enumerate(self._queue):
            score = PRIORITIES.get(event.priority, 1)
            if score > best_score:
                best_score = score
                best_index = index
                if best_score == 3:
                    break
        if best_index == 0:
            return self._queue.popleft()
        event = self._queue[best_index]
        del self._queue[best_index]
        return event
