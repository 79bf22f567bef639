"""Outbound feedback events raised by the search state machine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import time
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from vision.detections import DetectedObject


class FeedbackKind(str, Enum):
    """Kinds of user-facing feedback."""

    SEARCH_STARTED = "search_started"
    SEARCH_CLEARED = "search_cleared"
    FIRST_FIND = "first_find"
    POSITION_UPDATE = "position_update"
    LOST = "lost"
    STANDARD_ANNOUNCE = "standard_announce"


@dataclass(frozen=True)
class FeedbackEvent:
    """Single feedback notification for speech, haptics or UI subscribers."""

    kind: FeedbackKind
    target: str | None = None
    detected_object: DetectedObject | None = None
    timestamp: float = 0.0

    @classmethod
    def for_object(
        cls,
        kind: FeedbackKind,
        detected_object: DetectedObject,
        target: str | None = None,
        timestamp: float | None = None,
    ) -> "FeedbackEvent":
        return cls(
            kind=kind,
            target=target,
            detected_object=detected_object,
            timestamp=time.monotonic() if timestamp is None else timestamp,
        )

    @property
    def label(self) -> str | None:
        if self.detected_object is not None:
            return self.detected_object.label
        return self.target

    @property
    def confidence_percent(self) -> int | None:
        if self.detected_object is None:
            return None
        return self.detected_object.confidence_percent

    @property
    def spatial_position(self) -> str | None:
        if self.detected_object is None:
            return None
        return self.detected_object.spatial_position


FeedbackHandler = Callable[[FeedbackEvent], None]
