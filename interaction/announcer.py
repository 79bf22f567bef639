"""Spoken announcements for search feedback and non-target objects."""

from __future__ import annotations

import time
from typing import Callable

from config.settings import FeedbackSettings
from core.logging import logger
from interaction.feedback import FeedbackEvent, FeedbackKind
from interaction.speech import Speaker
from vision.detections import DetectedObject


PHRASES = {
    "tr": {
        "left": "solunuzda",
        "right": "sağınızda",
        "ahead": "önünüzde",
        "lower": "alt kısımda",
        "upper": "üst kısımda",
        "very_close": "çok yakın",
        "close": "yakın",
        "far": "uzakta",
        "first_find": "{label} bulundu. {position}. Yüzde {confidence} güven oranı.",
        "position_update": "{label} şimdi {position}",
        "lost": "{label} artık görünmüyor. Bulmak için kameranızı hareket ettirin.",
        "search_started": "{label} aranıyor",
        "search_cleared": "Arama temizlendi",
        "standard": "{label}, {position}",
    },
    "en": {
        "left": "on your left",
        "right": "on your right",
        "ahead": "in front of you",
        "lower": "lower part",
        "upper": "upper part",
        "very_close": "very close",
        "close": "close",
        "far": "far away",
        "first_find": "Found {label}. {position}. {confidence} percent confidence.",
        "position_update": "{label} now {position}",
        "lost": "{label} is no longer visible. Move your camera to find it.",
        "search_started": "Searching for {label}",
        "search_cleared": "Search cleared",
        "standard": "{label}, {position}",
    },
}


def describe_position(detected: DetectedObject, language: str = "tr") -> str:
    """Return a spoken direction and distance hint for ``detected``."""

    words = PHRASES.get(language, PHRASES["tr"])
    cx, cy = detected.center

    if cx < 0.33:
        horizontal = words["left"]
    elif cx > 0.67:
        horizontal = words["right"]
    else:
        horizontal = words["ahead"]

    vertical = ""
    if cy < 0.33:
        vertical = words["lower"]
    elif cy > 0.67:
        vertical = words["upper"]

    size = detected.area
    if size > 0.25:
        distance = words["very_close"]
    elif size > 0.1:
        distance = words["close"]
    elif size > 0.02:
        distance = ""
    else:
        distance = words["far"]

    parts = [horizontal]
    if vertical and horizontal != words["ahead"]:
        parts.append(vertical)
    if distance:
        parts.append(distance)
    return ", ".join(parts)


class Announcer:
    """Render feedback events as speech, honouring the user's audio settings."""

    def __init__(
        self,
        speaker: Speaker,
        settings: FeedbackSettings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._speaker = speaker
        self.settings = settings or FeedbackSettings()
        self._clock = clock
        self._last_standard: dict[str, float] = {}

    def handle_event(self, event: FeedbackEvent) -> None:
        """Handler suitable for :meth:`TargetStateMachine.register_event_handler`."""

        if event.kind in (FeedbackKind.SEARCH_STARTED, FeedbackKind.SEARCH_CLEARED):
            self.reset()
        text = self.render(event)
        if text:
            self._speak(text)

    def render(self, event: FeedbackEvent) -> str | None:
        words = PHRASES.get(self.settings.feedback_language, PHRASES["tr"])
        detected = event.detected_object

        if event.kind is FeedbackKind.SEARCH_STARTED:
            return words["search_started"].format(label=event.target)
        if event.kind is FeedbackKind.SEARCH_CLEARED:
            return words["search_cleared"]
        if event.kind is FeedbackKind.LOST:
            return words["lost"].format(label=event.label)
        if detected is None:
            return None

        label = detected.label.capitalize()
        position = describe_position(detected, self.settings.feedback_language)
        if event.kind is FeedbackKind.FIRST_FIND:
            return words["first_find"].format(
                label=label,
                position=position,
                confidence=detected.confidence_percent,
            )
        if event.kind is FeedbackKind.POSITION_UPDATE:
            return words["position_update"].format(label=label, position=position)
        return words["standard"].format(label=label, position=position)

    def announce_object(self, detected: DetectedObject, now: float | None = None) -> bool:
        """Announce a non-target object unless it was announced within the debounce interval."""

        now = self._clock() if now is None else now
        last = self._last_standard.get(detected.label)
        if last is not None and (now - last) < self.settings.debounce_interval:
            return False
        self._last_standard[detected.label] = now
        event = FeedbackEvent.for_object(FeedbackKind.STANDARD_ANNOUNCE, detected, timestamp=now)
        text = self.render(event)
        if text:
            self._speak(text)
        return True

    def reset(self) -> None:
        self._last_standard.clear()

    def _speak(self, text: str) -> None:
        if not self.settings.audio_enabled:
            logger.debug("[ANNOUNCE] Audio disabled; skipping %r", text)
            return
        try:
            self._speaker.speak(
                text,
                rate=self.settings.speech_rate,
                pitch=self.settings.speech_pitch,
                language=self.settings.speech_locale,
            )
        except Exception as exc:
            logger.exception("[ANNOUNCE] Speaker failed: %s", exc)
