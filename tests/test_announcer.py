"""Tests for spoken feedback rendering and debounce."""

from __future__ import annotations

from config.settings import FeedbackSettings
from interaction.announcer import Announcer, describe_position
from interaction.feedback import FeedbackEvent, FeedbackKind
from interaction.speech import LoggingSpeaker, rate_to_wpm
from vision.detections import DetectedObject


def _obj(label: str = "cup", bbox=(0.4, 0.4, 0.2, 0.2), confidence: float = 0.87) -> DetectedObject:
    return DetectedObject(label=label, confidence=confidence, bbox=bbox, spatial_position="centered")


def _announcer(**settings) -> tuple[Announcer, LoggingSpeaker]:
    speaker = LoggingSpeaker()
    return Announcer(speaker, FeedbackSettings(**settings), clock=lambda: 0.0), speaker


def test_first_find_turkish() -> None:
    announcer, speaker = _announcer()

    announcer.handle_event(FeedbackEvent.for_object(FeedbackKind.FIRST_FIND, _obj(), "cup", 0.0))

    assert speaker.spoken == ["Cup bulundu. önünüzde. Yüzde 87 güven oranı."]


def test_first_find_english_with_distance() -> None:
    announcer, speaker = _announcer(feedback_language="en")
    near_low_left = _obj(bbox=(0.0, 0.0, 0.6, 0.6))

    announcer.handle_event(FeedbackEvent.for_object(FeedbackKind.FIRST_FIND, near_low_left, "cup", 0.0))

    assert speaker.spoken == ["Found Cup. on your left, lower part, very close. 87 percent confidence."]


def test_search_lifecycle_messages() -> None:
    announcer, speaker = _announcer()

    announcer.handle_event(FeedbackEvent(kind=FeedbackKind.SEARCH_STARTED, target="cup"))
    announcer.handle_event(FeedbackEvent(kind=FeedbackKind.LOST, target="cup"))
    announcer.handle_event(FeedbackEvent(kind=FeedbackKind.SEARCH_CLEARED))

    assert speaker.spoken == [
        "cup aranıyor",
        "cup artık görünmüyor. Bulmak için kameranızı hareket ettirin.",
        "Arama temizlendi",
    ]


def test_describe_position_directions() -> None:
    left_low = _obj(bbox=(0.0, 0.0, 0.4, 0.4))
    right_high_far = _obj(bbox=(0.85, 0.85, 0.1, 0.1))

    assert describe_position(left_low, "en") == "on your left, lower part, close"
    assert describe_position(right_high_far, "tr") == "sağınızda, üst kısımda, uzakta"


def test_standard_announcements_debounced_per_label() -> None:
    announcer, speaker = _announcer(debounce_interval=3.0)

    assert announcer.announce_object(_obj("chair"), now=0.0) is True
    assert announcer.announce_object(_obj("chair"), now=2.0) is False
    assert announcer.announce_object(_obj("cup"), now=2.0) is True
    assert announcer.announce_object(_obj("chair"), now=3.0) is True

    assert speaker.spoken == ["Chair, önünüzde", "Cup, önünüzde", "Chair, önünüzde"]


def test_target_change_resets_standard_debounce() -> None:
    announcer, _speaker = _announcer(debounce_interval=5.0)
    announcer.announce_object(_obj("chair"), now=0.0)

    announcer.handle_event(FeedbackEvent(kind=FeedbackKind.SEARCH_STARTED, target="cup"))

    assert announcer.announce_object(_obj("chair"), now=1.0) is True


def test_audio_disabled_speaks_nothing() -> None:
    announcer, speaker = _announcer(audio_enabled=False)

    announcer.handle_event(FeedbackEvent(kind=FeedbackKind.SEARCH_STARTED, target="cup"))
    announcer.announce_object(_obj("chair"), now=0.0)

    assert speaker.spoken == []


def test_speaker_failure_is_contained() -> None:
    class _BrokenSpeaker:
        def speak(self, text, *, rate, pitch, language):
            raise OSError("no audio device")

    announcer = Announcer(_BrokenSpeaker(), FeedbackSettings())

    announcer.handle_event(FeedbackEvent(kind=FeedbackKind.SEARCH_CLEARED))


def test_rate_to_wpm_bounds() -> None:
    assert rate_to_wpm(0.3) == 110
    assert rate_to_wpm(0.7) == 230
    assert rate_to_wpm(5.0) == 230
    assert 110 < rate_to_wpm(0.52) < 230
