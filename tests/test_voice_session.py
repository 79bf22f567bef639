"""Tests for the voice recording lifecycle and authorization handling."""

from __future__ import annotations

import pytest

from config.settings import FeedbackSettings
from interaction.commands import CommandParser
from interaction.haptics import ERROR_PATTERN, HapticController, LoggingHapticDriver
from interaction.voice import AuthorizationStatus, VoiceCommandSession


class _Task:
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class _FakeRecognizer:
    def __init__(self, status: AuthorizationStatus = AuthorizationStatus.AUTHORIZED) -> None:
        self.status = status
        self.available = True
        self.tasks: list[_Task] = []
        self.on_result = None
        self.on_error = None
        self.fail_start = False

    def request_authorization(self) -> AuthorizationStatus:
        return self.status

    def is_available(self) -> bool:
        return self.available

    def start(self, on_result, on_error) -> _Task:
        if self.fail_start:
            raise OSError("microphone busy")
        self.on_result = on_result
        self.on_error = on_error
        task = _Task()
        self.tasks.append(task)
        return task


class _Sink:
    def __init__(self) -> None:
        self.targets: list[str | None] = []
        self.cleared = 0

    def set_target(self, target):
        self.targets.append(target)

    def clear(self):
        self.cleared += 1


def _session(
    status: AuthorizationStatus = AuthorizationStatus.AUTHORIZED,
) -> tuple[VoiceCommandSession, _FakeRecognizer, _Sink, LoggingHapticDriver]:
    recognizer = _FakeRecognizer(status)
    sink = _Sink()
    driver = LoggingHapticDriver()
    session = VoiceCommandSession(
        recognizer,
        CommandParser(sink=sink),
        HapticController(driver, FeedbackSettings()),
    )
    session.request_authorization()
    return session, recognizer, sink, driver


def test_search_command_ends_recording() -> None:
    session, recognizer, sink, _driver = _session()

    assert session.start_recording() is True
    recognizer.on_result("bilgisayar", False)
    assert session.is_recording is True

    recognizer.on_result("bilgisayar bul", False)

    assert sink.targets == ["computer"]
    assert session.is_recording is False
    assert recognizer.tasks[0].cancelled is True
    assert session.recognized_text == "bilgisayar bul"


def test_final_result_ends_recording_even_without_command() -> None:
    session, recognizer, sink, _driver = _session()
    session.start_recording()

    recognizer.on_result("hello world", True)

    assert session.is_recording is False
    assert sink.targets == []


def test_restart_cancels_previous_task() -> None:
    session, recognizer, _sink, _driver = _session()

    session.start_recording()
    session.start_recording()

    assert recognizer.tasks[0].cancelled is True
    assert recognizer.tasks[1].cancelled is False


@pytest.mark.parametrize(
    "status",
    [AuthorizationStatus.DENIED, AuthorizationStatus.RESTRICTED, AuthorizationStatus.NOT_DETERMINED],
)
def test_unauthorized_session_cannot_record(status: AuthorizationStatus) -> None:
    session, recognizer, _sink, driver = _session(status)

    assert session.error_message
    assert session.start_recording() is False
    assert recognizer.tasks == []
    assert driver.played[-1] == ERROR_PATTERN


def test_engine_error_stops_and_reports() -> None:
    session, recognizer, _sink, driver = _session()
    session.start_recording()

    recognizer.on_error(ConnectionError("network down"))

    assert session.is_recording is False
    assert "network down" in session.error_message
    assert driver.played[-1] == ERROR_PATTERN


def test_start_failure_leaves_session_idle() -> None:
    session, recognizer, _sink, _driver = _session()
    recognizer.fail_start = True

    assert session.start_recording() is False
    assert session.is_recording is False
    assert session.error_message == "Failed to start speech recognition."


def test_recording_context_releases_on_exception() -> None:
    session, recognizer, _sink, _driver = _session()

    with pytest.raises(RuntimeError):
        with session.recording():
            assert session.is_recording is True
            raise RuntimeError("ui crashed")

    assert session.is_recording is False
    assert recognizer.tasks[0].cancelled is True


def test_toggle_recording() -> None:
    session, _recognizer, _sink, _driver = _session()

    assert session.toggle_recording() is True
    assert session.toggle_recording() is False
    assert session.is_recording is False
