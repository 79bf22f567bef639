"""Voice command capture: recognizer lifecycle feeding the command parser."""

from __future__ import annotations

import contextlib
from enum import Enum
import importlib
import importlib.util
import threading
from typing import Any, Callable, Iterator, Protocol

from core.logging import logger
from interaction.commands import CommandAction, CommandParser
from interaction.haptics import HapticController

ResultCallback = Callable[[str, bool], None]
ErrorCallback = Callable[[BaseException], None]


class AuthorizationStatus(str, Enum):
    AUTHORIZED = "authorized"
    DENIED = "denied"
    RESTRICTED = "restricted"
    NOT_DETERMINED = "not_determined"


AUTHORIZATION_MESSAGES = {
    AuthorizationStatus.AUTHORIZED: None,
    AuthorizationStatus.DENIED: "Speech recognition access denied. Please enable it in settings.",
    AuthorizationStatus.RESTRICTED: "Speech recognition is restricted on this device.",
    AuthorizationStatus.NOT_DETERMINED: "Speech recognition authorization pending.",
}


class RecognitionTask(Protocol):
    def cancel(self) -> None:
        ...


class SpeechRecognizer(Protocol):
    """External speech-to-text engine delivering partial and final transcripts."""

    def request_authorization(self) -> AuthorizationStatus:
        ...

    def is_available(self) -> bool:
        ...

    def start(self, on_result: ResultCallback, on_error: ErrorCallback) -> RecognitionTask:
        ...


class VoiceCommandSession:
    """Start and stop recognition, forwarding transcripts to a :class:`CommandParser`.

    Audio capture is released on every exit path; a denied or failing
    recognizer only disables voice control.
    """

    def __init__(
        self,
        recognizer: SpeechRecognizer,
        parser: CommandParser,
        haptics: HapticController | None = None,
    ) -> None:
        self._recognizer = recognizer
        self._parser = parser
        self._haptics = haptics
        self._lock = threading.RLock()
        self._task: RecognitionTask | None = None
        self.authorization_status = AuthorizationStatus.NOT_DETERMINED
        self.error_message: str | None = None
        self.recognized_text = ""
        self.is_recording = False

    def request_authorization(self) -> AuthorizationStatus:
        try:
            status = self._recognizer.request_authorization()
        except Exception as exc:
            logger.exception("[VOICE] Authorization request failed: %s", exc)
            status = AuthorizationStatus.RESTRICTED
        self.authorization_status = status
        self.error_message = AUTHORIZATION_MESSAGES.get(status, "Unknown authorization status.")
        if self.error_message:
            logger.warning("[VOICE] %s", self.error_message)
        return status

    @property
    def is_available(self) -> bool:
        if self.authorization_status is not AuthorizationStatus.AUTHORIZED:
            return False
        try:
            return bool(self._recognizer.is_available())
        except Exception:
            logger.exception("[VOICE] Availability check failed")
            return False

    def start_recording(self) -> bool:
        with self._lock:
            if not self.is_available:
                self._fail("Speech recognition is not available.")
                return False

            self._cancel_task_locked()
            try:
                self._task = self._recognizer.start(self._on_result, self._on_error)
            except Exception as exc:
                logger.exception("[VOICE] Failed to start recognition: %s", exc)
                self._task = None
                self.is_recording = False
                self._fail("Failed to start speech recognition.")
                return False

            self.is_recording = True
            self.error_message = None
        logger.info("[VOICE] Started recording")
        if self._haptics is not None:
            self._haptics.trigger_impact()
        return True

    def stop_recording(self) -> None:
        with self._lock:
            was_recording = self.is_recording
            try:
                self._cancel_task_locked()
            finally:
                self.is_recording = False
        if was_recording:
            logger.info("[VOICE] Stopped recording")
            if self._haptics is not None:
                self._haptics.trigger_impact()

    def toggle_recording(self) -> bool:
        if self.is_recording:
            self.stop_recording()
            return False
        return self.start_recording()

    @contextlib.contextmanager
    def recording(self) -> Iterator["VoiceCommandSession"]:
        """Record for the duration of the block, always releasing the recognizer."""

        self.start_recording()
        try:
            yield self
        finally:
            self.stop_recording()

    def _on_result(self, text: str, is_final: bool) -> None:
        self.recognized_text = text
        command = self._parser.handle_transcript(text)
        if command.action is CommandAction.SEARCH or is_final:
            self.stop_recording()

    def _on_error(self, error: BaseException) -> None:
        logger.warning("[VOICE] Recognition error: %s", error)
        self.stop_recording()
        self._fail(f"Speech recognition failed: {error}")

    def _cancel_task_locked(self) -> None:
        task = self._task
        self._task = None
        if task is None:
            return
        try:
            task.cancel()
        except Exception:
            logger.exception("[VOICE] Failed to cancel recognition task")

    def _fail(self, message: str) -> None:
        self.error_message = message
        logger.warning("[VOICE] %s", message)
        if self._haptics is not None:
            self._haptics.trigger_error()


class _BackgroundListenTask:
    def __init__(self, stopper: Callable[..., None]) -> None:
        self._stopper = stopper

    def cancel(self) -> None:
        self._stopper(wait_for_stop=False)


class SpeechRecognitionEngine:
    """Adapter over the ``speech_recognition`` package's background listener."""

    def __init__(self, language: str = "tr-TR", phrase_time_limit: float = 4.0) -> None:
        if importlib.util.find_spec("speech_recognition") is None:
            raise RuntimeError("SpeechRecognition is required for SpeechRecognitionEngine")
        self._sr: Any = importlib.import_module("speech_recognition")
        self._recognizer = self._sr.Recognizer()
        self._language = language
        self._phrase_time_limit = phrase_time_limit

    def request_authorization(self) -> AuthorizationStatus:
        try:
            names = self._sr.Microphone.list_microphone_names()
        except Exception as exc:
            logger.warning("[VOICE] Microphone enumeration failed: %s", exc)
            return AuthorizationStatus.RESTRICTED
        return AuthorizationStatus.AUTHORIZED if names else AuthorizationStatus.RESTRICTED

    def is_available(self) -> bool:
        return importlib.util.find_spec("pyaudio") is not None

    def start(self, on_result: ResultCallback, on_error: ErrorCallback) -> RecognitionTask:
        microphone = self._sr.Microphone()
        sr = self._sr
        language = self._language

        def _callback(recognizer: Any, audio: Any) -> None:
            try:
                text = recognizer.recognize_google(audio, language=language)
            except sr.UnknownValueError:
                return
            except sr.RequestError as exc:
                on_error(exc)
                return
            on_result(str(text).lower(), True)

        stopper = self._recognizer.listen_in_background(
            microphone,
            _callback,
            phrase_time_limit=self._phrase_time_limit,
        )
        return _BackgroundListenTask(stopper)
