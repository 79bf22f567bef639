"""Speech output adapters."""

from __future__ import annotations

import importlib
import importlib.util
import threading
import time
from typing import Any, Protocol

from core.logging import log_announcement, logger

MIN_RATE = 0.3
MAX_RATE = 0.7
MIN_WPM = 110
MAX_WPM = 230


class Speaker(Protocol):
    """Anything that can voice a short announcement."""

    def speak(self, text: str, *, rate: float, pitch: float, language: str) -> None:
        ...


def rate_to_wpm(rate: float) -> int:
    """Map the 0.3-0.7 speech rate preference onto words per minute."""

    fraction = (min(max(rate, MIN_RATE), MAX_RATE) - MIN_RATE) / (MAX_RATE - MIN_RATE)
    return int(round(MIN_WPM + fraction * (MAX_WPM - MIN_WPM)))


class LoggingSpeaker:
    """Speaker that only logs; used when no TTS engine is installed."""

    def __init__(self) -> None:
        self.spoken: list[str] = []

    def speak(self, text: str, *, rate: float, pitch: float, language: str) -> None:
        self.spoken.append(text)
        log_announcement(text, language)


class QueuedSpeaker:
    """Runs a blocking speaker on its own thread so callers never wait for audio.

    Only the newest pending utterance is kept. A new utterance that arrives
    while one is playing interrupts it when the wrapped speaker supports
    ``interrupt()``.
    """

    def __init__(self, speaker: Speaker, name: str = "speech-worker") -> None:
        self._speaker = speaker
        self._condition = threading.Condition()
        self._pending: tuple[str, float, float, str] | None = None
        self._speaking = False
        self._stop_event = threading.Event()
        self._replaced = 0
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    @property
    def speaker(self) -> Speaker:
        return self._speaker

    def speak(self, text: str, *, rate: float, pitch: float, language: str) -> None:
        with self._condition:
            if self._pending is not None:
                self._replaced += 1
            self._pending = (text, rate, pitch, language)
            busy = self._speaking
            self._condition.notify()
        if busy:
            self._interrupt()

    def close(self, timeout: float = 2.0) -> None:
        self._stop_event.set()
        with self._condition:
            self._condition.notify()
        self._interrupt()
        self._thread.join(timeout=timeout)
        close = getattr(self._speaker, "close", None)
        if close is not None:
            close()

    def get_runtime_status(self) -> dict[str, Any]:
        with self._condition:
            return {
                "speaking": self._speaking,
                "pending": self._pending is not None,
                "replaced": self._replaced,
                "alive": self._thread.is_alive(),
            }

    def _interrupt(self) -> None:
        interrupt = getattr(self._speaker, "interrupt", None)
        if interrupt is None:
            return
        try:
            interrupt()
        except Exception:
            logger.exception("[SPEECH] Failed to interrupt current utterance")

    def _run(self) -> None:
        while True:
            with self._condition:
                while self._pending is None and not self._stop_event.is_set():
                    self._condition.wait()
                if self._stop_event.is_set():
                    return
                text, rate, pitch, language = self._pending
                self._pending = None
                self._speaking = True
            try:
                self._speaker.speak(text, rate=rate, pitch=pitch, language=language)
            except Exception:
                logger.exception("[SPEECH] Speaker failed on %r", text)
            finally:
                with self._condition:
                    self._speaking = False


class Pyttsx3Speaker:
    """Offline text-to-speech driven through pyttsx3's external event loop.

    ``speak`` blocks until the utterance finishes or ``interrupt`` is called
    from another thread; wrap it in :class:`QueuedSpeaker` to keep callers
    free. The engine is created on, and only touched by, the thread that
    speaks.
    """

    POLL_S = 0.05

    def __init__(self) -> None:
        if importlib.util.find_spec("pyttsx3") is None:
            raise RuntimeError("pyttsx3 is required for Pyttsx3Speaker")
        self._pyttsx3 = importlib.import_module("pyttsx3")
        self._engine: Any = None
        self._voices: list[Any] = []
        self._interrupted = threading.Event()

    def interrupt(self) -> None:
        self._interrupted.set()

    def speak(self, text: str, *, rate: float, pitch: float, language: str) -> None:
        self._interrupted.clear()
        try:
            engine = self._ensure_engine()
            engine.setProperty("rate", rate_to_wpm(rate))
            engine.setProperty("volume", 1.0)
            voice_id = self._voice_for(language)
            if voice_id is not None:
                engine.setProperty("voice", voice_id)
            engine.say(text)
            engine.iterate()
            while engine.isBusy():
                if self._interrupted.is_set():
                    engine.stop()
                    break
                time.sleep(self.POLL_S)
                engine.iterate()
        except Exception as exc:
            logger.exception("[SPEECH] pyttsx3 failed to speak: %s", exc)

    def close(self) -> None:
        if self._engine is None:
            return
        try:
            self._engine.endLoop()
        except Exception:
            logger.debug("[SPEECH] pyttsx3 loop already ended", exc_info=True)
        self._engine = None

    def _ensure_engine(self) -> Any:
        if self._engine is None:
            engine = self._pyttsx3.init()
            engine.startLoop(False)
            self._voices = list(engine.getProperty("voices") or [])
            self._engine = engine
        return self._engine

    def _voice_for(self, language: str) -> str | None:
        prefix = language.split("-")[0].lower()
        for voice in self._voices:
            languages = [
                lang.decode("utf-8", "ignore") if isinstance(lang, bytes) else str(lang)
                for lang in (getattr(voice, "languages", None) or [])
            ]
            name = str(getattr(voice, "name", "")).lower()
            if any(prefix in lang.lower() for lang in languages) or prefix in name:
                return voice.id
        return None


def create_speaker(prefer_tts: bool = True) -> Speaker:
    """Return a queued pyttsx3 speaker when available, else a logging speaker."""

    if prefer_tts:
        try:
            return QueuedSpeaker(Pyttsx3Speaker())
        except Exception as exc:
            logger.warning("[SPEECH] Text-to-speech unavailable (%s); logging announcements", exc)
    return LoggingSpeaker()
