"""Diagnostics routines for speech output, voice input and command parsing."""

from __future__ import annotations

import importlib.util

from diagnostics.models import DiagnosticResult, DiagnosticStatus
from interaction.commands import CommandAction, CommandParser


SPEECH_MODULES = ("pyttsx3",)
VOICE_MODULES = ("speech_recognition", "pyaudio")


def _missing(modules: tuple[str, ...], available_modules: set[str] | None) -> list[str]:
    missing = []
    for module_name in modules:
        if available_modules is not None:
            is_available = module_name in available_modules
        else:
            is_available = importlib.util.find_spec(module_name) is not None
        if not is_available:
            missing.append(module_name)
    return missing


def probe(available_modules: set[str] | None = None) -> DiagnosticResult:
    """Check speech backends and run the command parser on a known phrase.

    Args:
        available_modules: Optional override set for offline testing.

    Returns:
        Diagnostic result indicating interaction readiness.
    """

    name = "interaction"

    parsed = CommandParser().parse("bilgisayar bul")
    if parsed.action is not CommandAction.SEARCH or parsed.target != "computer":
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details=f"Command parser self-check failed: {parsed}",
        )

    notes = []
    missing_speech = _missing(SPEECH_MODULES, available_modules)
    missing_voice = _missing(VOICE_MODULES, available_modules)
    if missing_speech:
        notes.append("Speech output falls back to logging (missing pyttsx3)")
    if missing_voice:
        notes.append(f"Voice commands unavailable (missing {', '.join(missing_voice)})")

    if notes:
        return DiagnosticResult(name=name, status=DiagnosticStatus.WARN, details="; ".join(notes))
    return DiagnosticResult(
        name=name,
        status=DiagnosticStatus.PASS,
        details="Speech output and voice input backends available",
    )
