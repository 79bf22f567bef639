"""Diagnostics routines for the core subsystem."""

from __future__ import annotations

from diagnostics.models import DiagnosticResult, DiagnosticStatus


def probe() -> DiagnosticResult:
    """Validate logging readiness and a publish/consume cycle on the event bus."""

    name = "core"
    from core import logging as core_logging
    from core.event_bus import Event, EventBus

    if core_logging.logger is None:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details="Core logger failed to initialize",
        )

    bus = EventBus(maxlen=4)
    bus.publish(Event(source="diagnostics", kind="low", priority="low"))
    bus.publish(Event(source="diagnostics", kind="high", priority="high"))
    first = bus.get_next(timeout=0)
    bus.close()
    if first is None or first.kind != "high":
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details="Event bus did not deliver high priority message first",
        )

    handler_names = sorted({type(handler).__name__ for handler in core_logging.logger.handlers})
    details = "Log handlers: " + ", ".join(handler_names)
    return DiagnosticResult(
        name=name,
        status=DiagnosticStatus.PASS,
        details=f"{details}; event bus ok",
    )
