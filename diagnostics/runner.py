"""Run probes in order and render their results as a plain-text report."""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable, Sequence

from core.logging import logger as LOGGER
from diagnostics.models import DiagnosticResult, DiagnosticStatus

Probe = Callable[[], DiagnosticResult]
RULE = "-" * 60


def run_diagnostics(probes: Iterable[Probe]) -> list[DiagnosticResult]:
    """Call every probe; one that raises is reported as FAIL and the rest still run."""

    results: list[DiagnosticResult] = []
    for probe in probes:
        probe_name = getattr(probe, "__name__", "unknown_probe")
        try:
            results.append(probe())
        except Exception as exc:  # noqa: BLE001 - one broken probe must not hide the others
            LOGGER.exception("[DIAGNOSTICS] Probe %s raised", probe_name)
            results.append(
                DiagnosticResult(
                    name=probe_name,
                    status=DiagnosticStatus.FAIL,
                    details=f"Probe raised exception: {exc}",
                )
            )
    return results


def format_results(results: Iterable[DiagnosticResult]) -> str:
    results = list(results)
    tally = Counter(result.status for result in results)
    body = [f"[{result.status.value}] {result.name}: {result.details}" for result in results]
    summary = ", ".join(f"{status.value}={tally[status]}" for status in DiagnosticStatus)
    return "\n".join(["Vision assist diagnostics", RULE, *body, RULE, summary])


def exit_code(results: Sequence[DiagnosticResult]) -> int:
    """Shell exit status for a run: 1 when any probe failed."""

    return 0 if all(result.ok for result in results) else 1
