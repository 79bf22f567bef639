"""Result types shared by every subsystem probe."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class DiagnosticStatus(str, Enum):
    """PASS is ready, WARN is degraded but usable, FAIL blocks startup."""

    PASS = "PASS"
    WARN = "WARN"
    FAIL = "FAIL"


@dataclass(frozen=True)
class DiagnosticResult:
    name: str
    status: DiagnosticStatus
    details: str

    @property
    def ok(self) -> bool:
        return self.status is not DiagnosticStatus.FAIL
