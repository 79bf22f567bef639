"""Startup self-checks for config, core, vision, interaction and hardware."""

from diagnostics.models import DiagnosticResult, DiagnosticStatus
from diagnostics.runner import exit_code, format_results, run_diagnostics

__all__ = ["DiagnosticResult", "DiagnosticStatus", "exit_code", "format_results", "run_diagnostics"]
