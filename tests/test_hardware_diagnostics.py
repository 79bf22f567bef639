"""Tests for hardware diagnostics."""

from __future__ import annotations

from pathlib import Path

from diagnostics.models import DiagnosticStatus
from hardware.diagnostics import HardwareProbeConfig, probe


def test_hardware_probe_passes_with_camera_and_thermal(tmp_path: Path) -> None:
    """Hardware probe should pass when camera deps and a thermal zone exist."""

    zone = tmp_path / "temp"
    zone.write_text("52000\n", encoding="utf-8")

    result = probe(
        config=HardwareProbeConfig(thermal_zone_path=zone),
        available_modules={"picamera2", "numpy"},
    )
    assert result.status is DiagnosticStatus.PASS
    assert "52.0C" in result.details


def test_hardware_probe_warns_on_missing_modules(tmp_path: Path) -> None:
    """Hardware probe should warn when optional camera deps are missing."""

    result = probe(
        config=HardwareProbeConfig(thermal_zone_path=tmp_path / "missing"),
        available_modules={"numpy"},
    )
    assert result.status is DiagnosticStatus.WARN
    assert "picamera2" in result.details
    assert "nominal assumed" in result.details


def test_hardware_probe_fails_when_camera_required(tmp_path: Path) -> None:
    """Hardware probe should fail when the camera stack is required but absent."""

    result = probe(
        config=HardwareProbeConfig(require_camera=True, thermal_zone_path=tmp_path / "missing"),
        available_modules=set(),
    )
    assert result.status is DiagnosticStatus.FAIL
