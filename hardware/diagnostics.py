"""Diagnostics routines for camera and thermal hardware."""

from __future__ import annotations

import importlib.util
from dataclasses import dataclass
from pathlib import Path

from diagnostics.models import DiagnosticResult, DiagnosticStatus


@dataclass(frozen=True)
class HardwareProbeConfig:
    """Configuration for hardware dependency checks."""

    require_camera: bool = False
    thermal_zone_path: Path = Path("/sys/class/thermal/thermal_zone0/temp")


def probe(
    config: HardwareProbeConfig | None = None,
    available_modules: set[str] | None = None,
) -> DiagnosticResult:
    """Run a hardware probe for the camera stack and thermal source.

    Args:
        config: Optional configuration for probe behavior.
        available_modules: Optional override set for offline testing.

    Returns:
        Diagnostic result indicating hardware readiness.
    """

    name = "hardware"
    settings = config or HardwareProbeConfig()
    camera_modules = ["picamera2", "numpy"]

    missing: list[str] = []
    for module_name in camera_modules:
        if available_modules is not None:
            is_available = module_name in available_modules
        else:
            is_available = importlib.util.find_spec(module_name) is not None
        if not is_available:
            missing.append(module_name)

    notes: list[str] = []
    status = DiagnosticStatus.PASS
    if missing:
        status = DiagnosticStatus.FAIL if settings.require_camera else DiagnosticStatus.WARN
        notes.append(f"Missing camera deps: {', '.join(missing)}")

    from hardware.thermal_sensor import SysfsThermalSensor

    sensor = SysfsThermalSensor(zone_path=settings.thermal_zone_path)
    if not sensor.is_available():
        if status is DiagnosticStatus.PASS:
            status = DiagnosticStatus.WARN
        notes.append(f"Thermal zone missing at {sensor.zone_path} (nominal assumed)")
    else:
        try:
            temperature = sensor.read_temperature_c()
            notes.append(f"Thermal {temperature:.1f}C ({sensor.level_for(temperature).value})")
        except RuntimeError as exc:
            if status is DiagnosticStatus.PASS:
                status = DiagnosticStatus.WARN
            notes.append(str(exc))

    if not notes:
        notes.append("Hardware dependencies available")
    return DiagnosticResult(name=name, status=status, details="; ".join(notes))
