"""Linux sysfs thermal zone reader."""

from __future__ import annotations

from pathlib import Path

from vision.thermal import ThermalLevel


class SysfsThermalSensor:
    """Read a thermal zone in millidegrees and bucket it into a ThermalLevel."""

    def __init__(
        self,
        zone_path: str | Path = "/sys/class/thermal/thermal_zone0/temp",
        fair_c: float = 60.0,
        serious_c: float = 70.0,
        critical_c: float = 80.0,
    ) -> None:
        if not fair_c <= serious_c <= critical_c:
            raise ValueError("Thermal thresholds must be ordered fair <= serious <= critical")
        self.zone_path = Path(zone_path)
        self.fair_c = fair_c
        self.serious_c = serious_c
        self.critical_c = critical_c

    def is_available(self) -> bool:
        return self.zone_path.exists()

    def read_temperature_c(self) -> float:
        try:
            raw = self.zone_path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise RuntimeError(f"Thermal zone unreadable at {self.zone_path}: {exc}") from exc
        try:
            return int(raw) / 1000.0
        except ValueError as exc:
            raise RuntimeError(f"Unexpected thermal reading {raw!r}") from exc

    def level_for(self, temperature_c: float) -> ThermalLevel:
        if temperature_c >= self.critical_c:
            return ThermalLevel.CRITICAL
        if temperature_c >= self.serious_c:
            return ThermalLevel.SERIOUS
        if temperature_c >= self.fair_c:
            return ThermalLevel.FAIR
        return ThermalLevel.NOMINAL

    def read_level(self) -> ThermalLevel:
        return self.level_for(self.read_temperature_c())
