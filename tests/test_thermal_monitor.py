"""Tests for the thermal monitor and sysfs thermal source."""

from __future__ import annotations

from pathlib import Path

import pytest

from hardware.thermal_sensor import SysfsThermalSensor
from services.thermal_monitor import ThermalMonitor, ThermalStatusEvent
from vision.thermal import ThermalGovernor, ThermalLevel


class _FakeSource:
    def __init__(self, *levels: object) -> None:
        self._levels = list(levels)

    def __call__(self) -> object:
        if len(self._levels) > 1:
            return self._levels.pop(0)
        return self._levels[0]


def test_monitor_emits_first_sample_and_changes_only() -> None:
    monitor = ThermalMonitor(_FakeSource("nominal", "nominal", "serious", "serious", "fair"))
    events: list[ThermalStatusEvent] = []
    monitor.register_event_handler(events.append)

    for _ in range(5):
        monitor.sample()

    assert [event.level for event in events] == [
        ThermalLevel.NOMINAL,
        ThermalLevel.SERIOUS,
        ThermalLevel.FAIR,
    ]
    assert events[0].previous_level is None
    assert events[1].previous_level is ThermalLevel.NOMINAL
    assert monitor.get_latest_event() is events[-1]


def test_monitor_drives_governor() -> None:
    governor = ThermalGovernor()
    monitor = ThermalMonitor(_FakeSource(ThermalLevel.CRITICAL))
    monitor.register_event_handler(governor.handle_status_event)

    monitor.sample()

    assert governor.current_skip_interval() == 20


def test_unrecognized_level_reaches_governor_as_unknown() -> None:
    governor = ThermalGovernor()
    monitor = ThermalMonitor(_FakeSource(ThermalLevel.SERIOUS, "toasty", "toasty"))
    monitor.register_event_handler(governor.handle_status_event)

    monitor.sample()
    assert governor.current_skip_interval() == 12

    event = monitor.sample()
    assert event is not None
    assert event.level is None
    assert event.previous_level is ThermalLevel.SERIOUS
    assert governor.current_skip_interval() == 10

    assert monitor.sample() is None


def test_handler_failure_does_not_stop_other_handlers() -> None:
    monitor = ThermalMonitor(_FakeSource("fair"), read_temperature=lambda: 61.5)
    seen: list[ThermalStatusEvent] = []

    def _explode(_event: ThermalStatusEvent) -> None:
        raise RuntimeError("handler bug")

    monitor.register_event_handler(_explode)
    monitor.register_event_handler(seen.append)
    monitor.sample()

    assert len(seen) == 1
    assert seen[0].temperature_c == 61.5


def test_loop_starts_and_stops() -> None:
    monitor = ThermalMonitor(_FakeSource("nominal"))
    monitor.start_loop(loop_period_s=0.5)
    try:
        assert monitor.is_loop_alive() is True
    finally:
        monitor.stop_loop()

    assert monitor.is_loop_alive() is False


def test_sysfs_sensor_buckets_temperature(tmp_path: Path) -> None:
    zone = tmp_path / "temp"
    sensor = SysfsThermalSensor(zone_path=zone, fair_c=60, serious_c=70, critical_c=80)

    zone.write_text("45000\n", encoding="utf-8")
    assert sensor.read_temperature_c() == 45.0
    assert sensor.read_level() is ThermalLevel.NOMINAL

    zone.write_text("71500\n", encoding="utf-8")
    assert sensor.read_level() is ThermalLevel.SERIOUS

    zone.write_text("80000\n", encoding="utf-8")
    assert sensor.read_level() is ThermalLevel.CRITICAL


def test_sysfs_sensor_errors(tmp_path: Path) -> None:
    sensor = SysfsThermalSensor(zone_path=tmp_path / "missing")
    assert sensor.is_available() is False
    with pytest.raises(RuntimeError):
        sensor.read_level()

    garbage = tmp_path / "garbage"
    garbage.write_text("hot", encoding="utf-8")
    with pytest.raises(RuntimeError):
        SysfsThermalSensor(zone_path=garbage).read_temperature_c()

    with pytest.raises(ValueError):
        SysfsThermalSensor(fair_c=80, serious_c=70, critical_c=90)
