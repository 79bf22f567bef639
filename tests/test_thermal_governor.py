"""Tests for thermal levels, skip intervals and the governor."""

from __future__ import annotations

from types import SimpleNamespace

from vision.thermal import (
    DEFAULT_SKIP_INTERVAL,
    ThermalGovernor,
    ThermalLevel,
    coerce_level,
    skip_interval_for,
)


def test_skip_intervals_per_level() -> None:
    assert skip_interval_for(ThermalLevel.NOMINAL) == 5
    assert skip_interval_for(ThermalLevel.FAIR) == 8
    assert skip_interval_for(ThermalLevel.SERIOUS) == 12
    assert skip_interval_for(ThermalLevel.CRITICAL) == 20


def test_skip_intervals_never_decrease_as_heat_rises() -> None:
    intervals = [skip_interval_for(level) for level in ThermalLevel]
    assert intervals == sorted(intervals)


def test_unknown_level_uses_default_interval() -> None:
    assert skip_interval_for("molten") == DEFAULT_SKIP_INTERVAL == 10
    assert skip_interval_for(None) == 10
    assert skip_interval_for(42) == 10


def test_coerce_level_accepts_names_and_values() -> None:
    assert coerce_level("SERIOUS") is ThermalLevel.SERIOUS
    assert coerce_level(" fair ") is ThermalLevel.FAIR
    assert coerce_level(ThermalLevel.CRITICAL) is ThermalLevel.CRITICAL
    assert coerce_level("warm") is None


def test_governor_tracks_updates() -> None:
    governor = ThermalGovernor()
    assert governor.current_skip_interval() == 5

    assert governor.update_level(ThermalLevel.CRITICAL) == 20
    assert governor.current_skip_interval() == 20
    assert governor.level is ThermalLevel.CRITICAL

    governor.update_level("unexpected")
    assert governor.current_skip_interval() == 10


def test_governor_polls_provider_on_construction_and_refresh() -> None:
    readings = iter(["fair", "serious"])
    governor = ThermalGovernor(provider=lambda: next(readings))
    assert governor.current_skip_interval() == 8

    assert governor.refresh() == 12


def test_governor_keeps_interval_when_provider_fails() -> None:
    def _broken() -> str:
        raise OSError("sensor gone")

    governor = ThermalGovernor(ThermalLevel.FAIR, provider=_broken)
    assert governor.current_skip_interval() == 8
    assert governor.refresh() == 8


def test_governor_handles_monitor_events() -> None:
    governor = ThermalGovernor()
    governor.handle_status_event(SimpleNamespace(level=ThermalLevel.SERIOUS))
    assert governor.current_skip_interval() == 12
