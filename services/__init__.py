"""Background services: thermal sampling and the search pipeline worker."""

from services.search_pipeline import SearchPipeline
from services.thermal_monitor import ThermalMonitor, ThermalStatusEvent

__all__ = ["SearchPipeline", "ThermalMonitor", "ThermalStatusEvent"]
