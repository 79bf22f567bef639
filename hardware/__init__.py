"""Hardware controller package."""

from hardware.camera_controller import CameraController, CameraFrame
from hardware.thermal_sensor import SysfsThermalSensor

__all__ = ["CameraController", "CameraFrame", "SysfsThermalSensor"]
