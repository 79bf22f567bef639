"""Vision package exports."""

from vision.detections import DetectedObject, DetectionBatch, RawObservation
from vision.filter import DetectionFilter
from vision.inference import InferenceStage
from vision.scheduler import FrameDecision, FrameScheduler
from vision.target import SearchPhase, SearchState, TargetStateMachine
from vision.thermal import ThermalGovernor, ThermalLevel

__all__ = [
    "DetectedObject",
    "DetectionBatch",
    "DetectionFilter",
    "FrameDecision",
    "FrameScheduler",
    "InferenceStage",
    "RawObservation",
    "SearchPhase",
    "SearchState",
    "TargetStateMachine",
    "ThermalGovernor",
    "ThermalLevel",
]
