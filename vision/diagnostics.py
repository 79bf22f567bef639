"""Diagnostics routines for the vision pipeline."""

from __future__ import annotations

from diagnostics.models import DiagnosticResult, DiagnosticStatus


def probe() -> DiagnosticResult:
    """Push a synthetic detection through inference, filter and target tracking."""

    name = "vision"
    from interaction.feedback import FeedbackKind
    from vision.filter import DetectionFilter
    from vision.inference import InferenceStage
    from vision.target import TargetStateMachine
    from vision.thermal import ThermalGovernor, ThermalLevel

    governor = ThermalGovernor(ThermalLevel.SERIOUS)
    if governor.current_skip_interval() != 12:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details=f"Unexpected skip interval {governor.current_skip_interval()} for serious",
        )

    def _runtime(_frame: object) -> list[dict]:
        return [{"label": "Cup", "confidence": 0.9, "bbox": (0.45, 0.45, 0.1, 0.1)}]

    stage = InferenceStage(_runtime, bbox_origin="bottom_left")
    batch = DetectionFilter().build_batch(stage.infer(object()), timestamp=0.0, frame_id=1)
    if len(batch) != 1 or batch.objects[0].spatial_position != "centered":
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details=f"Unexpected filtered batch: {batch.objects}",
        )

    kinds: list[FeedbackKind] = []
    machine = TargetStateMachine(clock=lambda: 0.0)
    machine.register_event_handler(lambda event: kinds.append(event.kind))
    machine.set_target("cup")
    machine.process_batch(batch, now=0.0)
    if FeedbackKind.FIRST_FIND not in kinds:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details=f"Target tracking emitted {[kind.value for kind in kinds]}",
        )

    return DiagnosticResult(
        name=name,
        status=DiagnosticStatus.PASS,
        details="Synthetic detection found and localized",
    )
