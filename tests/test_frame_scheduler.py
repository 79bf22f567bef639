"""Tests for frame sampling, the single inference slot and batch delivery."""

from __future__ import annotations

from typing import Any, Callable

from vision.detections import DetectionBatch
from vision.filter import DetectionFilter
from vision.inference import InferenceStage
from vision.scheduler import FrameDecision, FrameScheduler
from vision.thermal import ThermalGovernor, ThermalLevel


class _ManualExecutor:
    """Executor that holds submitted work until the test runs it."""

    def __init__(self) -> None:
        self.pending: list[tuple[Callable[..., Any], tuple[Any, ...]]] = []

    def submit(self, fn: Callable[..., Any], *args: Any) -> None:
        self.pending.append((fn, args))

    def run_all(self) -> None:
        work, self.pending = self.pending, []
        for fn, args in work:
            fn(*args)

    def shutdown(self, wait: bool = True) -> None:
        self.pending.clear()


def _cup_runtime(_frame: Any) -> list[dict]:
    return [{"label": "cup", "score": 0.9, "bbox": [0.4, 0.4, 0.2, 0.2]}]


def _scheduler(
    level: ThermalLevel = ThermalLevel.NOMINAL,
    runtime: Callable[[Any], list] = _cup_runtime,
) -> tuple[FrameScheduler, _ManualExecutor, ThermalGovernor, list[DetectionBatch]]:
    executor = _ManualExecutor()
    governor = ThermalGovernor(level)
    batches: list[DetectionBatch] = []
    scheduler = FrameScheduler(
        governor,
        InferenceStage(runtime),
        DetectionFilter(),
        on_batch=batches.append,
        executor=executor,
    )
    return scheduler, executor, governor, batches


def test_only_every_nth_frame_is_dispatched() -> None:
    scheduler, executor, _governor, _batches = _scheduler()

    decisions = [scheduler.submit_frame(i) for i in range(5)]

    assert decisions[:4] == [FrameDecision.SKIPPED] * 4
    assert decisions[4] is FrameDecision.DISPATCHED
    assert scheduler.frame_counter == 0
    assert scheduler.inflight is True
    assert len(executor.pending) == 1


def test_busy_frames_are_dropped_and_counter_still_resets() -> None:
    scheduler, executor, _governor, batches = _scheduler()
    for i in range(5):
        scheduler.submit_frame(i)

    decisions = [scheduler.submit_frame(i) for i in range(5, 10)]

    assert decisions[-1] is FrameDecision.DROPPED_BUSY
    assert scheduler.frame_counter == 0
    assert len(executor.pending) == 1

    executor.run_all()
    assert scheduler.inflight is False
    assert len(batches) == 1

    decisions = [scheduler.submit_frame(i) for i in range(10, 15)]
    assert decisions[-1] is FrameDecision.DISPATCHED


def test_at_most_one_inference_outstanding() -> None:
    scheduler, executor, _governor, _batches = _scheduler()

    for i in range(100):
        scheduler.submit_frame(i)
        assert len(executor.pending) <= 1

    status = scheduler.get_runtime_status()
    assert status["frames_seen"] == 100
    assert status["frames_dispatched"] == 1
    assert status["frames_dropped"] == 19


def test_thermal_level_changes_sampling_rate() -> None:
    scheduler, executor, governor, _batches = _scheduler(ThermalLevel.CRITICAL)

    decisions = [scheduler.submit_frame(i) for i in range(20)]
    assert decisions.count(FrameDecision.DISPATCHED) == 1
    assert decisions[19] is FrameDecision.DISPATCHED

    executor.run_all()
    governor.update_level(ThermalLevel.FAIR)
    decisions = [scheduler.submit_frame(i) for i in range(8)]
    assert decisions[7] is FrameDecision.DISPATCHED


def test_batch_carries_frame_id_and_filtered_objects() -> None:
    scheduler, executor, _governor, batches = _scheduler()
    for i in range(5):
        scheduler.submit_frame(i)
    executor.run_all()

    (batch,) = batches
    assert batch.frame_id == 1
    assert [obj.label for obj in batch.objects] == ["cup"]


def test_inference_failure_delivers_empty_batch_and_frees_slot() -> None:
    def _broken(_frame: Any) -> list:
        raise RuntimeError("model crashed")

    scheduler, executor, _governor, batches = _scheduler(runtime=_broken)
    for i in range(5):
        scheduler.submit_frame(i)
    executor.run_all()

    assert scheduler.inflight is False
    assert len(batches) == 1
    assert len(batches[0]) == 0


def test_handler_failure_still_frees_slot() -> None:
    scheduler, executor, _governor, _batches = _scheduler()

    def _explode(_batch: DetectionBatch) -> None:
        raise ValueError("consumer bug")

    scheduler.set_batch_handler(_explode)
    for i in range(5):
        scheduler.submit_frame(i)
    executor.run_all()

    assert scheduler.inflight is False
