"""Thermally throttled frame scheduler with a single inference slot."""

from __future__ import annotations

import concurrent.futures
from enum import Enum
import threading
import time
from typing import Any, Callable

from core.logging import logger
from vision.detections import DetectionBatch
from vision.filter import DetectionFilter
from vision.inference import InferenceStage
from vision.thermal import ThermalGovernor

BatchHandler = Callable[[DetectionBatch], None]


class FrameDecision(str, Enum):
    """Outcome of offering one camera frame to the scheduler."""

    SKIPPED = "skipped"
    DROPPED_BUSY = "dropped_busy"
    DISPATCHED = "dispatched"


class FrameScheduler:
    """Sample frames at the governor's interval and run at most one inference at a time.

    Frames that arrive while inference is running are dropped, never queued.
    """

    def __init__(
        self,
        governor: ThermalGovernor,
        inference: InferenceStage,
        detection_filter: DetectionFilter,
        on_batch: BatchHandler | None = None,
        executor: concurrent.futures.Executor | None = None,
    ) -> None:
        self._governor = governor
        self._inference = inference
        self._filter = detection_filter
        self._on_batch = on_batch
        self._owns_executor = executor is None
        self._executor = executor or concurrent.futures.ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix="inference-worker",
        )
        self._inflight = threading.Event()
        self._counter_lock = threading.Lock()
        self._frame_counter = 0
        self._frame_id = 0
        self._frames_seen = 0
        self._frames_dispatched = 0
        self._frames_dropped = 0

    @property
    def inflight(self) -> bool:
        return self._inflight.is_set()

    @property
    def frame_counter(self) -> int:
        return self._frame_counter

    def set_batch_handler(self, handler: BatchHandler | None) -> None:
        self._on_batch = handler

    def submit_frame(self, frame: Any) -> FrameDecision:
        """Offer a freshly captured frame; returns what was done with it."""

        with self._counter_lock:
            self._frames_seen += 1
            self._frame_counter += 1
            if self._frame_counter < self._governor.current_skip_interval():
                return FrameDecision.SKIPPED
            self._frame_counter = 0

            if self._inflight.is_set():
                self._frames_dropped += 1
                return FrameDecision.DROPPED_BUSY
            self._inflight.set()
            self._frame_id += 1
            frame_id = self._frame_id
            self._frames_dispatched += 1

        try:
            self._executor.submit(self._run_inference, frame, frame_id)
        except Exception as exc:
            self._inflight.clear()
            logger.exception("[SCHEDULER] Failed to dispatch frame %s: %s", frame_id, exc)
            return FrameDecision.DROPPED_BUSY
        return FrameDecision.DISPATCHED

    def _run_inference(self, frame: Any, frame_id: int) -> None:
        try:
            observations = self._inference.infer(frame)
            batch = self._filter.build_batch(
                observations,
                timestamp=time.monotonic(),
                frame_id=frame_id,
            )
            handler = self._on_batch
            if handler is not None:
                handler(batch)
        except Exception as exc:
            logger.exception("[SCHEDULER] Inference cycle %s failed: %s", frame_id, exc)
        finally:
            self._inflight.clear()

    def get_runtime_status(self) -> dict[str, int]:
        with self._counter_lock:
            return {
                "frames_seen": self._frames_seen,
                "frames_dispatched": self._frames_dispatched,
                "frames_dropped": self._frames_dropped,
                "skip_interval": self._governor.current_skip_interval(),
                "inflight": int(self._inflight.is_set()),
            }

    def shutdown(self, wait: bool = True) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=wait)
