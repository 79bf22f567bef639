"""Tests for the camera capture loop using a fake picamera2 object."""

from __future__ import annotations

import threading

from config.settings import CameraSettings
from hardware.camera_controller import CameraController, CameraFrame
from vision.inference import Imx500Runtime


class _FakeRequest:
    def __init__(self, index: int) -> None:
        self.index = index
        self.released = False

    def make_array(self, name: str) -> str:
        return f"{name}-{self.index}"

    def get_metadata(self) -> dict:
        return {"imx500_detections": [{"label": "cup", "score": 0.9, "bbox": [0, 0, 1, 1]}]}

    def release(self) -> None:
        self.released = True


class _FakeCamera:
    def __init__(self) -> None:
        self.started = False
        self.stopped = False
        self.requests: list[_FakeRequest] = []

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def capture_request(self) -> _FakeRequest:
        request = _FakeRequest(len(self.requests) + 1)
        self.requests.append(request)
        return request


def test_capture_frame_carries_metadata_and_releases_request() -> None:
    camera = _FakeCamera()
    controller = CameraController(CameraSettings(), camera=camera)

    frame = controller.capture_frame()

    assert isinstance(frame, CameraFrame)
    assert frame.pixels == "main-1"
    assert frame.frame_id == 1
    assert camera.requests[0].released is True
    assert Imx500Runtime().detect(frame)[0]["label"] == "cup"


def test_capture_loop_feeds_handler_and_stops_camera() -> None:
    camera = _FakeCamera()
    frames: list[CameraFrame] = []
    got_frames = threading.Event()

    def _on_frame(frame: CameraFrame) -> None:
        frames.append(frame)
        if len(frames) >= 3:
            got_frames.set()

    controller = CameraController(CameraSettings(fps=100), on_frame=_on_frame, camera=camera)
    controller.start_capture_loop()
    try:
        assert got_frames.wait(timeout=2.0)
        assert controller.is_capture_loop_alive() is True
    finally:
        controller.stop_capture_loop()

    assert camera.started is True
    assert camera.stopped is True
    assert controller.is_capture_loop_alive() is False
    assert [frame.frame_id for frame in frames[:3]] == [1, 2, 3]


def test_handler_errors_are_counted_not_fatal() -> None:
    camera = _FakeCamera()
    calls = threading.Event()

    def _explode(_frame: CameraFrame) -> None:
        calls.set()
        raise RuntimeError("scheduler bug")

    controller = CameraController(CameraSettings(fps=100), on_frame=_explode, camera=camera)
    controller.start_capture_loop()
    try:
        assert calls.wait(timeout=2.0)
    finally:
        controller.stop_capture_loop()

    assert controller.get_runtime_status()["capture_failures"] >= 1


class _FakeArrayModule:
    def __init__(self, camera: _FakeCamera) -> None:
        self.camera = camera
        self.copies: list[tuple[str, bool]] = []

    def array(self, source, copy: bool = False):
        released = self.camera.requests[-1].released
        self.copies.append((source, released))
        return f"copy-of-{source}"


def test_frame_pixels_are_copied_before_request_release() -> None:
    camera = _FakeCamera()
    arrays = _FakeArrayModule(camera)
    controller = CameraController(CameraSettings(), camera=camera, array_module=arrays)

    frame = controller.capture_frame()

    assert frame.pixels == "copy-of-main-1"
    assert arrays.copies == [("main-1", False)]
    assert camera.requests[0].released is True
