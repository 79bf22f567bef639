"""Camera controller for capturing frames and handing them to the frame scheduler."""

from __future__ import annotations

from dataclasses import dataclass, field
import threading
import time
from typing import Any, Callable

from config.settings import CameraSettings
from core.logging import logger


def _require_camera_deps() -> tuple[Any, Any]:
    import importlib
    import importlib.util

    if importlib.util.find_spec("picamera2") is None:
        raise RuntimeError("picamera2 is required for CameraController")
    if importlib.util.find_spec("numpy") is None:
        raise RuntimeError("numpy is required for CameraController")

    picamera2 = importlib.import_module("picamera2")
    numpy = importlib.import_module("numpy")
    return picamera2.Picamera2, numpy


@dataclass(frozen=True)
class CameraFrame:
    """One captured frame plus the request metadata the sensor attached to it."""

    pixels: Any
    metadata: dict[str, Any] = field(default_factory=dict)
    frame_id: int = 0
    timestamp: float = field(default_factory=time.monotonic)


FrameHandler = Callable[[CameraFrame], Any]


class CameraController:
    """Capture loop pacing frames at the configured rate.

    Every captured frame is passed to ``on_frame``; throttling and dropping are
    the frame scheduler's job, not the camera's.
    """

    def __init__(
        self,
        settings: CameraSettings | None = None,
        on_frame: FrameHandler | None = None,
        camera: Any = None,
        array_module: Any = None,
    ) -> None:
        self.settings = settings or CameraSettings()
        self._on_frame = on_frame
        self._numpy = array_module
        if camera is None:
            Picamera2, self._numpy = _require_camera_deps()
            camera = Picamera2()
            configuration = camera.create_preview_configuration(
                main={"size": (self.settings.width, self.settings.height), "format": "RGB888"},
                buffer_count=2,
            )
            camera.configure(configuration)
        self.picam2 = camera
        self._started = False
        self._capture_thread: threading.Thread | None = None
        self._stop_event = threading.Event()
        self._frame_index = 0
        self._capture_failures = 0

    def set_frame_handler(self, handler: FrameHandler | None) -> None:
        self._on_frame = handler

    def start_capture_loop(self) -> None:
        if self._capture_thread is None or not self._capture_thread.is_alive():
            if not self._started:
                self.picam2.start()
                self._started = True
            self._stop_event.clear()
            self._capture_thread = threading.Thread(
                target=self._capture_loop,
                name="camera-capture",
                daemon=True,
            )
            self._capture_thread.start()
            logger.info(
                "[CAMERA] Capture started at %sx%s @ %s fps",
                self.settings.width,
                self.settings.height,
                self.settings.fps,
            )

    def stop_capture_loop(self) -> None:
        if self._capture_thread is not None:
            self._stop_event.set()
            self._capture_thread.join(timeout=2.0)
            if self._capture_thread.is_alive():
                logger.warning("[CAMERA] Capture loop did not stop within timeout")
                return
            self._capture_thread = None
            logger.info("[CAMERA] Capture loop stopped at frame: %s", self._frame_index)
        if self._started:
            try:
                self.picam2.stop()
            except Exception:
                logger.exception("[CAMERA] Failed to stop camera")
            self._started = False

    def is_capture_loop_alive(self) -> bool:
        return self._capture_thread is not None and self._capture_thread.is_alive()

    def capture_frame(self) -> CameraFrame:
        """Grab one frame together with its request metadata.

        The array from ``make_array`` views a buffer that ``release`` hands back
        to the camera, so it is copied first when numpy is available.
        """

        request = self.picam2.capture_request()
        try:
            pixels = request.make_array("main")
            if self._numpy is not None:
                pixels = self._numpy.array(pixels, copy=True)
            metadata = dict(request.get_metadata() or {})
        finally:
            request.release()
        self._frame_index += 1
        return CameraFrame(pixels=pixels, metadata=metadata, frame_id=self._frame_index)

    def get_runtime_status(self) -> dict[str, int]:
        return {
            "frames_captured": self._frame_index,
            "capture_failures": self._capture_failures,
            "running": int(self.is_capture_loop_alive()),
        }

    def _capture_loop(self) -> None:
        period_s = 1.0 / max(self.settings.fps, 1)
        next_capture = time.monotonic()
        while not self._stop_event.is_set():
            now = time.monotonic()
            if now < next_capture:
                self._stop_event.wait(timeout=next_capture - now)
                continue
            next_capture = now + period_s
            try:
                frame = self.capture_frame()
                handler = self._on_frame
                if handler is not None:
                    handler(frame)
            except Exception as exc:
                self._capture_failures += 1
                logger.exception("[CAMERA] Error in capture loop (retrying): %s", exc)
                self._stop_event.wait(timeout=0.1)
