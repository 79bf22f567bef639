"""Command-line entry point for the vision assist runtime."""

from __future__ import annotations

import argparse
import dataclasses
from pathlib import Path
import sys

from config import ConfigController
from config.settings import (
    SUPPORTED_LANGUAGES,
    CameraSettings,
    FeedbackSettings,
    InferenceSettings,
    PipelineSettings,
    ThermalSettings,
)
from core.event_bus import EventBus
from core.logging import disable_file_logging, enable_file_logging, log_info, logger, set_level
from interaction.announcer import Announcer
from interaction.commands import CommandParser, translate_label
from interaction.haptics import HapticController, LoggingHapticDriver
from interaction.speech import QueuedSpeaker, create_speaker
from interaction.voice import AuthorizationStatus, SpeechRecognitionEngine, VoiceCommandSession
from services.search_pipeline import SearchPipeline
from services.thermal_monitor import ThermalMonitor
from vision.filter import DetectionFilter
from vision.inference import Imx500Runtime, InferenceStage
from vision.scheduler import FrameScheduler
from vision.target import TargetStateMachine
from vision.thermal import ThermalGovernor


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Raw command-line arguments.

    Returns:
        Parsed arguments namespace.
    """

    parser = argparse.ArgumentParser(
        description="Run the hands-free object search assistant."
    )
    parser.add_argument(
        "--diagnostics",
        action="store_true",
        help="Run diagnostics probes and exit.",
    )
    parser.add_argument("--target", type=str, help="Start searching for this object.")
    parser.add_argument(
        "--language",
        choices=SUPPORTED_LANGUAGES,
        help="Override the feedback language from config.",
    )
    parser.add_argument("--log-level", type=str, help="Override logging_level from config.")
    return parser.parse_args(argv)


def run_diagnostics_cli() -> int:
    from diagnostics.run import build_probes
    from diagnostics.runner import exit_code, format_results, run_diagnostics

    results = run_diagnostics(build_probes())
    print(format_results(results))
    return exit_code(results)


def _start_thermal(settings: ThermalSettings, governor: ThermalGovernor) -> ThermalMonitor | None:
    if not settings.enabled:
        logger.info("[THERMAL] Monitoring disabled in config; assuming nominal")
        return None
    from hardware.thermal_sensor import SysfsThermalSensor

    sensor = SysfsThermalSensor(
        zone_path=settings.zone_path,
        fair_c=settings.fair_c,
        serious_c=settings.serious_c,
        critical_c=settings.critical_c,
    )
    if not sensor.is_available():
        logger.warning("[THERMAL] No thermal zone at %s; assuming nominal", sensor.zone_path)
        return None
    monitor = ThermalMonitor(sensor.read_level, sensor.read_temperature_c)
    monitor.register_event_handler(governor.handle_status_event)
    monitor.start_loop(settings.poll_period_s)
    return monitor


def _start_voice(
    settings: FeedbackSettings,
    parser: CommandParser,
    haptics: HapticController,
) -> VoiceCommandSession | None:
    try:
        engine = SpeechRecognitionEngine(language=settings.speech_locale)
    except Exception as exc:
        logger.warning("[VOICE] Voice commands unavailable: %s", exc)
        return None
    session = VoiceCommandSession(engine, parser, haptics)
    if session.request_authorization() is not AuthorizationStatus.AUTHORIZED:
        logger.warning("[VOICE] Voice control disabled; typed commands still work")
    return session


def _command_loop(parser: CommandParser, voice: VoiceCommandSession | None) -> None:
    """Read typed commands from stdin; an empty line toggles voice listening."""

    logger.info("Type a command (e.g. 'bilgisayar bul', 'temizle'); empty line toggles voice.")
    for line in sys.stdin:
        text = line.strip()
        if not text:
            if voice is None:
                logger.info("[VOICE] Voice commands are not available")
            else:
                voice.toggle_recording()
            continue
        parser.handle_transcript(text)


def main(argv: list[str] | None = None) -> int:
    """Application entry point.

    Args:
        argv: Optional list of command-line arguments.

    Returns:
        Process exit code.
    """

    if argv is None:
        argv = sys.argv[1:]
    args = parse_args(argv)

    config = ConfigController.get_instance().get_config()
    set_level(args.log_level or config.get("logging_level", "INFO"))
    if args.diagnostics:
        return run_diagnostics_cli()

    if config.get("file_logging_enabled", False):
        log_file_path = Path(config.get("log_file", "logs/vision_assist.log"))
        enable_file_logging(log_file_path)
        logger.info("Writing logs to %s", log_file_path)

    settings = FeedbackSettings.from_config(config)
    if args.language:
        settings = dataclasses.replace(settings, feedback_language=args.language)
    pipeline_settings = PipelineSettings.from_config(config)
    inference_settings = InferenceSettings.from_config(config)
    camera_settings = CameraSettings.from_config(config)

    haptics = HapticController(LoggingHapticDriver(), settings)
    speaker = create_speaker()
    announcer = Announcer(speaker, settings)
    state_machine = TargetStateMachine()
    state_machine.register_event_handler(announcer.handle_event)
    state_machine.register_event_handler(haptics.handle_event)

    pipeline = SearchPipeline(
        state_machine,
        EventBus(maxlen=pipeline_settings.bus_maxlen),
        announcer=announcer,
        announce_other_objects=pipeline_settings.announce_other_objects,
    )
    governor = ThermalGovernor()
    scheduler = FrameScheduler(
        governor,
        InferenceStage(Imx500Runtime(), bbox_origin=inference_settings.bbox_origin),
        DetectionFilter(settings.confidence_threshold),
        on_batch=pipeline.submit_batch,
    )
    parser = CommandParser(sink=pipeline)

    thermal_monitor = None
    camera = None
    voice = None
    try:
        pipeline.start()
        thermal_monitor = _start_thermal(ThermalSettings.from_config(config), governor)

        if camera_settings.enabled:
            try:
                from hardware.camera_controller import CameraController

                camera = CameraController(camera_settings, on_frame=scheduler.submit_frame)
                camera.start_capture_loop()
            except Exception as exc:
                logger.warning("Camera controller unavailable: %s", exc)
                camera = None

        voice = _start_voice(settings, parser, haptics)

        log_info(
            f"Vision assist ready (language={settings.feedback_language}, "
            f"threshold={settings.confidence_threshold:.2f})",
            style="bold green",
        )
        if args.target:
            pipeline.set_target(translate_label(args.target.strip()))

        _command_loop(parser, voice)
    except KeyboardInterrupt:
        logger.info("Program terminated by user")
    except Exception as exc:
        logger.exception("An unexpected error occurred: %s", exc)
        return 1
    finally:
        if voice is not None:
            voice.stop_recording()
        if camera is not None:
            camera.stop_capture_loop()
        scheduler.shutdown(wait=False)
        if thermal_monitor is not None:
            thermal_monitor.unregister_event_handler(governor.handle_status_event)
            thermal_monitor.stop_loop()
        pipeline.stop()
        if isinstance(speaker, QueuedSpeaker):
            speaker.close()
        disable_file_logging()

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
