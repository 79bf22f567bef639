"""Command-line entry point for running diagnostics."""

from __future__ import annotations

import argparse
from pathlib import Path
import tempfile
from typing import Callable

from config.diagnostics import probe as config_probe
from core.diagnostics import probe as core_probe
from diagnostics.models import DiagnosticResult
from diagnostics.runner import exit_code, format_results, run_diagnostics
from hardware.diagnostics import HardwareProbeConfig, probe as hardware_probe
from interaction.diagnostics import probe as interaction_probe
from vision.diagnostics import probe as vision_probe


OFFLINE_MODULES = {"picamera2", "numpy", "pyttsx3", "speech_recognition", "pyaudio"}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""

    parser = argparse.ArgumentParser(description="Run diagnostics probes.")
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Run probes against a temporary offline directory.",
    )
    parser.add_argument(
        "--base-dir",
        type=Path,
        default=None,
        help="Optional base directory for offline diagnostics.",
    )
    return parser.parse_args(argv)


def build_probes(
    base_dir: Path | None = None,
    offline: bool = False,
) -> list[Callable[[], DiagnosticResult]]:
    """Return the probe callables for a live or offline run."""

    def config_probe_with_base() -> DiagnosticResult:
        return config_probe(base_dir=base_dir)

    if offline:
        def hardware_probe_offline() -> DiagnosticResult:
            zone = (base_dir or Path.cwd()) / "thermal_zone0" / "temp"
            return hardware_probe(
                config=HardwareProbeConfig(thermal_zone_path=zone),
                available_modules=OFFLINE_MODULES,
            )

        def interaction_probe_offline() -> DiagnosticResult:
            return interaction_probe(available_modules=OFFLINE_MODULES)

        return [
            config_probe_with_base,
            core_probe,
            vision_probe,
            interaction_probe_offline,
            hardware_probe_offline,
        ]

    return [config_probe_with_base, core_probe, vision_probe, interaction_probe, hardware_probe]


def _seed_offline_dir(base_dir: Path) -> None:
    config_dir = base_dir / "config"
    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / "default.yaml").write_text("feedbackLanguage: tr\n", encoding="utf-8")

    zone_dir = base_dir / "thermal_zone0"
    zone_dir.mkdir(parents=True, exist_ok=True)
    (zone_dir / "temp").write_text("45000\n", encoding="utf-8")


def main(argv: list[str] | None = None) -> int:
    """Run diagnostics and return an exit code."""

    args = parse_args(argv)
    base_dir = args.base_dir

    if args.offline and base_dir is None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            tmp_base = Path(tmp_dir)
            _seed_offline_dir(tmp_base)
            results = run_diagnostics(build_probes(base_dir=tmp_base, offline=True))
    else:
        results = run_diagnostics(build_probes(base_dir=base_dir, offline=args.offline))

    print(format_results(results))
    return exit_code(results)


if __name__ == "__main__":
    raise SystemExit(main())
