"""Config probe: files present, YAML parses, feedback values inside their ranges."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import yaml

from config.controller import OVERRIDE_NAME, merge_layers, normalize_config, read_yaml
from config.settings import SUPPORTED_LANGUAGES
from diagnostics.models import DiagnosticResult, DiagnosticStatus

NAME = "config"

# Same bounds FeedbackSettings clamps to.
RANGES = {
    "speechRate": (0.3, 0.7),
    "speechPitch": (0.8, 1.2),
    "hapticIntensity": (0, 2),
    "confidenceThreshold": (0.3, 0.9),
    "debounceInterval": (1.0, 5.0),
}


def _range_problems(config: Mapping[str, Any]) -> list[str]:
    problems = []
    for key, (low, high) in RANGES.items():
        raw = config.get(key)
        if raw is None:
            continue
        try:
            value = float(raw)
        except (TypeError, ValueError):
            problems.append(f"{key}={raw!r} is not numeric")
            continue
        if not low <= value <= high:
            problems.append(f"{key}={value} outside [{low}, {high}]")

    language = config.get("feedbackLanguage")
    if language is not None and str(language).lower() not in SUPPORTED_LANGUAGES:
        problems.append(f"feedbackLanguage={language!r} unsupported")
    return problems


def _fail(details: str) -> DiagnosticResult:
    return DiagnosticResult(name=NAME, status=DiagnosticStatus.FAIL, details=details)


def probe(base_dir: Path | None = None) -> DiagnosticResult:
    """Load default and override YAML from ``<base_dir>/config`` and check values.

    Out-of-range values are a WARN because the settings loader clamps them.
    """

    config_dir = (base_dir if base_dir is not None else Path.cwd()) / "config"
    default_file = config_dir / "default.yaml"
    override_file = config_dir / OVERRIDE_NAME

    if not config_dir.is_dir():
        return _fail(f"Config directory missing at {config_dir}")
    if not default_file.exists():
        return _fail(f"Missing default config at {default_file}")

    try:
        merged = read_yaml(default_file)
        if override_file.exists():
            merged = merge_layers(merged, read_yaml(override_file))
    except yaml.YAMLError as exc:
        return _fail(f"Config YAML invalid: {exc}")
    except OSError as exc:
        return _fail(f"Config access failed: {exc}")

    problems = _range_problems(normalize_config(merged))
    if problems:
        return DiagnosticResult(
            name=NAME,
            status=DiagnosticStatus.WARN,
            details="Values will be clamped: " + "; ".join(problems),
        )
    return DiagnosticResult(
        name=NAME,
        status=DiagnosticStatus.PASS,
        details=f"Config files readable at {config_dir}",
    )
