"""YAML configuration loading with a user override layer.

``default.yaml`` ships with the package. ``override.yaml`` next to it holds the
user's changed preferences; every save archives the previous override as
``override_NNNN.yaml`` so earlier settings can be restored by hand.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import re
from typing import Any, Mapping

import yaml

from core.logging import logger


FEEDBACK_KEYS = (
    "audioEnabled",
    "speechRate",
    "speechPitch",
    "hapticEnabled",
    "hapticIntensity",
    "confidenceThreshold",
    "debounceInterval",
    "feedbackLanguage",
)
SECTIONS = ("thermal", "camera", "inference", "pipeline")
OVERRIDE_NAME = "override.yaml"


@dataclass(frozen=True)
class ConfigPaths:
    config_dir: Path
    config_file: Path
    override_file: Path

    def archive_slot(self) -> Path:
        """First unused ``override_NNNN.yaml`` path in the config directory."""

        index = 1
        while (candidate := self.config_dir / f"override_{index:04d}.yaml").exists():
            index += 1
        return candidate


def read_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle)
    return data if isinstance(data, dict) else {}


def merge_layers(base: Mapping[str, Any], layer: Mapping[str, Any]) -> dict[str, Any]:
    result = dict(base)
    for key, value in layer.items():
        current = result.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            result[key] = merge_layers(current, value)
        else:
            result[key] = value
    return result


def _snake_case(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


class ConfigController:
    """Process-wide holder of the merged configuration dictionary."""

    _instance: "ConfigController | None" = None

    def __init__(self, config_file: str = "default.yaml", config_dir: Path | None = None) -> None:
        if ConfigController._instance is not None:
            raise RuntimeError("ConfigController is a singleton; use get_instance()")

        base_dir = Path("config") if config_dir is None else Path(config_dir)
        self.paths = ConfigPaths(
            config_dir=base_dir,
            config_file=base_dir / config_file,
            override_file=base_dir / OVERRIDE_NAME,
        )
        self.config: dict[str, Any] = {}
        self.load_config()
        ConfigController._instance = self

    @classmethod
    def get_instance(cls) -> "ConfigController":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def load_config(self) -> None:
        """Read ``default.yaml`` and layer ``override.yaml`` on top when present."""

        merged = read_yaml(self.paths.config_file)
        if self.paths.override_file.exists():
            merged = merge_layers(merged, read_yaml(self.paths.override_file))
        self.config = normalize_config(merged)

    def reload(self) -> dict[str, Any]:
        self.load_config()
        logger.info("[CONFIG] Reloaded configuration from %s", self.paths.config_dir)
        return self.get_config()

    def get_config(self) -> dict[str, Any]:
        return dict(self.config)

    def get_section(self, section: str) -> dict[str, Any]:
        """Copy of one nested section such as ``thermal``; empty when absent."""

        return dict(self.config.get(section) or {})

    def set_config(self, config: dict[str, Any]) -> None:
        """Replace the active configuration and persist it as the new override."""

        self.config = dict(config)
        self.save_config(self.config)

    def update(self, changes: Mapping[str, Any]) -> dict[str, Any]:
        """Merge ``changes`` into the saved override and the active configuration."""

        saved = read_yaml(self.paths.override_file) if self.paths.override_file.exists() else {}
        self.save_config(merge_layers(saved, changes))
        self.config = normalize_config(merge_layers(self.config, changes))
        return self.get_config()

    def save_config(self, config: dict[str, Any]) -> None:
        if self.paths.override_file.exists():
            archived = self.paths.archive_slot()
            self.paths.override_file.rename(archived)
            logger.debug("[CONFIG] Archived previous override to %s", archived.name)

        with self.paths.override_file.open("w", encoding="utf-8") as handle:
            yaml.safe_dump(config, handle, allow_unicode=True, sort_keys=False)


def normalize_config(config: Mapping[str, Any]) -> dict[str, Any]:
    """Flatten feedback preferences to their camelCase keys.

    Values may be spelled camelCase or snake_case, at top level or inside a
    ``feedback:`` block. Top-level camelCase wins.
    """

    normalized = dict(config)
    feedback_block = dict(normalized.pop("feedback", None) or {})
    for key in FEEDBACK_KEYS:
        snake = _snake_case(key)
        top_snake = normalized.pop(snake, None)
        if key in normalized:
            continue
        for candidate in (feedback_block.get(key), feedback_block.get(snake), top_snake):
            if candidate is not None:
                normalized[key] = candidate
                break

    for section in SECTIONS:
        normalized[section] = dict(normalized.get(section) or {})
    return normalized
