"""Shared logger for the vision assist runtime.

Console output goes through rich. File output is optional and written from a
background queue listener so capture and inference threads never block on disk.
"""

from __future__ import annotations

import atexit
import logging
import logging.handlers
from pathlib import Path
import queue

from rich.console import Console
from rich.logging import RichHandler
from rich.text import Text


LOGGER_NAME = "vision_assist"
FILE_FORMAT = "%(asctime)s %(levelname)s %(threadName)s: %(message)s"

console = Console()


def setup_logging() -> logging.Logger:
    """Return the runtime logger, attaching the rich console handler once."""

    runtime_logger = logging.getLogger(LOGGER_NAME)
    if not any(isinstance(handler, RichHandler) for handler in runtime_logger.handlers):
        handler = RichHandler(console=console, rich_tracebacks=True, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
        runtime_logger.addHandler(handler)
        runtime_logger.setLevel(logging.INFO)
    runtime_logger.propagate = False
    return runtime_logger


logger = setup_logging()


class _FileSink:
    """Queue-backed file writer attached to the runtime logger."""

    def __init__(self, path: Path) -> None:
        self.path = path
        path.parent.mkdir(parents=True, exist_ok=True)
        records: queue.SimpleQueue[logging.LogRecord] = queue.SimpleQueue()
        writer = logging.FileHandler(path, encoding="utf-8")
        writer.setFormatter(logging.Formatter(FILE_FORMAT))
        self.handler = logging.handlers.QueueHandler(records)
        self.listener = logging.handlers.QueueListener(records, writer)

    def attach(self) -> None:
        self.listener.start()
        logger.addHandler(self.handler)

    def detach(self) -> None:
        logger.removeHandler(self.handler)
        self.listener.stop()
        for handler in self.listener.handlers:
            handler.close()


_sink: _FileSink | None = None


def set_level(level_name: str) -> int:
    """Apply a textual log level such as ``"debug"`` and return the numeric level.

    Unknown names fall back to INFO.
    """

    level = logging.getLevelName(str(level_name).upper())
    if not isinstance(level, int):
        level = logging.INFO
    logger.setLevel(level)
    return level


def enable_file_logging(log_path: Path) -> None:
    """Mirror runtime log records into ``log_path``.

    Calling again with the same path is a no-op; a new path replaces the old sink.
    """

    global _sink

    log_path = Path(log_path).expanduser()
    if _sink is not None:
        if _sink.path == log_path:
            return
        _sink.detach()

    _sink = _FileSink(log_path)
    _sink.attach()


def disable_file_logging() -> None:
    """Flush and detach the file sink, if one is active."""

    global _sink

    if _sink is None:
        return
    _sink.detach()
    _sink = None


atexit.register(disable_file_logging)


def log_announcement(text: str, language: str) -> None:
    """Echo a spoken announcement to the console in a highlighted style."""

    logger.info(Text(f"🔊 [{language}] {text}", style="bold cyan"))


def log_info(message: str, style: str = "bold white") -> None:
    logger.info(Text(message, style=style))
