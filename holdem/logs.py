"""Simple process-wide file logging."""

from __future__ import annotations

import os
from pathlib import Path
from typing import TextIO

DEFAULT_LOG_DIR = "logs"


class _LogSink:
    """Holds the single open log file, if any."""

    def __init__(self) -> None:
        self.file: TextIO | None = None

    def open(self, path: Path) -> None:
        self.close()
        try:
            self.file = open(path, "w", encoding="utf-8")
        except OSError:
            self.file = None

    def write(self, level: str, message: str) -> None:
        if self.file is None:
            return
        self.file.write(f"[{level}] {message}\n")
        self.file.flush()

    def close(self) -> None:
        if self.file is not None:
            self.file.close()
            self.file = None


_sink = _LogSink()


def log_init(tag: str | None = None, log_dir: str | os.PathLike = DEFAULT_LOG_DIR) -> None:
    """Open a log file named after the tag and the process id."""
    prefix = tag if tag is not None else "logs"
    _sink.open(Path(log_dir) / f"{prefix}.{os.getpid()}")


def log_player_init(num: int, log_dir: str | os.PathLike = DEFAULT_LOG_DIR) -> None:
    """Open the log file for player number num."""
    _sink.open(Path(log_dir) / f"player{num}.logs")


def log_info(message: str) -> None:
    """Write an informational line."""
    _sink.write("INFO", message)


def log_debug(message: str) -> None:
    """Write a debugging line."""
    _sink.write("DEBUG", message)


def log_err(message: str) -> None:
    """Write an error line."""
    _sink.write("ERROR", message)


def log_fini() -> None:
    """Close the log file."""
    _sink.close()