"""Logging for the listing server.

Everything goes to a rotating `comicglass.log` in the data directory at DEBUG,
including the thread name, since scans run on request threads and pre-warm
workers. The console gets a rich handler at the requested level.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme


LOG_FILENAME = "comicglass.log"
LOG_MAX_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5
FILE_FORMAT = "%(asctime)s - %(levelname)-8s - %(threadName)s - %(name)s - %(message)s"

# Loggers that are too chatty at INFO for a directory browser.
QUIET_LOGGERS = ("uvicorn.access",)

_logging_initialized = False


def default_log_dir() -> Path:
    """DATA_DIR if set, else the project directory (mirrors config.DATA_DIR)."""
    env = os.environ.get("DATA_DIR")
    if env:
        return Path(env)
    return Path(__file__).resolve().parents[1]


def _file_handler(log_file: Path) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        log_file,
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUPS,
        encoding="utf-8",
        errors="backslashreplace",
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def _console_handler(level: int) -> RichHandler:
    console = Console(theme=Theme({"logging.level.info": "bold cyan"}), stderr=True)
    handler = RichHandler(
        console=console,
        rich_tracebacks=True,
        show_time=False,
        show_path=False,
    )
    handler.setLevel(level)
    return handler


def setup_logging(
    log_level: str = "INFO", log_dir: Optional[Union[str, Path]] = None
) -> Optional[Path]:
    """Install the file and console handlers on the root logger, once.

    Args:
        log_level: Console level name (DEBUG, INFO, WARNING, ERROR); unknown
            names fall back to INFO
        log_dir: Directory for `comicglass.log`; defaults to `default_log_dir()`

    Returns:
        Path of the log file, or None when logging was already set up
    """
    global _logging_initialized

    if _logging_initialized:
        return None

    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    directory = Path(log_dir) if log_dir is not None else default_log_dir()
    directory.mkdir(parents=True, exist_ok=True)
    log_file = directory / LOG_FILENAME

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(_file_handler(log_file))
    root_logger.addHandler(_console_handler(level))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _logging_initialized = True
    return log_file


def get_logger(name: str) -> logging.Logger:
    """Module logger; handlers live on the root logger."""
    return logging.getLogger(name)
