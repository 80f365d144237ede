"""Logging helpers for qai.

Standard output carries the generated command and the shell
integration script, so log records go to a file instead:
``$XDG_DATA_HOME/qai/logs/qai.log``.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from .config import data_dir


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_log_dir() -> Path:
    return data_dir() / "logs"


def get_log_file() -> Path:
    return get_log_dir() / "qai.log"


def configure_logging(verbosity: int = 0, debug: bool = False) -> None:
    """
    Configure the ``qai`` logger based on a verbosity count.

    verbosity == 0 -> WARNING (INFO when ``debug`` is set)
    verbosity == 1 -> INFO
    verbosity >= 2 -> DEBUG
    """

    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1 or debug:
        level = logging.INFO
    else:
        level = logging.WARNING

    root = logging.getLogger("qai")
    root.setLevel(level)
    if root.handlers:
        return

    try:
        log_dir = get_log_dir()
        log_dir.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(get_log_file(), encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
    except OSError as exc:
        print(f"Warning: Failed to setup logging: {exc}", file=sys.stderr)
        handler = logging.NullHandler()
    root.addHandler(handler)
