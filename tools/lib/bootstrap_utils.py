"""Bootstrap utilities for tool scripts.

Provides logging setup and output-file helpers shared by the command line
entry points under :mod:`tools`.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import TextIO

LOG_LEVEL_ENV = "LOG_LEVEL"
DEFAULT_FORMAT = "[%(levelname)s] %(name)s: %(message)s"


def setup_logging(
    level: str | int | None = None,
    format_str: str = DEFAULT_FORMAT,
    stream: TextIO = sys.stderr,
) -> logging.Logger:
    """Configure and return the root logger.

    Args:
        level: Logging level; falls back to ``$LOG_LEVEL`` and then INFO
        format_str: Log message format
        stream: Output stream (default: stderr, so stdout stays free for tool output)

    Returns:
        Configured root logger instance
    """
    resolved = level if level is not None else os.environ.get(LOG_LEVEL_ENV, "INFO")
    if isinstance(resolved, str):
        resolved = resolved.upper()

    logger = logging.getLogger()
    logger.setLevel(resolved)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(format_str))
    logger.addHandler(handler)

    return logger


def write_text_if_changed(path: Path, content: str) -> bool:
    """Write ``content`` to ``path`` unless it already holds exactly that text.

    Returns:
        True when the file was written
    """
    if path.exists() and path.read_text(encoding="utf-8") == content:
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return True
