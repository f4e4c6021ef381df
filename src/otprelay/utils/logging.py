"""Logging helpers with consistent formatting."""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

from rich.logging import RichHandler

from otprelay.utils.env import get_bool_env


def _default_level() -> int:
    name = os.getenv("OTPRELAY_LOG_LEVEL", "INFO").strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def get_logger(name: str, level: Optional[int] = None, *, rich: Optional[bool] = None) -> logging.Logger:
    """Configure and return a logger.

    Process managers that capture stdout usually do better with plain lines,
    so ``OTPRELAY_LOG_RICH=0`` switches the rich handler off.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    if level is None:
        level = _default_level()
    if rich is None:
        rich = get_bool_env("OTPRELAY_LOG_RICH", default=True)

    logger.setLevel(level)

    if rich:
        handler: logging.Handler = RichHandler(
            level=level,
            markup=False,
            rich_tracebacks=True,
            tracebacks_show_locals=False,
            show_time=True,
            show_path=False,
        )
        formatter = logging.Formatter("%(name)s: %(message)s")
    else:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)
        formatter = logging.Formatter(
            "%(asctime)s %(name)s %(levelname)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    handler.setFormatter(formatter)

    logger.addHandler(handler)
    logger.propagate = False
    return logger
