"""Logger factory shared by the lock handle and the CLI."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from rich.logging import RichHandler

from .env import get_bool_env


_PLAIN_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"


def get_logger(name: str, level: int = logging.INFO, *, rich: Optional[bool] = None) -> logging.Logger:
    """Configure ``name`` once and return it.

    Rich output is used unless ``rich=False`` or ``LEASELOCK_RICH_LOGS`` is off;
    Rich renders time and level itself, so only the message is formatted.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    if rich is None:
        rich = get_bool_env("LEASELOCK_RICH_LOGS", default=True)

    handler: logging.Handler
    if rich:
        handler = RichHandler(level=level, rich_tracebacks=True, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(_PLAIN_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    logger.setLevel(level)
    logger.addHandler(handler)
    logger.propagate = False
    return logger
