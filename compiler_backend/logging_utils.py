"""Shared logging helpers.

Call :func:`configure_logging` once at start-up so every module in the
package writes through the same root handler.  The level comes from the
``COMPILER_LOG_LEVEL`` environment variable (``DEBUG``, ``INFO``, ...) and
defaults to ``INFO``.  Repeated calls are no-ops unless ``overwrite`` is set.
"""
from __future__ import annotations

import logging
import os
from typing import Any

DEFAULT_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s"


def configure_logging(level: str | int | None = None, *, overwrite: bool = False, **kwargs: Any) -> None:
    """Initialise the root logger with the service format."""

    if level is None:
        env_level = os.getenv("COMPILER_LOG_LEVEL", "INFO")
        level = int(env_level) if env_level.isdigit() else env_level.upper()

    fmt = kwargs.pop("format", DEFAULT_FORMAT)
    logging.basicConfig(level=level, format=fmt, force=overwrite, **kwargs)
