"""Logging configuration using loguru.

The library modules log through ``loguru.logger`` directly; entry points
call ``setup_logging`` once at startup to pick the level and sinks.
"""

from __future__ import annotations

import sys
from typing import Optional

from loguru import logger


def setup_logging(
    level: str = "WARNING",
    log_file: Optional[str] = None,
    fmt: str = "<level>[{level.name}]</level> {message}",
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """Replace loguru's default sink with a stderr sink at ``level``.

    When ``log_file`` is given, a rotating file sink is added as well.
    """
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=fmt)

    if log_file:
        logger.add(
            log_file,
            level=level.upper(),
            format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}",
            rotation=rotation,
            retention=retention,
        )
