"""
Logging setup.

Library modules log through ``structlog.get_logger()`` and never configure
output themselves. Applications call :func:`configure_logging` once at
startup.
"""

import logging
import sys
from typing import Optional

import structlog

from ..config import settings


def configure_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    """
    Configure structlog on top of the standard library logger.

    Args:
        level: Log level name, defaults to ``settings.log_level``
        fmt: ``"json"`` or ``"console"``, defaults to ``settings.log_format``
    """
    level = (level or settings.log_level).upper()
    fmt = (fmt or settings.log_format).lower()

    if fmt == "json":
        renderer = structlog.processors.JSONRenderer()
    elif fmt == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        raise ValueError(f"Unknown log format: {fmt}")

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level, logging.INFO),
        force=True,
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
