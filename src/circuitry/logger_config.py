"""structlog setup over the standard logging module."""

from __future__ import annotations

import logging
import sys

import structlog


def configure_structlog(level: str = "WARNING", json: bool = False) -> None:
    """Route structlog through stdlib logging on stderr.

    Args:
        level: Standard logging level name.
        json: Render events as JSON lines instead of the console format.
    """
    log_level = getattr(logging, str(level).upper(), logging.WARNING)

    logging.basicConfig(
        format="%(message)s",
        level=log_level,
        stream=sys.stderr,
        force=True,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
