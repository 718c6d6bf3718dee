"""structlog configuration.

Engine modules call structlog.get_logger(__name__) at import time; the
loggers are lazy proxies, so configure_logging() may run before or after.
"""

import logging
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from graphtune.core.config import LoggingSettings


def configure_logging(settings: "LoggingSettings") -> None:
    """Configure structlog level filtering and rendering.

    Args:
        settings: Logging section of GraphtuneSettings
    """
    level = logging.getLevelName(settings.level)

    renderer: structlog.types.Processor
    if settings.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=False,
    )
