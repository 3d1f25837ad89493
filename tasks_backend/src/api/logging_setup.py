from __future__ import annotations

import logging

import structlog

from .settings import Settings


# PUBLIC_INTERFACE
def configure_logging(settings: Settings) -> None:
    """
    Configure structlog for the service.

    JSON lines when LOG_FORMAT=json, human-readable console output otherwise.
    Records go through the standard library root logger at LOG_LEVEL.
    """
    logging.basicConfig(format="%(message)s", level=getattr(logging, settings.log_level, logging.INFO))

    processors: list = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if settings.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
