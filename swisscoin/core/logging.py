"""
Structured logging setup.

Every module logs through ``structlog.get_logger(__name__)``; this module wires
structlog onto the stdlib logging tree once, at application start.
"""

import logging
import sys

import structlog

from swisscoin.core.config import settings


def configure_logging(level: str | None = None, json_logs: bool | None = None) -> None:
    """Configure stdlib logging and structlog processors."""
    level_name = (level or settings.LOG_LEVEL).upper()
    render_json = settings.LOG_JSON if json_logs is None else json_logs

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level_name, logging.INFO),
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if render_json
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def short_hash(phone_hash: str | None) -> str | None:
    """Truncated phone hash for log context."""
    if not phone_hash:
        return None
    return phone_hash[:12]
