"""Logging setup: structlog in front of stdlib logging.

LOG_FORMAT=json renders one JSON object per line (what the log pipeline
ingests); anything else renders colored console output. Records from stdlib
loggers (uvicorn, sqlalchemy, the modules that use ``logging.getLogger``)
go through the same formatter, so ``extra={...}`` fields end up as keys.

Usage:
    from core.logger import get_logger
    logger = get_logger(__name__)
    logger.info("topic.created", topic_key="sports", lang="en")
"""

import logging
import sys

import structlog
from structlog.types import Processor

from core.config import get_settings

# Third-party loggers that are too chatty at INFO
_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite", "asyncio")


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.ExtraAdder(),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def configure_logging(level: str | None = None, json_format: bool | None = None) -> None:
    """Configure structlog and the root logger once at startup.

    ``level`` and ``json_format`` default to LOG_LEVEL and LOG_FORMAT.
    """
    settings = get_settings()
    level_name = (level or settings.log_level).upper()
    log_level = logging.getLevelNamesMapping().get(level_name, logging.INFO)
    if json_format is None:
        json_format = settings.log_format.lower() == "json"

    shared = _shared_processors()
    renderer: Processor
    if json_format:
        renderer = structlog.processors.JSONRenderer(ensure_ascii=False)
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=True, exception_formatter=structlog.dev.plain_traceback
        )

    structlog.configure(
        processors=shared
        + [
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                renderer,
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Structured logger; pass event fields as keyword arguments."""
    return structlog.stdlib.get_logger(name)
