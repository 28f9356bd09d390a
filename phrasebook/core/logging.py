"""
Structured logging setup.

Application code logs events, not sentences:

    logger = get_logger(__name__)
    logger.info("phrase_submitted", phrase_id=phrase.id)

structlog renders those events, and plain ``logging.getLogger`` records
from libraries (uvicorn, celery, sqlalchemy) go through the same formatter,
so a single stream comes out as JSON in production or as readable console
lines in development (``LOG_FORMAT``).
"""

import logging
import sys
from typing import Any, List, Optional

import structlog

from phrasebook.core.config import settings

# Libraries that are too chatty at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine", "uvicorn.access")


def _shared_processors() -> List[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]


def setup_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """
    Configure structlog and the stdlib root logger.

    Safe to call more than once (the API process and Celery workers both
    call it on startup); the root handler is replaced, not duplicated.

    Args:
        level: Log level override (defaults to settings.LOG_LEVEL)
        log_format: "json" or "text" (defaults to settings.LOG_FORMAT)
    """
    level = level or settings.LOG_LEVEL
    log_format = log_format or settings.LOG_FORMAT

    shared_processors = _shared_processors()

    if log_format == "json":
        final_processors: List[Any] = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        final_processors = [structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta] + final_processors,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Return a structured logger bound to ``name``."""
    return structlog.get_logger(name)
