"""Logging setup shared by the API, the CLI and the arq worker.

structlog renders request-scoped events from the web layer; pipeline, ledger
and cache modules log through the standard library and end up on the same
stream.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Any

import structlog

# Chatty third-party loggers capped at WARNING unless running at DEBUG
QUIET_LOGGERS = ("aiohttp.access", "sqlalchemy.engine", "arq.worker", "httpx")


def _renderer(log_format: str) -> Any:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def configure_logging(level: str | None = None, log_format: str | None = None) -> None:
    """Configure structlog and the standard library root logger.

    Args:
        level: Log level name; falls back to LOG_LEVEL, then INFO
        log_format: "json" or "console"; falls back to LOG_FORMAT, then console
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_format = (log_format or os.getenv("LOG_FORMAT", "console")).lower()

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=shared_processors + [_renderer(log_format)],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    log_file = Path("logs/modelcatalog.log")
    if log_file.parent.exists():
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        handlers=handlers,
        level=level_name,
    )

    if level_name != "DEBUG":
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
