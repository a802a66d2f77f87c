import logging
import os
import sys
from pathlib import Path
from typing import Any

import structlog


def configure_logging(level: str | None = None, log_format: str | None = None) -> None:
    """Configure structured logging for the application."""

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

    log_format = (log_format or os.getenv("LOG_FORMAT", "text")).lower()
    if log_format == "json":
        processors = shared_processors + [structlog.processors.JSONRenderer()]
    else:
        processors = shared_processors + [structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Ledger output goes to stdout; logs go to stderr so CSV/table output stays clean
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    log_file = Path("logs/salcalc.log")
    if log_file.parent.exists():
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        format="%(message)s",
        handlers=handlers,
        level=(level or os.getenv("LOG_LEVEL", "INFO")).upper(),
        force=True,
    )
