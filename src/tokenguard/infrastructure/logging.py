"""Structured logging configuration -- structlog + stdlib integration.

:func:`setup_logging` routes structlog events and stdlib ``logging`` records
(uvicorn, httpx) through one processor chain and one renderer:
JSON lines when ``json_output`` is set, coloured console output otherwise.
``request_id`` reaches every event through :mod:`structlog.contextvars`,
bound by :class:`~tokenguard.presentation.middleware.request_id.RequestIdMiddleware`.
"""
from __future__ import annotations

import logging
import sys
from typing import Any

import structlog


def setup_logging(level: str = "info", json_output: bool = False) -> None:
    """Configure structlog with stdlib logging integration.

    Args:
        level: Log level name (``debug``, ``info``, ``warning``...).
        json_output: Render JSON lines instead of console output.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        renderer: Any = structlog.processors.JSONRenderer()
        shared_processors.append(structlog.processors.format_exc_info)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    for noisy in ("uvicorn.access", "httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    structlog.get_logger(__name__).info(
        "logging_configured", level=level, json_output=json_output
    )


__all__ = ["setup_logging"]
