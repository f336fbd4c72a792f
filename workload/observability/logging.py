"""JSON-lines logging for the workload service.

Every record, ours or uvicorn's, leaves stdout as one JSON object. uvicorn is held
at WARNING so the stream carries the per-request lines and the service's own
lifecycle events (listening, shutdown_started, shutdown_complete/shutdown_error)
instead of the server's startup chatter.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog


_UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

_configured = False


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(level: int | str = logging.INFO) -> None:
    """Route structlog and stdlib records to a single stdout JSON handler. Idempotent."""

    global _configured
    if _configured:
        return

    level = _resolve_level(level)
    shared: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer(),
            foreign_pre_chain=shared,
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    for name in _UVICORN_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers = []
        server_logger.propagate = True
        server_logger.setLevel(max(level, logging.WARNING))

    _configured = True
