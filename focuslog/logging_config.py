"""
Tool: Logging Config
Purpose: structlog-over-stdlib logging for the CLI and the API

Every module logs through ``logging.getLogger(__name__)``. Records from
those loggers pass through structlog's processor chain, so the CLI and the
API share one format: console output by default, JSON when configured.

The API binds the caller's user id per request (``bind_request_context``).
``merge_contextvars`` then adds it to every line logged while the request
is handled, including lines from the services and the store.

Precedence for level and format: explicit argument, then the
FOCUSLOG_LOG_LEVEL / FOCUSLOG_LOG_FORMAT environment variables, then the
``logging`` section of args/focuslog.yaml.

Usage:
    from focuslog.logging_config import setup_logging
    setup_logging(config.logging)
"""

from __future__ import annotations

import logging
import os
import sys

import structlog

from focuslog.config_models import LoggingConfig


def setup_logging(
    config: LoggingConfig | None = None,
    level: str | None = None,
    json_output: bool | None = None,
) -> None:
    config = config or LoggingConfig()

    if level is None:
        level = os.environ.get("FOCUSLOG_LOG_LEVEL") or config.level

    if json_output is None:
        log_format = os.environ.get("FOCUSLOG_LOG_FORMAT") or config.format
        json_output = log_format.lower() == "json"

    numeric_level = getattr(logging, level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=config.colors)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Stdlib records are "foreign" to structlog and need the pre-chain
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)

    # Per-request access lines are noise next to the service logs
    logging.getLogger("uvicorn.access").setLevel(max(numeric_level, logging.WARNING))


def bind_request_context(user_id: str) -> None:
    """Replace the per-request log context with the given caller."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(user_id=user_id)


__all__ = ["bind_request_context", "setup_logging"]
