"""Structured logging for testopia-runner.

Structured events are rendered by structlog to stderr by default, keeping
stdout free for the build report. Every event emitted while a build runs
carries its ``build_id``.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from typing import TYPE_CHECKING, TextIO

import structlog

if TYPE_CHECKING:
    from structlog.typing import EventDict, FilteringBoundLogger, Processor, WrappedLogger

build_id_ctx: ContextVar[str] = ContextVar("build_id", default="")


def add_build_id(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Attach the id of the running build, if any."""
    build_id = build_id_ctx.get()
    if build_id:
        event_dict["build_id"] = build_id
    return event_dict


def _processors(json_format: bool) -> list[Processor]:
    renderer: Processor = (
        structlog.processors.JSONRenderer()
        if json_format
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", key="timestamp"),
        add_build_id,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ]


def configure_logging(
    log_level: str = "INFO",
    json_format: bool = False,
    stream: TextIO | None = None,
) -> None:
    """
    Configure structlog for the runner.

    Args:
        log_level: Minimum level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Unknown names fall back to INFO.
        json_format: Render JSON lines instead of key=value console lines.
        stream: Output stream, sys.stderr when omitted.
    """
    level = logging.getLevelNamesMapping().get(log_level.upper(), logging.INFO)
    structlog.configure(
        processors=_processors(json_format),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stderr),
        # module loggers are created at import time, before configuration
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a lazy logger for a module.

    The logger is resolved against the configuration current at each call,
    so loggers created at import time follow later `configure_logging` calls.

    Args:
        name: Logger name, usually the module name. Rendered as ``logger_name``.
    """
    return structlog.get_logger(name, logger_name=name)
