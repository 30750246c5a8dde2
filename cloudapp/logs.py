"""structlog setup shared by the runtimes and the CLI."""

from __future__ import annotations

import logging

import structlog


def configure_logging(log_level: str, *, json_logs: bool = True) -> None:
    """Route structlog through stdlib logging at ``log_level``.

    Deployed functions log JSON for CloudWatch; the local server may ask for
    the console renderer instead.
    """
    numeric_level = logging.getLevelName(log_level.upper())
    if isinstance(numeric_level, str):
        numeric_level = logging.INFO
    logging.basicConfig(level=numeric_level, format="%(message)s")
    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        cache_logger_on_first_use=True,
    )
