"""Structlog configuration.

Colored console output when attached to a terminal, JSON lines otherwise.
"""

from __future__ import annotations

import logging
import os
import sys

import structlog


def _stderr_logger(*_args: object) -> structlog.PrintLogger:
    # stdout carries the CLI output; look stderr up per logger so redirected streams are honored
    return structlog.PrintLogger(file=sys.stderr)


def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    force_color = os.environ.get("FORCE_COLOR", "").lower() in ("1", "true", "yes")
    use_colors = not json_output and (force_color or sys.stderr.isatty())

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if use_colors:
        processors: list[structlog.types.Processor] = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=True),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        context_class=dict,
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )
