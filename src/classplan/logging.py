"""Structured logging for the scheduler using structlog.

Console output while editing the schedule by hand, JSON when the CLI is driven
by another program. Output goes to stderr so `plan.py show --json` stays
parseable on stdout. Every module logs through get_logger(); a CLI run binds
its command and schedule file once with bind_run_context() so each event
carries them.
"""

import logging
import sys
from pathlib import Path

import structlog


def _renderer(json_output: bool) -> structlog.typing.Processor:
    if json_output:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def setup_logging(json_output: bool = False, log_level: str = "INFO") -> None:
    """Configure structlog for a scheduler run.

    Args:
        json_output: Emit one JSON object per event instead of console lines.
        log_level: Minimum level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _renderer(json_output),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    # Third-party libraries log through stdlib; keep them on stderr too
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=numeric_level)


def bind_run_context(command: str, data_file: Path) -> None:
    """Attach the CLI command and schedule file to every following log event."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(command=command, data_file=str(data_file))


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger bound with the module name (pass __name__)."""
    return structlog.get_logger(name)
