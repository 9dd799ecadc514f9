"""Logging configuration using structlog.

Log events go to stderr, as JSON lines with ``--json-logs`` or as console
output otherwise, so command summaries on stdout stay pipeable.
"""

import logging
import sys
from typing import TextIO

import structlog

# Libraries that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "PIL")


def setup_logging(
    log_level: str = "INFO",
    json_format: bool = False,
    stream: TextIO | None = None,
) -> None:
    """Configure structlog and the stdlib root logger for a CLI run.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        json_format: Render JSON lines instead of console output.
        stream: Destination of log output (stderr if None).
    """
    stream = stream or sys.stderr
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")

    logging.basicConfig(format="%(message)s", stream=stream, level=level, force=True)
    library_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.ExtraAdder(),
    ]
    if json_format:
        processors += [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=stream.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def verbosity_to_level(verbose: int) -> str:
    """Map a repeated -v count to a log level name."""
    return "DEBUG" if verbose >= 1 else "INFO"
