"""structlog configuration."""

import logging
import sys

import structlog


def verbosity_to_level(verbose: int) -> str:
    """Map a repeated ``-v`` count to a log level name."""
    levels = ["ERROR", "WARNING", "INFO"]
    if verbose < len(levels):
        return levels[verbose]
    return "DEBUG"


def configure_logging(log_level: str = "ERROR", json_logs: bool = False) -> None:
    """Configure structlog to write filtered, timestamped events to stderr."""
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    renderer: structlog.types.Processor
    if json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
