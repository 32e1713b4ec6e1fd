"""
Logging configuration using loguru.

Stores and the engine take an explicit ``log`` argument; when omitted they
fall back to :func:`get_logger`, a bound child of the global loguru logger.
Call :func:`setup_logging` once at startup to pick level and sinks.
"""

import sys

from loguru import logger

DEFAULT_FORMAT = "<level>[{level.name}]</level> {message}"


def setup_logging(level: str = "INFO", log_file: str | None = None, fmt: str = DEFAULT_FORMAT) -> None:
    """
    Configure loguru with console and optional file output.

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR).
        log_file: Path to log file. If None, only logs to stderr.
        fmt: Loguru format string.
    """
    logger.remove()
    logger.configure(extra={"component": "worklog"})
    logger.add(sys.stderr, level=level.upper(), format=fmt)

    if log_file:
        logger.add(
            log_file,
            level=level.upper(),
            format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {extra[component]} | {message}",
        )


def get_logger(component: str):
    """Return a logger tagged with the component that emits it."""
    return logger.bind(component=component)
