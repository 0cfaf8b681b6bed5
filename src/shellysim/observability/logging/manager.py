"""Logging setup for the simulator.

Text output goes through rich's RichHandler; JSON output goes through a
plain stream handler with StructuredFormatter. Handlers are installed on the
``shellysim`` package logger so embedding applications keep control of the
root logger.
"""

import logging
import sys
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from shellysim.observability.logging.structured import StructuredFormatter

ROOT_LOGGER_NAME = "shellysim"

LOG_FORMATS = ("text", "json")

# Static field stamped on every JSON log line
SERVICE_NAME = "shelly-sim"

# Marks handlers installed here so reconfiguration replaces them
_HANDLER_ATTR = "_shellysim_handler"


def parse_level(level: str) -> int:
    """Parse a log level name to its integer value.

    Raises:
        ValueError: If the level name is unknown.
    """
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


def configure_logging(
    level: str = "INFO",
    fmt: str = "text",
    console: Optional[Console] = None,
) -> logging.Logger:
    """Configure the simulator package logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        fmt: Output format, "text" or "json".
        console: Rich console for text output. Defaults to stderr.

    Returns:
        The configured package logger.

    Raises:
        ValueError: If the level or format is unknown.

    Example:
        >>> configure_logging("DEBUG", "json")
        <Logger shellysim (DEBUG)>
    """
    if fmt not in LOG_FORMATS:
        raise ValueError(f"Unknown log format: {fmt}")
    level_no = parse_level(level)

    if fmt == "json":
        handler: logging.Handler = logging.StreamHandler(sys.stderr)
        # Source locations only at DEBUG
        handler.setFormatter(StructuredFormatter(
            include_source_location=level_no <= logging.DEBUG,
            extra_fields={"service": SERVICE_NAME},
        ))
    else:
        handler = RichHandler(
            console=console or Console(stderr=True),
            rich_tracebacks=True,
            show_path=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    setattr(handler, _HANDLER_ATTR, True)

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    for existing in list(root_logger.handlers):
        if getattr(existing, _HANDLER_ATTR, False):
            root_logger.removeHandler(existing)
            existing.close()

    root_logger.setLevel(level_no)
    root_logger.addHandler(handler)
    root_logger.propagate = False
    return root_logger
