"""Structured logging module for observability.

This module provides JSON log formatting and the logging setup used by the
command line interface.
"""

from shellysim.observability.logging.manager import LOG_FORMATS, configure_logging, parse_level
from shellysim.observability.logging.structured import StructuredFormatter

__all__ = ["LOG_FORMATS", "StructuredFormatter", "configure_logging", "parse_level"]
