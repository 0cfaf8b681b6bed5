"""Observability package for the device simulator.

This package provides:
- Prometheus metrics, one private registry per simulator instance
- Structured JSON logging and rich console logging setup

Example:
    >>> from shellysim.observability import MetricsRegistry, configure_logging
    >>> configure_logging("INFO", "json")
    >>> metrics = MetricsRegistry()
"""

from shellysim.observability.logging import StructuredFormatter, configure_logging
from shellysim.observability.metrics import MetricsRegistry

__all__ = [
    "MetricsRegistry",
    "StructuredFormatter",
    "configure_logging",
]
