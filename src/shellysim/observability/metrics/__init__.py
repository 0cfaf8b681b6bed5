"""Metrics collection package for Prometheus.

Example:
    >>> from shellysim.observability.metrics import MetricsRegistry
    >>> metrics = MetricsRegistry()
    >>> metrics.devices.set(3)
    >>> b"shellysim_devices 3.0" in metrics.exposition()
    True
"""

from shellysim.observability.metrics.registry import MetricsRegistry

__all__ = ["MetricsRegistry"]
