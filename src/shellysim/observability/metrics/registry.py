"""Metrics registry for Prometheus metrics definitions.

This module defines the Prometheus metrics recorded by a simulator instance:
request counts and latency per protocol generation, RPC errors, state
mutations, and the number of simulated devices.
"""

from typing import Optional

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, Gauge, Histogram, generate_latest


class MetricsRegistry:
    """Registry of the Prometheus metrics of one simulator instance.

    Every instance owns a private CollectorRegistry, so two simulators in
    the same process never share counters.

    Example:
        >>> registry = MetricsRegistry()
        >>> registry.requests_total.labels(
        ...     generation="gen2", endpoint="rpc", status="200"
        ... ).inc()
        >>> registry.record_mutation("Kitchen", "switch:0")
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None) -> None:
        """Initialize all Prometheus metrics.

        Args:
            registry: Prometheus collector registry. If None, a private
                registry is created.
        """
        self.registry = registry or CollectorRegistry()
        self._create_request_metrics()
        self._create_state_metrics()

    def _create_request_metrics(self) -> None:
        """Create request-related metrics."""
        self.requests_total = Counter(
            name="shellysim_requests_total",
            documentation="Total number of device requests handled",
            labelnames=["generation", "endpoint", "status"],
            registry=self.registry,
        )

        self.rpc_errors_total = Counter(
            name="shellysim_rpc_errors_total",
            documentation="Total number of RPC error responses",
            labelnames=["method", "code"],
            registry=self.registry,
        )

        self.request_duration_seconds = Histogram(
            name="shellysim_request_duration_seconds",
            documentation="Device request handling time in seconds",
            labelnames=["generation"],
            buckets=[0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
            registry=self.registry,
        )

    def _create_state_metrics(self) -> None:
        """Create state store metrics."""
        self.state_mutations_total = Counter(
            name="shellysim_state_mutations_total",
            documentation="Total number of component state mutations",
            labelnames=["component"],  # switch/light/script/schedule/...
            registry=self.registry,
        )

        self.devices = Gauge(
            name="shellysim_devices",
            documentation="Number of simulated devices",
            registry=self.registry,
        )

    # =========================================================================
    # Recording Helpers
    # =========================================================================

    def record_request(self, generation: str, endpoint: str, status: int, duration: float) -> None:
        """Record one handled device request."""
        self.requests_total.labels(
            generation=generation, endpoint=endpoint, status=str(status)
        ).inc()
        self.request_duration_seconds.labels(generation=generation).observe(duration)

    def record_rpc_error(self, method: str, code: int) -> None:
        """Record one RPC error response."""
        self.rpc_errors_total.labels(method=method or "-", code=str(code)).inc()

    def record_mutation(self, device: str, key: str) -> None:
        """Record one state store mutation.

        Matches the state store's mutation listener signature. Multi-key
        transactions are counted under the ``transaction`` component.
        """
        component = "transaction" if key == "*" else key.partition(":")[0]
        self.state_mutations_total.labels(component=component).inc()

    def exposition(self) -> bytes:
        """Render the registry in the Prometheus text format."""
        return generate_latest(self.registry)

    @property
    def content_type(self) -> str:
        """Get the Content-Type of the exposition format."""
        return CONTENT_TYPE_LATEST
