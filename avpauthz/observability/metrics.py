"""
Prometheus metrics for avpauthz.

Two series per collector:

- ``avpauthz_decisions_total{service_name, call_type, decision}``
- ``avpauthz_decision_duration_seconds{service_name, call_type}``, the time
  spent in the remote decision call only
"""

from contextlib import nullcontext
from typing import ContextManager, Optional

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Histogram,
    start_http_server,
)


# Decision calls are single-digit milliseconds in-region; seconds mean trouble
DECISION_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0)


class MetricsCollector:
    """
    Decision counters and latency histogram for authorization engines.

    Metric names are unique per registry, so give each collector its own
    ``CollectorRegistry`` when several share a process.
    """

    def __init__(
        self,
        service_name: str = "avpauthz",
        registry: Optional[CollectorRegistry] = None,
        enabled: bool = True,
    ):
        self.service_name = service_name
        self.registry = registry or REGISTRY
        self.enabled = enabled

        if enabled:
            self.decisions_total = Counter(
                "avpauthz_decisions_total",
                "Authorization decisions by call type and result",
                ["service_name", "call_type", "decision"],
                registry=self.registry,
            )
            self.decision_duration_seconds = Histogram(
                "avpauthz_decision_duration_seconds",
                "Duration of the Verified Permissions decision call",
                ["service_name", "call_type"],
                buckets=DECISION_BUCKETS,
                registry=self.registry,
            )

    def record_decision(self, call_type: str, decision: str) -> None:
        """Count one decision (``decision`` is allow, deny or error)."""
        if self.enabled:
            self.decisions_total.labels(self.service_name, call_type, decision).inc()

    def time_decision(self, call_type: str) -> ContextManager:
        """
        Time the block as one decision call.

        Example:
            with metrics.time_decision("isAuthorized"):
                response = client.is_authorized(**params)
        """
        if not self.enabled:
            return nullcontext()
        return self.decision_duration_seconds.labels(self.service_name, call_type).time()

    def start_exposition_endpoint(self, port: int = 9090, addr: str = "0.0.0.0") -> None:
        """Serve this collector's registry over HTTP for scraping."""
        if self.enabled:
            start_http_server(port=port, addr=addr, registry=self.registry)
