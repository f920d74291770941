"""
avpauthz - Observability Layer

This module provides:
- Prometheus metrics for authorization decisions
- Structured JSON logging
- Decision audit logging
"""

from avpauthz.observability.metrics import MetricsCollector
from avpauthz.observability.logging import JSONFormatter, AuditLogger, setup_logging

__all__ = [
    "MetricsCollector",
    "JSONFormatter",
    "AuditLogger",
    "setup_logging",
]
