"""Prometheus metrics for the governance engine and HTTP API."""

from community_wallet.metrics.collector import GovernanceMetrics, MetricsCollector
from community_wallet.metrics.middleware import PrometheusMiddleware

__all__ = ["GovernanceMetrics", "MetricsCollector", "PrometheusMiddleware"]
