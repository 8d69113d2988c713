"""Metrics collector — Prometheus counters and histograms.

- ``governance_oracle_request_seconds`` histogram-vec (endpoint)
- ``governance_oracle_failures_total`` counter-vec (endpoint)
- ``governance_promotions_total`` counter-vec (kind: wallet | transaction)
- ``governance_conflicts_total`` counter-vec (entity)
"""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Histogram

_PREFIX = "governance"


class MetricsCollector:
    """Low-level Prometheus collector that owns the registry.

    Use :class:`GovernanceMetrics` for the high-level tracking interface.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry or CollectorRegistry()

    @property
    def registry(self) -> CollectorRegistry:
        """Return the underlying Prometheus registry."""
        return self._registry

    def histogram(self, name: str, doc: str, labels: tuple[str, ...] = ()) -> Histogram:
        """Register and return a Histogram."""
        return Histogram(name, doc, labels, registry=self._registry)

    def counter(self, name: str, doc: str, labels: tuple[str, ...] = ()) -> Counter:
        """Register and return a Counter."""
        return Counter(name, doc, labels, registry=self._registry)


class GovernanceMetrics:
    """High-level governance engine metrics."""

    def __init__(self, collector: MetricsCollector | None = None) -> None:
        self._collector = collector or MetricsCollector()

        self._oracle_duration = self._collector.histogram(
            f"{_PREFIX}_oracle_request_seconds",
            "Duration of chain oracle requests",
            ("endpoint",),
        )
        self._oracle_failures = self._collector.counter(
            f"{_PREFIX}_oracle_failures",
            "Chain oracle requests that ended in an upstream error",
            ("endpoint",),
        )
        self._promotions = self._collector.counter(
            f"{_PREFIX}_promotions",
            "Draft entities promoted to canonical entities",
            ("kind",),
        )
        self._conflicts = self._collector.counter(
            f"{_PREFIX}_conflicts",
            "Conditional writes that lost a concurrent race",
            ("entity",),
        )

    @property
    def registry(self) -> CollectorRegistry:
        """Return the underlying Prometheus registry."""
        return self._collector.registry

    def observe_oracle_request(self, endpoint: str, seconds: float) -> None:
        self._oracle_duration.labels(endpoint=endpoint).observe(seconds)

    def record_oracle_failure(self, endpoint: str) -> None:
        self._oracle_failures.labels(endpoint=endpoint).inc()

    def record_promotion(self, kind: str) -> None:
        """Count a promotion; *kind* is ``wallet`` or ``transaction``."""
        self._promotions.labels(kind=kind).inc()

    def record_conflict(self, entity: str) -> None:
        self._conflicts.labels(entity=entity).inc()
