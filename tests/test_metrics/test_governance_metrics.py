"""Tests for governance metrics and the Prometheus HTTP middleware."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient
from prometheus_client import CollectorRegistry

from community_wallet.metrics.collector import GovernanceMetrics, MetricsCollector
from community_wallet.metrics.middleware import PrometheusMiddleware


class TestGovernanceMetrics:
    def test_registry_is_isolated(self) -> None:
        a = GovernanceMetrics()
        b = GovernanceMetrics()
        assert a.registry is not b.registry

    def test_shared_collector(self) -> None:
        registry = CollectorRegistry()
        metrics = GovernanceMetrics(MetricsCollector(registry))
        assert metrics.registry is registry

    def test_counters(self) -> None:
        metrics = GovernanceMetrics()
        metrics.record_promotion("wallet")
        metrics.record_promotion("wallet")
        metrics.record_conflict("draft_transaction")
        metrics.record_oracle_failure("contract")
        metrics.observe_oracle_request("contract", 0.25)

        sample = metrics.registry.get_sample_value
        assert sample("governance_promotions_total", {"kind": "wallet"}) == 2.0
        assert sample("governance_conflicts_total", {"entity": "draft_transaction"}) == 1.0
        assert sample("governance_oracle_failures_total", {"endpoint": "contract"}) == 1.0
        assert sample("governance_oracle_request_seconds_sum", {"endpoint": "contract"}) == 0.25


class TestPrometheusMiddleware:
    def _app(self, registry: CollectorRegistry) -> FastAPI:
        app = FastAPI()
        app.add_middleware(PrometheusMiddleware, registry=registry)

        @app.get("/items/{item_id}")
        async def get_item(item_id: str):
            return {"id": item_id}

        return app

    def test_metrics_registered(self) -> None:
        registry = CollectorRegistry()
        client = TestClient(self._app(registry))
        client.get("/items/1")

        names = {m.name for m in registry.collect()}
        assert "http_request" in names
        assert "http_request_duration_seconds" in names

    def test_route_template_used_as_label(self) -> None:
        registry = CollectorRegistry()
        client = TestClient(self._app(registry))
        client.get("/items/1")
        client.get("/items/2")

        value = registry.get_sample_value(
            "http_request_total",
            {"method": "GET", "route": "/items/{item_id}", "status_code": "200", "app": "community-wallet"},
        )
        assert value == 2.0
