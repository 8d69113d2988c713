"""HTTP request metrics for the governance API.

Requests are labelled with the matched route template
(``/v1/governance/draft-wallets/{draft_wallet_id}``) rather than the raw
path, so entity ids never become label values:

- ``http_request_total`` counter (method, route, status_code, app)
- ``http_request_duration_seconds`` histogram (method, route, app)
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from starlette.middleware.base import BaseHTTPMiddleware

from community_wallet.metrics.collector import MetricsCollector

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from prometheus_client import CollectorRegistry
    from starlette.requests import Request
    from starlette.responses import Response

APP_LABEL = "community-wallet"


def route_label(request: Request) -> str:
    route = request.scope.get("route")
    template = getattr(route, "path", None)
    return template or request.url.path


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Count and time every request; unhandled errors count as 500."""

    def __init__(self, app: object, *, registry: CollectorRegistry) -> None:
        super().__init__(app)  # type: ignore[arg-type]
        collector = MetricsCollector(registry)
        self._requests = collector.counter(
            "http_request_total",
            "HTTP requests served",
            ("method", "route", "status_code", "app"),
        )
        self._latency = collector.histogram(
            "http_request_duration_seconds",
            "HTTP request latency in seconds",
            ("method", "route", "app"),
        )

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        started = time.perf_counter()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            route = route_label(request)
            self._requests.labels(
                method=request.method, route=route, status_code=str(status), app=APP_LABEL
            ).inc()
            self._latency.labels(method=request.method, route=route, app=APP_LABEL).observe(
                time.perf_counter() - started
            )
