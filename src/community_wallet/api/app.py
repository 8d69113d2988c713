"""FastAPI application factory for the governance API."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from community_wallet import __version__
from community_wallet.api.middleware.cors import setup_cors
from community_wallet.api.v1 import v1_router
from community_wallet.config.settings import AppConfig
from community_wallet.engine.client import GovernanceEngine
from community_wallet.errors.governance_errors import GovernanceError
from community_wallet.metrics.collector import GovernanceMetrics
from community_wallet.metrics.middleware import PrometheusMiddleware

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run the governance engine for the lifetime of the server."""
    engine = GovernanceEngine(app.state.config, metrics=app.state.metrics)
    await engine.initialize()
    app.state.engine = engine
    try:
        yield
    finally:
        await engine.close()


def _error_body(code: str, message: str) -> dict[str, str]:
    return {"code": code, "message": message}


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(GovernanceError)
    async def _governance_error(request: Request, exc: GovernanceError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.code, exc.message))

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        first = exc.errors()[0] if exc.errors() else {}
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{field}: {first.get('msg', 'invalid request')}" if field else "invalid request"
        return JSONResponse(status_code=422, content=_error_body("validation-error", message))


def create_app(*, config: AppConfig | None = None) -> FastAPI:
    """Build the governance API.

    The engine is started by the lifespan handler; tests may instead set
    ``app.state.engine`` directly.

    Args:
        config: Application configuration; read from the environment if omitted.
    """
    config = config or AppConfig()

    app = FastAPI(
        title="community-wallet-governance",
        version=__version__,
        description="Community multisig treasury governance for the Idena chain",
        lifespan=_lifespan,
    )
    app.state.config = config
    app.state.metrics = GovernanceMetrics()

    setup_cors(app)
    if config.metrics.enabled:
        app.add_middleware(PrometheusMiddleware, registry=app.state.metrics.registry)
    _install_error_handlers(app)

    @app.get("/health", tags=["base"])
    async def health() -> dict[str, str]:
        """Liveness check."""
        return {"status": "ok"}

    @app.get("/health/ready", tags=["base"])
    async def ready(request: Request) -> JSONResponse:
        """Readiness check: datastore and oracle client must both be up."""
        engine = getattr(request.app.state, "engine", None)
        components = await engine.health_check() if engine is not None else {"engine": "starting"}
        healthy = all(v == "ok" for v in components.values())
        return JSONResponse(
            status_code=200 if healthy else 503,
            content={"status": "ok" if healthy else "degraded", "components": components},
        )

    @app.get("/metrics", tags=["base"], include_in_schema=False)
    async def metrics() -> Response:
        return Response(
            content=generate_latest(app.state.metrics.registry),
            media_type=CONTENT_TYPE_LATEST,
        )

    app.include_router(v1_router)
    return app
