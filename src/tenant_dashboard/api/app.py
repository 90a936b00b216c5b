"""
tenant_dashboard.api.app

FastAPI app factory for the dashboard service.

Responsibilities:
- Build the FastAPI application and register routers/middleware.
- Initialize and dispose shared infrastructure (DB engine, session factory, access engine).
- Provide a single composition root where cross-cutting concerns live.
"""

from __future__ import annotations

from fastapi import FastAPI

from tenant_dashboard.access.deps import build_access_engine
from tenant_dashboard.api.errors import install_error_handlers
from tenant_dashboard.api.routers.auth import router as auth_router
from tenant_dashboard.api.routers.health import router as health_router
from tenant_dashboard.api.routers.internal.router import router as internal_router
from tenant_dashboard.api.routers.pages import router as pages_router
from tenant_dashboard.api.routers.public import router as public_router
from tenant_dashboard.api.routers.upload import router as upload_router
from tenant_dashboard.db.session import create_engine, create_schema, create_sessionmaker
from tenant_dashboard.edge.gate import EdgeGate, EdgeGateConfig
from tenant_dashboard.edge.rate_limit import InMemoryRateLimitStore, RateLimitStore
from tenant_dashboard.observability.logging import configure_logging, get_logger
from tenant_dashboard.observability.middleware import RequestContextMiddleware
from tenant_dashboard.settings import Environment, Settings

log = get_logger(__name__)


def create_app(*, settings: Settings, rate_limit_store: RateLimitStore | None = None) -> FastAPI:
    configure_logging(service_name=settings.service_name, level=settings.log_level)

    app = FastAPI(
        title="Tenant Dashboard",
        version="0.1.0",
        docs_url="/docs",
        openapi_url="/openapi.json",
    )
    app.state.settings = settings
    app.state.rate_limit_store = rate_limit_store or InMemoryRateLimitStore()

    # Last added runs first: request context wraps the edge gate so gate logs carry request ids.
    app.add_middleware(
        EdgeGate,
        config=EdgeGateConfig.from_settings(settings),
        store=app.state.rate_limit_store,
    )
    app.add_middleware(RequestContextMiddleware)
    install_error_handlers(app)

    # Registration order matters: the catch-all /{tenant_id} page routes go last.
    app.include_router(health_router, tags=["health"])
    app.include_router(auth_router)
    app.include_router(public_router)
    app.include_router(internal_router)
    app.include_router(upload_router)
    app.include_router(pages_router)

    @app.on_event("startup")
    async def _startup() -> None:
        log.info("startup", env=settings.env)
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        app.state.access_engine = build_access_engine(settings, app.state.sessionmaker)
        if settings.env in (Environment.dev, Environment.test):
            await create_schema(engine)

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        engine = getattr(app.state, "engine", None)
        if engine is not None:
            await engine.dispose()
        log.info("shutdown")

    return app


# --- Module Notes -----------------------------------------------------------
# This file stays small: composition lives here; access rules live in `access`,
# request gating in `edge`.
