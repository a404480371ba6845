"""
parts_market.api.app

FastAPI app factory for the parts marketplace.

Responsibilities:
- Build the FastAPI application and register routers/middleware/error handlers.
- Initialize and dispose shared infrastructure (DB engine/session factory).
- Provide a single composition root where cross-cutting concerns live.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from parts_market import __version__
from parts_market.api.errors import register_exception_handlers
from parts_market.api.routers.admin_orders import router as admin_orders_router
from parts_market.api.routers.admin_users import router as admin_users_router
from parts_market.api.routers.auth import router as auth_router
from parts_market.api.routers.dev_auth import router as dev_auth_router
from parts_market.api.routers.health import router as health_router
from parts_market.api.routers.orders import router as orders_router
from parts_market.api.routers.parts import router as parts_router
from parts_market.api.routers.seller import router as seller_router
from parts_market.api.routers.user import router as user_router
from parts_market.db.init_db import init_db
from parts_market.db.session import create_engine, create_sessionmaker
from parts_market.observability.logging import configure_logging, get_logger
from parts_market.observability.middleware import RequestContextMiddleware
from parts_market.settings import Settings

log = get_logger(__name__)


def create_app(*, settings: Settings) -> FastAPI:
    configure_logging(
        service_name=settings.service_name,
        level=settings.log_level,
        json_logs=settings.log_json,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env, auth_mode=settings.auth_mode)
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        if settings.env in ("dev", "test"):
            # Prod schema is managed by Alembic migrations.
            await init_db(engine)
        try:
            yield
        finally:
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="Parts Marketplace API",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings

    register_exception_handlers(app)
    app.add_middleware(RequestContextMiddleware)
    app.include_router(health_router, tags=["health"])
    app.include_router(dev_auth_router)
    app.include_router(auth_router)
    app.include_router(user_router)
    app.include_router(parts_router)
    app.include_router(seller_router)
    app.include_router(orders_router)
    app.include_router(admin_orders_router)
    app.include_router(admin_users_router)

    return app


# --- Module Notes -----------------------------------------------------------
# App composition stays here; ordering and auth rules live in services and
# `parts_market.auth`.
