from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taskapi.api.auth import router as auth_router
from taskapi.api.errors import register_exception_handlers
from taskapi.api.tasks import router as tasks_router
from taskapi.core.auth import JwtAuthMiddleware
from taskapi.core.config import Settings, get_settings
from taskapi.core.logging import TraceContextMiddleware, configure_logging, get_logger
from taskapi.db.bootstrap import apply_schema
from taskapi.db.engine import create_engine_from_url, ensure_database_parent_dir

logger = get_logger("taskapi.main")


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)
    engine = create_engine_from_url(settings.database_url, echo=settings.echo_sql)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        # A schema failure propagates and aborts startup.
        ensure_database_parent_dir(settings.database_url)
        apply_schema(engine)
        logger.info(
            "server.starting",
            bind_addr=settings.bind_addr,
            auth_enabled=settings.auth_enabled,
            read_only_without_jwt=settings.read_only_without_jwt,
        )
        try:
            yield
        finally:
            engine.dispose()

    app = FastAPI(
        title=settings.app_name,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine

    register_exception_handlers(app)
    app.add_middleware(JwtAuthMiddleware, settings=settings)
    app.add_middleware(TraceContextMiddleware)
    # Outermost, so rejected requests still carry CORS headers.
    if settings.cors_allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.cors_allow_origins),
            allow_credentials=settings.cors_allow_credentials,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    app.include_router(auth_router, prefix="/api")
    app.include_router(tasks_router, prefix="/api")
    return app
