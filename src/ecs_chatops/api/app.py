"""
ecs_chatops.api.app

FastAPI app factory for the ECS chatops bot.

Responsibilities:
- Build the FastAPI application and register routers/middleware.
- Build the process-scoped dispatcher (boto3 clients) on startup.
"""

from __future__ import annotations

from fastapi import FastAPI

from ecs_chatops import __version__
from ecs_chatops.api.routers.health import router as health_router
from ecs_chatops.api.routers.slack import router as slack_router
from ecs_chatops.observability.logging import configure_logging, get_logger
from ecs_chatops.observability.middleware import RequestContextMiddleware
from ecs_chatops.services.dispatcher import build_dispatcher
from ecs_chatops.settings import Settings

log = get_logger(__name__)


def create_app(*, settings: Settings) -> FastAPI:
    configure_logging(
        service_name=settings.service_name, level=settings.log_level, env=settings.env
    )

    app = FastAPI(
        title="ECS ChatOps",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
    )
    app.state.settings = settings

    app.add_middleware(RequestContextMiddleware)
    app.include_router(health_router, tags=["health"])
    app.include_router(slack_router)

    @app.on_event("startup")
    async def _startup() -> None:
        log.info("startup", env=settings.env, region=settings.region)
        # Routers obtain it via `ecs_chatops.api.deps.dispatcher_dep`.
        app.state.dispatcher = build_dispatcher(settings)

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        log.info("shutdown")

    return app


# --- Module Notes -----------------------------------------------------------
# App composition stays here; request handling lives in `services.dispatcher`.
