import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import httpx

logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
)
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from beacon.config import Settings, get_settings
from beacon.controllers.health import router as health_router
from beacon.controllers.visits import router as visits_router
from beacon.db.visit_log import VisitLogStore
from beacon.errors import register_exception_handlers
from beacon.lifespan import cleanup_resources, setup_resources
from beacon.middleware import HTTPLogMiddleware, OriginAllowListMiddleware

STATIC_DIR = Path(__file__).parent / "static"


def create_app(
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        resources = await setup_resources(settings, transport=transport)
        app.state.resolver = resources.resolver
        app.state.forwarder = resources.forwarder
        try:
            yield
        finally:
            await cleanup_resources(resources)
            app.state.resolver = None
            app.state.forwarder = None

    app = FastAPI(title="Visit Beacon", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = VisitLogStore(settings.visit_log.path)
    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    # Added last so it runs first, ahead of CORS handling
    app.add_middleware(OriginAllowListMiddleware, allowed_origins=settings.cors.origins)

    if settings.debug.request:
        logging.getLogger("beacon.http").setLevel(logging.DEBUG)
        app.add_middleware(HTTPLogMiddleware)

    app.include_router(health_router)
    app.include_router(visits_router)

    if settings.server.dashboard:
        app.mount("/dashboard", StaticFiles(directory=STATIC_DIR, html=True), name="dashboard")

    return app


app = create_app()
