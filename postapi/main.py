# postapi/main.py

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from postapi.api.posts import build_route_table
from postapi.api.router import build_router
from postapi.config import Settings, get_settings
from postapi.db.store import open_store
from postapi.logging_config import configure_logging

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # StartupError propagates: never serve without a store
        app.state.store = open_store(settings)
        try:
            yield
        finally:
            app.state.store.close()
            logger.info("Database connection released")

    app = FastAPI(
        title=settings.title,
        version=settings.version,
        description=settings.description,
        docs_url="/swagger",
        openapi_url="/swagger/doc.json",
        redoc_url=None,
        lifespan=lifespan,
    )

    table = build_route_table(read_attempts=settings.read_attempts)
    app.state.route_table = table
    app.include_router(build_router(table))
    return app


app = create_app()
