"""
FastAPI application entry point.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.concurrency import run_in_threadpool

from socialfeed.config import Settings, get_settings
from socialfeed.db import DbClient
from socialfeed.dependencies import build_db_client, build_storage_client
from socialfeed.errors import StorageError, register_error_handlers
from socialfeed.migrations import migrate_legacy_image_urls
from socialfeed.routes import router
from socialfeed.security import PasswordHashing, TokenService
from socialfeed.storage import StorageClient

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    try:
        await run_in_threadpool(app.state.storage.ensure_bucket)
    except StorageError:
        logger.exception("Object storage initialization failed; image routes may fail")
    if settings.migrate_legacy_image_urls_on_startup:
        try:
            await run_in_threadpool(migrate_legacy_image_urls, app.state.db, settings)
        except Exception:
            logger.exception("Legacy image URL migration failed")
    yield


def create_app(
    settings: Optional[Settings] = None,
    db: Optional[DbClient] = None,
    storage: Optional[StorageClient] = None,
) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    app = FastAPI(title="Social Feed Backend", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.db = db if db is not None else build_db_client(settings)
    app.state.storage = storage if storage is not None else build_storage_client(settings)
    app.state.tokens = TokenService.from_settings(settings)
    app.state.passwords = PasswordHashing.from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[origin.strip() for origin in settings.cors_origin.split(",")],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    @app.get("/", include_in_schema=False)
    def root():
        return {"message": "Backend API is running"}

    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()
