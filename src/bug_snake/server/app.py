"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from bug_snake.config import Settings
from bug_snake.persistence import FileScoreStore
from bug_snake.server.routes import router, site_router
from bug_snake.server.session_manager import SessionManager
from bug_snake.server.websocket import ws_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    app.state.session_manager = SessionManager(
        store=FileScoreStore(settings.score_file), settings=settings,
    )
    yield
    await app.state.session_manager.cleanup()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build and return the FastAPI application."""
    settings = settings if settings is not None else Settings.from_env()
    app = FastAPI(
        title="Bug Snake", version="0.1.0", lifespan=_lifespan,
    )
    app.state.settings = settings
    app.include_router(router)
    app.include_router(ws_router)
    app.include_router(site_router)

    static_dir = Path(settings.static_dir)
    if static_dir.is_dir():
        app.mount("/static", StaticFiles(directory=static_dir), name="static")
    else:
        logger.warning("Static directory %s not found; serving API only.", static_dir)
    return app
