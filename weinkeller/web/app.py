"""FastAPI application factory for Weinkeller."""

import logging
import os
import time
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.staticfiles import StaticFiles

from weinkeller import __version__
from weinkeller.db.engine import Database
from weinkeller.logging_config import configure_logging
from weinkeller.web.errors import register_exception_handlers

# Load .env file from project root
_project_root = Path(__file__).parent.parent.parent
_env_file = _project_root / ".env"
if _env_file.exists():
    load_dotenv(_env_file)

DEFAULT_FRONTEND_DIR = Path("run") / "frontend"

http_logger = logging.getLogger("weinkeller.http")


def get_frontend_dir() -> Path:
    return Path(os.environ.get("FRONTEND_DIR") or DEFAULT_FRONTEND_DIR)


def create_app(database: Database | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        database: Database to serve; defaults to one at DB_PATH. It is opened
                  and its schema initialized on startup, and closed on
                  shutdown.
    """
    configure_logging()
    database = database or Database()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database.open()
        database.init_schema()
        yield
        database.close()

    app = FastAPI(
        title="Weinkeller",
        description="Wine cellar inventory: wines, producers, tags, stock and tastings",
        version=__version__,
        docs_url="/api-docs",
        lifespan=lifespan,
    )
    app.state.database = database

    register_exception_handlers(app)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - started) * 1000
        http_logger.info(
            f"{request.method} {request.url.path} {response.status_code} {duration_ms:.1f}ms"
        )
        return response

    # Include routers (import here to avoid circular imports)
    from weinkeller.web.routes import (
        assessments,
        export,
        health,
        inventory,
        producers,
        tags,
        wines,
    )

    app.include_router(health.router)
    app.include_router(inventory.router)
    app.include_router(wines.router)
    app.include_router(producers.router)
    app.include_router(tags.router)
    app.include_router(assessments.router)
    app.include_router(export.router)

    # Pre-built frontend, if present; mounted last so /api routes win
    frontend_dir = get_frontend_dir()
    if frontend_dir.is_dir():
        app.mount("/", StaticFiles(directory=frontend_dir, html=True), name="frontend")

    return app
