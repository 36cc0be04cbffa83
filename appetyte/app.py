"""
Appetyte backend - application entry point
Multi-tenant tiffin ordering service for home meal providers and their customers

Modules:
- Provider signup, delivery settings and fixed delivery addresses
- Daily menus with per-meal cutoff times
- Customer orders against a running balance
- Subscriptions with skips and the nightly auto-order batch
- Payments, dues and delivery reports

Stack: FastAPI + DuckDB + JWT
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from .api import api_router
from .config.settings import settings
from .core.database import DatabaseManager, get_db
from .core.error_handler import (
    application_error_handler,
    general_exception_handler,
    http_exception_handler,
    validation_exception_handler
)
from .core.exceptions import BaseApplicationError

logger = logging.getLogger(__name__)


def configure_logging():
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    db = app.dependency_overrides.get(get_db, get_db)()
    try:
        db.init_database()
    except BaseApplicationError:
        # Keep serving; requests will retry the connection
        logger.exception("Database initialization failed")

    yield

    db.close()


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="Appetyte tiffin ordering API",
        debug=settings.debug,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(BaseApplicationError, application_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(api_router, prefix=settings.api_prefix)

    @app.get("/health")
    async def health_check(db: DatabaseManager = Depends(get_db)):
        try:
            db.fetch_one("SELECT 1")
            return {
                "status": "healthy",
                "version": settings.api_version,
                "database": "connected"
            }
        except BaseApplicationError as e:
            return {
                "status": "unhealthy",
                "version": settings.api_version,
                "database": f"error: {e.message}"
            }

    @app.get("/")
    async def root():
        return {
            "name": settings.api_title,
            "version": settings.api_version,
            "description": "Appetyte tiffin ordering API"
        }

    return app


app = create_app()
