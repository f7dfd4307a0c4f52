"""Data Audit FastAPI Application.

Entry point for the admin backend:

    uvicorn data_audit.main:create_app --factory

Settings are loaded once in create_app() and handed to every component
during the lifespan startup.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from data_audit.api.health import router as health_router
from data_audit.api.health import set_health_dependencies
from data_audit.api.v1.data_audit import router as data_audit_router
from data_audit.api.v1.data_audit import set_dependencies
from data_audit.config import VERSION, Settings, load_settings
from data_audit.db.database import create_db_and_tables, create_db_engine
from data_audit.db.store import AuditStore
from data_audit.middleware.auth import APIKeyAuthMiddleware

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI app around one Settings instance."""
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application startup and shutdown."""
        engine = create_db_engine(settings)
        create_db_and_tables(engine)

        set_dependencies(AuditStore(engine), settings)
        set_health_dependencies(engine, settings)
        logger.info("Data audit API ready (database dialect: %s)", engine.dialect.name)

        yield

        engine.dispose()

    app = FastAPI(
        title="Data Audit",
        description="Data-quality validation and remediation for the legal directory",
        version=VERSION,
        lifespan=lifespan,
    )

    # Middleware (order matters: first added = innermost)
    app.add_middleware(APIKeyAuthMiddleware, api_key=settings.data_audit_api_key)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )

    # Global exception handler: prevent internal details from leaking
    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        if isinstance(exc, HTTPException):
            raise exc
        logger.error(
            "Unhandled exception on %s %s: %s", request.method, request.url.path, exc, exc_info=True,
        )
        return JSONResponse(status_code=500, content={"detail": "Internal server error."})

    app.include_router(health_router)
    app.include_router(data_audit_router)

    @app.get("/")
    async def root():
        return {"name": "data-audit", "version": VERSION, "status": "running"}

    return app
