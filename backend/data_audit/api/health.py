"""Health check endpoint — store connectivity and audit trail location."""

from __future__ import annotations

import os
from datetime import datetime, timezone

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.engine import Engine

from data_audit.config import VERSION, Settings

router = APIRouter()

# Module-level dependencies, set during app startup
_engine: Engine | None = None
_settings: Settings | None = None


def set_health_dependencies(engine: Engine, settings: Settings) -> None:
    global _engine, _settings
    _engine = engine
    _settings = settings


class HealthStatus(BaseModel):
    status: str  # "healthy" | "degraded" | "unhealthy"
    version: str
    checks: dict[str, dict]
    timestamp: datetime


@router.get("/health", response_model=HealthStatus)
async def health_check() -> HealthStatus:
    """Check the store and the audit log directory."""
    checks: dict[str, dict] = {}
    overall_healthy = True
    has_warning = False

    # 1. Database
    if _engine is None:
        checks["database"] = {"status": "error", "detail": "not configured"}
        overall_healthy = False
    else:
        try:
            with _engine.connect() as conn:
                conn.execute(text("SELECT 1")).fetchone()
            checks["database"] = {"status": "ok", "detail": _engine.dialect.name}
        except Exception as e:
            checks["database"] = {"status": "error", "detail": str(e)[:200]}
            overall_healthy = False

    # 2. Audit log directory
    if _settings is not None:
        log_dir = os.path.dirname(os.path.abspath(_settings.audit_log_path))
        if os.path.isdir(log_dir) and os.access(log_dir, os.W_OK):
            checks["audit_log"] = {"status": "ok", "detail": _settings.audit_log_path}
        else:
            checks["audit_log"] = {
                "status": "warning",
                "detail": f"{log_dir} missing or not writable (created on first run)",
            }
            has_warning = True

    if not overall_healthy:
        status = "unhealthy"
    elif has_warning:
        status = "degraded"
    else:
        status = "healthy"

    return HealthStatus(
        status=status,
        version=VERSION,
        checks=checks,
        timestamp=datetime.now(timezone.utc),
    )
