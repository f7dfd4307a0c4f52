"""Admin Data Audit API — validation, snapshots, remediation, rollback.

GET  /api/v1/admin/data-audit?operation=audit|quick|snapshot&format=json|text&save=false
POST /api/v1/admin/data-audit/remediate       — plan + execute (dry run by default)
PUT  /api/v1/admin/data-audit/rollback        — restore values recorded by a live run
GET  /api/v1/admin/data-audit/snapshots       — saved snapshot history
GET  /api/v1/admin/data-audit/snapshots/{id}  — single saved snapshot
GET  /api/v1/admin/data-audit/runs            — remediation run history
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Literal

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from data_audit.config import Settings
from data_audit.db.store import AuditStore
from data_audit.engines.remediation.audit_log import AuditLog
from data_audit.engines.remediation.engine import (
    AutoRemediationEngine,
    ConfirmationRequiredError,
    RollbackError,
)
from data_audit.engines.remediation.plan_models import (
    RemediationPlan,
    RemediationResult,
    RemediationSummary,
)
from data_audit.engines.remediation.planner import RemediationPlanner
from data_audit.engines.remediation.render import render_plan_text
from data_audit.engines.snapshot.generator import SnapshotGenerator, render_snapshot_text
from data_audit.engines.snapshot.snapshot_models import DataSnapshot
from data_audit.engines.validation.issue_models import ValidationReport
from data_audit.engines.validation.report import render_report_text
from data_audit.engines.validation.validator import DataQualityValidator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/admin/data-audit", tags=["data-audit"])

# Module-level dependencies, set during app startup
_store: AuditStore | None = None
_settings: Settings | None = None


def set_dependencies(store: AuditStore, settings: Settings) -> None:
    """Wire the store and settings during app startup."""
    global _store, _settings
    _store = store
    _settings = settings


def _require() -> tuple[AuditStore, Settings]:
    if _store is None or _settings is None:
        raise HTTPException(status_code=503, detail="Data audit store not configured")
    return _store, _settings


# === Request / Response Models ===


class AuditResponse(BaseModel):
    report: ValidationReport
    plan: RemediationPlan


class SnapshotResponse(BaseModel):
    snapshot: DataSnapshot
    saved: bool = False


class RemediateRequest(BaseModel):
    """Request to execute the current remediation plan."""

    action_ids: list[str] | None = None
    dry_run: bool = True
    confirm: bool = False
    operator: str = Field(default="", max_length=200)


class RemediateResponse(BaseModel):
    plan: RemediationPlan
    summary: RemediationSummary


class RollbackRequest(BaseModel):
    results: list[RemediationResult] = Field(min_length=1)
    confirm: bool = False


class RollbackResponse(BaseModel):
    restored_rows: int


class SnapshotListItem(BaseModel):
    snapshot_id: str
    timestamp: datetime
    health_score: float


class RemediationRunResponse(BaseModel):
    id: str
    plan_id: str
    operator: str
    dry_run: bool
    attempted: int
    successful: int
    failed: int
    skipped: int
    duration_ms: int
    started_at: datetime


# === Endpoints ===


@router.get("")
async def run_audit(
    operation: Literal["audit", "quick", "snapshot"] = Query(default="audit"),
    format: Literal["json", "text"] = Query(default="json"),
    save: bool = Query(default=False),
):
    """Run a validation (full or quick) with its plan, or compute a snapshot."""
    store, settings = _require()

    if operation == "snapshot":
        generator = SnapshotGenerator(store, settings)
        snapshot = generator.generate()
        if save:
            generator.save_snapshot(snapshot)
        if format == "text":
            return PlainTextResponse(render_snapshot_text(snapshot))
        return SnapshotResponse(snapshot=snapshot, saved=save)

    mode = "quick" if operation == "quick" else "full"
    report = DataQualityValidator(store, settings).validate(mode)
    plan = RemediationPlanner().create_plan(report)
    if format == "text":
        return PlainTextResponse(render_report_text(report) + "\n" + render_plan_text(plan))
    return AuditResponse(report=report, plan=plan)


@router.post("/remediate", response_model=RemediateResponse)
async def remediate(request: RemediateRequest) -> RemediateResponse:
    """Re-validate, plan and execute. Live runs require confirm=true."""
    store, settings = _require()
    if not request.dry_run and not request.confirm:
        raise HTTPException(
            status_code=400,
            detail="Live remediation requires confirm=true (or use dry_run=true)",
        )

    report = DataQualityValidator(store, settings).run_full_validation()
    plan = RemediationPlanner().create_plan(report)
    operator = request.operator or settings.operator
    engine = AutoRemediationEngine(
        store,
        dry_run=request.dry_run,
        confirm=request.confirm,
        audit_log=AuditLog(settings.audit_log_path, operator=operator),
        operator=operator,
    )
    try:
        summary = engine.execute(plan, action_ids=request.action_ids)
    except ConfirmationRequiredError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info("Remediation via API by %s: %d failed", operator, summary.failed)
    return RemediateResponse(plan=plan, summary=summary)


@router.put("/rollback", response_model=RollbackResponse)
async def rollback(request: RollbackRequest) -> RollbackResponse:
    """Restore the old values captured by successful live actions."""
    store, _ = _require()
    if not request.confirm:
        raise HTTPException(status_code=400, detail="Rollback requires confirm=true")

    engine = AutoRemediationEngine(store, confirm=True)
    try:
        restored = engine.rollback(request.results)
    except RollbackError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return RollbackResponse(restored_rows=restored)


@router.get("/snapshots", response_model=list[SnapshotListItem])
async def list_snapshots(limit: int = Query(default=50, ge=1, le=500)) -> list[SnapshotListItem]:
    store, _ = _require()
    return [
        SnapshotListItem(snapshot_id=r.id, timestamp=r.created_at, health_score=r.health_score)
        for r in store.list_snapshots(limit)
    ]


@router.get("/snapshots/{snapshot_id}", response_model=DataSnapshot)
async def get_snapshot(snapshot_id: str) -> DataSnapshot:
    store, settings = _require()
    snapshot = SnapshotGenerator(store, settings).load_snapshot(snapshot_id)
    if snapshot is None:
        raise HTTPException(status_code=404, detail=f"Snapshot {snapshot_id} not found")
    return snapshot


@router.get("/runs", response_model=list[RemediationRunResponse])
async def list_runs(limit: int = Query(default=50, ge=1, le=500)) -> list[RemediationRunResponse]:
    store, _ = _require()
    return [
        RemediationRunResponse(
            id=r.id,
            plan_id=r.plan_id,
            operator=r.operator,
            dry_run=r.dry_run,
            attempted=r.attempted,
            successful=r.successful,
            failed=r.failed,
            skipped=r.skipped,
            duration_ms=r.duration_ms,
            started_at=r.started_at,
        )
        for r in store.list_remediation_runs(limit)
    ]
