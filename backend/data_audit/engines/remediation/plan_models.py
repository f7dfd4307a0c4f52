"""Pydantic models for remediation plans and execution results."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, Field

from data_audit.db.store import ColumnChange
from data_audit.engines.remediation.catalog import ActionKind, RiskLevel

ActionStatus = Literal["pending", "executing", "simulated", "success", "failed", "skipped"]


# === Plan ===


class RemediationAction(BaseModel):
    """A concrete, typed fix operation derived from one Issue."""

    action_id: str
    issue_ref: str
    category: str
    action_kind: ActionKind
    fix_id: str | None = None
    entity: str
    target_ids: list[int] = Field(default_factory=list)
    description: str = ""
    risk_level: RiskLevel = "low"
    requires_confirmation: bool = True
    auto_fixable: bool = False
    estimated_rows: int = 0


class PlanSummary(BaseModel):
    total_issues: int = 0
    total_actions: int = 0
    auto_fixable_count: int = 0
    requires_review_count: int = 0
    total_records_affected: int = 0


class RiskAssessment(BaseModel):
    overall_risk: RiskLevel = "low"
    recommended_backup: bool = False
    warnings: list[str] = Field(default_factory=list)


class RemediationPlan(BaseModel):
    """Ordered actions plus risk assessment for one ValidationReport."""

    plan_id: str = Field(default_factory=lambda: str(uuid4()))
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    report_id: str = ""
    actions: list[RemediationAction] = Field(default_factory=list)
    summary: PlanSummary = Field(default_factory=PlanSummary)
    risk_assessment: RiskAssessment = Field(default_factory=RiskAssessment)


# === Execution ===


class RollbackInfo(BaseModel):
    """Old column values captured before a write, enough to undo it."""

    entity: str
    changes: list[ColumnChange] = Field(default_factory=list)


class RemediationResult(BaseModel):
    """Outcome of one action. Dry runs and live runs share this shape."""

    action_ref: str
    issue_ref: str
    action_kind: ActionKind
    status: ActionStatus = "pending"
    success: bool = False
    error: str | None = None
    rows_affected: int = 0
    dry_run: bool = False
    rollback_info: RollbackInfo | None = None


class RemediationSummary(BaseModel):
    plan_id: str = ""
    total_issues: int = 0
    attempted: int = 0
    successful: int = 0
    failed: int = 0
    skipped: int = 0
    duration_ms: int = 0
    dry_run: bool = False
    results: list[RemediationResult] = Field(default_factory=list)
    recording_errors: list[str] = Field(default_factory=list)  # Run history / audit log writes that failed
