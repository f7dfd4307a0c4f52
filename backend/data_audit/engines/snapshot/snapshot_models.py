"""Pydantic models for point-in-time data-quality snapshots."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, Field


class JudgeSnapshot(BaseModel):
    total: int = 0
    with_primary_court: int = 0
    without_primary_court: int = 0
    with_cases: int = 0
    below_threshold: int = 0
    above_threshold: int = 0
    primary_court_ratio: float = 1.0
    avg_cases_per_judge: float = 0.0
    by_jurisdiction: dict[str, int] = Field(default_factory=dict)


class CourtSnapshot(BaseModel):
    total: int = 0
    with_judges: int = 0
    without_judges: int = 0
    avg_judges_per_court: float = 0.0  # Active assignments per staffed court
    by_jurisdiction: dict[str, int] = Field(default_factory=dict)
    by_type: dict[str, int] = Field(default_factory=dict)


class CaseSnapshot(BaseModel):
    total: int = 0
    linked_to_judge: int = 0
    unlinked: int = 0
    orphaned: int = 0
    linked_ratio: float = 1.0
    with_valid_outcome: int = 0
    with_invalid_outcome: int = 0
    by_outcome: dict[str, int] = Field(default_factory=dict)
    recent_cases: int = 0  # Decided within the last year
    stale_cases: int = 0  # Decided more than three years ago


class AssignmentSnapshot(BaseModel):
    total: int = 0
    active: int = 0
    ended: int = 0
    primary: int = 0
    visiting: int = 0
    temporary: int = 0
    retired: int = 0
    overlapping: int = 0


class QualityMetrics(BaseModel):
    orphaned_records: int = 0
    duplicate_external_ids: int = 0
    temporal_overlaps: int = 0
    jurisdiction_mismatches: int = 0
    case_count_mismatches: int = 0
    missing_required_fields: int = 0
    standardization_issues: int = 0


class DataSnapshot(BaseModel):
    """Counts and ratios across the directory at one point in time."""

    snapshot_id: str = Field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    duration_ms: int = 0
    judges: JudgeSnapshot = Field(default_factory=JudgeSnapshot)
    courts: CourtSnapshot = Field(default_factory=CourtSnapshot)
    cases: CaseSnapshot = Field(default_factory=CaseSnapshot)
    assignments: AssignmentSnapshot = Field(default_factory=AssignmentSnapshot)
    quality_metrics: QualityMetrics = Field(default_factory=QualityMetrics)
    health_score: float = 100.0
    skipped_checks: list[str] = Field(default_factory=list)
