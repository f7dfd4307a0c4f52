"""Pydantic models for data-quality issues and validation reports.

Shared across all validation rules, the remediation planner and the API.

Each issue category carries its own typed details variant, discriminated
by ``kind``, so consumers never dig through an untyped metadata dict.
"""

from __future__ import annotations

import hashlib
from datetime import date, datetime, timezone
from typing import Annotated, Literal, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

# === Type aliases ===

Severity = Literal["critical", "high", "medium", "low"]

SEVERITY_ORDER: tuple[Severity, ...] = ("critical", "high", "medium", "low")

IssueCategory = Literal[
    "missing_primary_court",
    "multiple_primary_courts",
    "temporal_overlap",
    "below_case_threshold",
    "orphaned_case",
    "orphaned_assignment",
    "duplicate_external_id",
    "case_count_mismatch",
    "jurisdiction_mismatch",
    "missing_required_field",
    "nonstandard_judge_name",
    "nonstandard_outcome",
    "duplicate_docket_number",
    "case_jurisdiction_mismatch",
]

EntityType = Literal["judge", "court", "case", "assignment"]

ValidationMode = Literal["full", "quick"]


# === Detail variants ===


class JudgeRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str = ""


class MissingPrimaryCourtDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["missing_primary_court"] = "missing_primary_court"
    judges: tuple[JudgeRef, ...] = ()


class MultiplePrimaryCourtsDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["multiple_primary_courts"] = "multiple_primary_courts"
    judge_id: int
    judge_name: str = ""
    assignment_ids: tuple[int, ...] = ()
    keep_assignment_id: int


class OverlapPair(BaseModel):
    """Two assignments of one judge whose date ranges intersect."""

    model_config = ConfigDict(frozen=True)

    earlier_assignment_id: int
    later_assignment_id: int
    earlier_court_id: int
    later_court_id: int
    earlier_start: date
    earlier_end: date | None = None
    later_start: date
    later_end: date | None = None


class TemporalOverlapDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["temporal_overlap"] = "temporal_overlap"
    judge_id: int
    judge_name: str = ""
    overlaps: tuple[OverlapPair, ...] = ()


class JudgeCaseCount(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str = ""
    total_cases: int = 0


class BelowCaseThresholdDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["below_case_threshold"] = "below_case_threshold"
    threshold: int
    band: Literal["under_100", "under_250", "under_threshold"]
    judges: tuple[JudgeCaseCount, ...] = ()


class DanglingReference(BaseModel):
    """A row whose reference column points at a missing parent."""

    model_config = ConfigDict(frozen=True)

    id: int
    column: str
    missing_id: int


class OrphanedCaseDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["orphaned_case"] = "orphaned_case"
    references: tuple[DanglingReference, ...] = ()


class OrphanedAssignmentDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["orphaned_assignment"] = "orphaned_assignment"
    references: tuple[DanglingReference, ...] = ()


class DuplicateExternalIdDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["duplicate_external_id"] = "duplicate_external_id"
    entity: EntityType
    external_id: str
    record_ids: tuple[int, ...] = ()
    keep_id: int


class CaseCountDrift(BaseModel):
    model_config = ConfigDict(frozen=True)

    judge_id: int
    name: str = ""
    recorded: int
    actual: int


class CaseCountMismatchDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["case_count_mismatch"] = "case_count_mismatch"
    tolerance: int
    judges: tuple[CaseCountDrift, ...] = ()


class JurisdictionPair(BaseModel):
    model_config = ConfigDict(frozen=True)

    assignment_id: int
    judge_id: int
    court_id: int
    judge_jurisdiction: str
    court_jurisdiction: str


class JurisdictionMismatchDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["jurisdiction_mismatch"] = "jurisdiction_mismatch"
    mismatches: tuple[JurisdictionPair, ...] = ()


class MissingRequiredFieldDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["missing_required_field"] = "missing_required_field"
    entity: EntityType
    field: str
    record_ids: tuple[int, ...] = ()


class NameFix(BaseModel):
    model_config = ConfigDict(frozen=True)

    judge_id: int
    current: str
    suggested: str | None = None
    problems: tuple[str, ...] = ()


class NonstandardJudgeNameDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["nonstandard_judge_name"] = "nonstandard_judge_name"
    names: tuple[NameFix, ...] = ()


class OutcomeFix(BaseModel):
    model_config = ConfigDict(frozen=True)

    case_id: int
    current: str
    suggested: str


class NonstandardOutcomeDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["nonstandard_outcome"] = "nonstandard_outcome"
    outcomes: tuple[OutcomeFix, ...] = ()


class DuplicateDocketNumberDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["duplicate_docket_number"] = "duplicate_docket_number"
    docket_number: str
    case_ids: tuple[int, ...] = ()


class CaseJurisdictionPair(BaseModel):
    """A case heard by a judge from one jurisdiction in a court of another."""

    model_config = ConfigDict(frozen=True)

    case_id: int
    judge_id: int
    court_id: int
    judge_jurisdiction: str
    court_jurisdiction: str


class CaseJurisdictionMismatchDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["case_jurisdiction_mismatch"] = "case_jurisdiction_mismatch"
    mismatches: tuple[CaseJurisdictionPair, ...] = ()


IssueDetails = Annotated[
    Union[
        MissingPrimaryCourtDetails,
        MultiplePrimaryCourtsDetails,
        TemporalOverlapDetails,
        BelowCaseThresholdDetails,
        OrphanedCaseDetails,
        OrphanedAssignmentDetails,
        DuplicateExternalIdDetails,
        CaseCountMismatchDetails,
        JurisdictionMismatchDetails,
        MissingRequiredFieldDetails,
        NonstandardJudgeNameDetails,
        NonstandardOutcomeDetails,
        DuplicateDocketNumberDetails,
        CaseJurisdictionMismatchDetails,
    ],
    Field(discriminator="kind"),
]


# === Issue ===


def make_issue_id(category: str, entity: str, affected_ids: tuple[int, ...], key: str = "") -> str:
    """Deterministic issue id: same data in, same id out."""
    raw = f"{category}|{entity}|{key}|{','.join(str(i) for i in sorted(affected_ids))}"
    return f"{category}:{hashlib.sha1(raw.encode()).hexdigest()[:12]}"


class Issue(BaseModel):
    """A detected data-quality problem. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    id: str
    category: IssueCategory
    severity: Severity
    entity: EntityType
    description: str
    suggested_action: str = ""
    affected_count: int = Field(default=0, ge=0)
    affected_ids: tuple[int, ...] = ()
    sample_details: IssueDetails
    auto_fixable: bool = False
    suggested_fix_id: str | None = None


# === Report ===


class SkippedCheck(BaseModel):
    """A rule or query that failed and contributed nothing to the run."""

    name: str
    error: str


class ValidationReport(BaseModel):
    """Aggregated output of one validation run. Read-only after construction."""

    model_config = ConfigDict(frozen=True)

    report_id: str = Field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    mode: ValidationMode = "full"
    duration_ms: int = 0
    total_issues: int = 0
    counts_by_severity: dict[str, int] = Field(default_factory=dict)
    counts_by_category: dict[str, int] = Field(default_factory=dict)
    issues: tuple[Issue, ...] = ()
    skipped_rules: tuple[SkippedCheck, ...] = ()
    overall_level: str = "HEALTHY"
    summary: str = ""
    recommendations: tuple[str, ...] = ()

    @property
    def has_critical(self) -> bool:
        return self.counts_by_severity.get("critical", 0) > 0
