"""Snapshot Generator — point-in-time counts, ratios and a health score.

Design:
- Every count is an independent store query (no cross-entity transaction)
- A failing query is logged, listed in skipped_checks and counts as zero
- compute_health_score() is a pure function of the snapshot's own counts
- Generation never writes; save_snapshot() is an explicit opt-in
"""

from __future__ import annotations

import logging
import time
from datetime import date, timedelta
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError

from data_audit.config import Settings
from data_audit.db.store import AuditStore
from data_audit.engines.snapshot.snapshot_models import (
    AssignmentSnapshot,
    CaseSnapshot,
    CourtSnapshot,
    DataSnapshot,
    JudgeSnapshot,
    QualityMetrics,
)
from data_audit.engines.validation.normalizers import VALID_OUTCOMES, name_problems
from data_audit.engines.validation.rules import REQUIRED_FIELDS, find_overlaps
from data_audit.models.snapshot import DataSnapshotRecord

logger = logging.getLogger(__name__)

# Health score weights (sum to 1.0)
WEIGHT_PRIMARY = 0.3
WEIGHT_LINKED = 0.3
WEIGHT_NO_OVERLAPS = 0.2
WEIGHT_NO_DUPLICATES = 0.2
ORPHAN_PENALTY = 0.5  # Points per orphaned record

RECENT_DAYS = 365  # Decided within the last year
STALE_DAYS = 3 * 365  # Decided more than three years ago


def compute_health_score(
    primary_ratio: float,
    linked_ratio: float,
    temporal_overlaps: int,
    duplicate_external_ids: int,
    orphaned_records: int,
) -> float:
    """Weighted composite in [0, 100]; never increases as problem counts grow."""
    score = 100 * (
        WEIGHT_PRIMARY * primary_ratio
        + WEIGHT_LINKED * linked_ratio
        + WEIGHT_NO_OVERLAPS / (1 + max(temporal_overlaps, 0))
        + WEIGHT_NO_DUPLICATES / (1 + max(duplicate_external_ids, 0))
    )
    score -= ORPHAN_PENALTY * max(orphaned_records, 0)
    return round(min(max(score, 0.0), 100.0), 1)


def _ratio(part: int, total: int) -> float:
    return part / total if total else 1.0


def render_snapshot_text(snapshot: DataSnapshot) -> str:
    """Human-readable rendering of a snapshot."""
    j, c, k, a, q = (
        snapshot.judges, snapshot.courts, snapshot.cases, snapshot.assignments,
        snapshot.quality_metrics,
    )
    lines = [
        "=" * 63,
        "        DATA SNAPSHOT",
        "=" * 63,
        f"Snapshot ID:  {snapshot.snapshot_id}",
        f"Taken:        {snapshot.timestamp.isoformat()}",
        f"Health score: {snapshot.health_score:.1f}/100",
        "",
        f"Judges:      {j.total} total, {j.with_primary_court} with primary court, "
        f"{j.below_threshold} below case threshold",
        f"Courts:      {c.total} total, {c.without_judges} without judges",
        f"Cases:       {k.total} total, {k.linked_to_judge} linked, {k.orphaned} orphaned",
        f"             {k.recent_cases} recent, {k.stale_cases} stale, "
        f"{k.with_invalid_outcome} with nonstandard outcome",
        f"Assignments: {a.total} total, {a.active} active, {a.overlapping} overlapping",
        "",
        f"Orphaned records:        {q.orphaned_records}",
        f"Duplicate external ids:  {q.duplicate_external_ids}",
        f"Temporal overlaps:       {q.temporal_overlaps}",
        f"Jurisdiction mismatches: {q.jurisdiction_mismatches}",
        f"Case count mismatches:   {q.case_count_mismatches}",
        f"Missing required fields: {q.missing_required_fields}",
        f"Nonstandard names:       {q.standardization_issues}",
    ]
    if snapshot.skipped_checks:
        lines.append("")
        lines.append("Skipped checks: " + ", ".join(snapshot.skipped_checks))
    return "\n".join(lines)


class SnapshotGenerator:
    """Builds DataSnapshots from the store.

    Usage:
        generator = SnapshotGenerator(store, settings)
        snapshot = generator.generate()
        generator.save_snapshot(snapshot)  # opt-in
    """

    def __init__(self, store: AuditStore, settings: Settings, today: date | None = None) -> None:
        self.store = store
        self.settings = settings
        self._today = today
        self._skipped: list[str] = []

    def _count(self, name: str, query: Callable[[], int]) -> int:
        try:
            return query()
        except SQLAlchemyError as e:
            logger.warning("Snapshot check %s skipped: %s", name, e)
            self._skipped.append(name)
            return 0

    def generate(self) -> DataSnapshot:
        """Compute a fresh snapshot. Reads only."""
        self._skipped = []
        start = time.monotonic()
        today = self._today or date.today()
        store = self.store
        threshold = self.settings.min_case_threshold

        judges_total = self._count("judges.total", lambda: store.count_rows("judge"))
        with_primary = self._count(
            "judges.with_primary_court", lambda: store.count_judges_with_active_primary(today),
        )
        below = self._count(
            "judges.below_threshold", lambda: len(store.judges_below_case_threshold(threshold)),
        )
        courts_total = self._count("courts.total", lambda: store.count_rows("court"))
        courts_staffed = self._count("courts.with_judges", store.count_courts_with_judges)
        cases_total = self._count("cases.total", lambda: store.count_rows("case"))
        linked = self._count("cases.linked_to_judge", store.count_linked_cases)
        orphaned_cases = self._count("cases.orphaned", lambda: len(store.orphaned_cases()))
        by_type = self._tally("assignments.by_type", store.count_assignments_by_type)
        assignments_total = sum(by_type.values())
        active = self._count("assignments.active", lambda: store.count_active_assignments(today))
        overlaps = self._count("assignments.overlapping", self._count_overlaps)
        orphaned_assignments = self._count(
            "assignments.orphaned", lambda: len(store.orphaned_assignments()),
        )
        duplicates = self._count("quality.duplicate_external_ids", self._count_duplicate_groups)
        mismatches = self._count(
            "quality.jurisdiction_mismatches", lambda: len(store.jurisdiction_mismatches(today)),
        )
        drift = self._count(
            "quality.case_count_mismatches",
            lambda: len(store.case_count_drift(self.settings.case_count_tolerance)),
        )
        with_cases = self._count("judges.with_cases", store.count_judges_with_cases)
        judges_by_jurisdiction = self._tally(
            "judges.by_jurisdiction", lambda: store.count_by_jurisdiction("judge"),
        )
        courts_by_jurisdiction = self._tally(
            "courts.by_jurisdiction", lambda: store.count_by_jurisdiction("court"),
        )
        courts_by_type = self._tally("courts.by_type", store.count_courts_by_type)
        per_court = self._tally(
            "courts.avg_judges_per_court", lambda: store.active_assignments_per_court(today),
        )
        by_outcome = self._tally("cases.by_outcome", store.case_outcome_distribution)
        recent = self._count(
            "cases.recent", lambda: store.count_cases_decided_since(today - timedelta(days=RECENT_DAYS)),
        )
        stale = self._count(
            "cases.stale", lambda: store.count_cases_decided_before(today - timedelta(days=STALE_DAYS)),
        )
        missing_fields = self._count(
            "quality.missing_required_fields",
            lambda: sum(len(store.records_missing(e, f)) for e, f, _ in REQUIRED_FIELDS),
        )
        standardization = self._count(
            "quality.standardization_issues",
            lambda: sum(1 for _, name in store.judge_names() if name_problems(name)),
        )
        valid_outcomes = sum(n for o, n in by_outcome.items() if o in VALID_OUTCOMES)

        primary_ratio = _ratio(with_primary, judges_total)
        linked_ratio = _ratio(linked, cases_total)
        orphaned_records = orphaned_cases + orphaned_assignments

        snapshot = DataSnapshot(
            judges=JudgeSnapshot(
                total=judges_total,
                with_primary_court=with_primary,
                without_primary_court=max(judges_total - with_primary, 0),
                with_cases=with_cases,
                below_threshold=below,
                above_threshold=max(judges_total - below, 0),
                primary_court_ratio=round(primary_ratio, 4),
                avg_cases_per_judge=round(linked / judges_total, 2) if judges_total else 0.0,
                by_jurisdiction=judges_by_jurisdiction,
            ),
            courts=CourtSnapshot(
                total=courts_total,
                with_judges=courts_staffed,
                without_judges=max(courts_total - courts_staffed, 0),
                avg_judges_per_court=(
                    round(sum(per_court.values()) / len(per_court), 2) if per_court else 0.0
                ),
                by_jurisdiction=courts_by_jurisdiction,
                by_type=courts_by_type,
            ),
            cases=CaseSnapshot(
                total=cases_total,
                linked_to_judge=linked,
                unlinked=max(cases_total - linked - orphaned_cases, 0),
                orphaned=orphaned_cases,
                linked_ratio=round(linked_ratio, 4),
                with_valid_outcome=valid_outcomes,
                with_invalid_outcome=sum(by_outcome.values()) - valid_outcomes,
                by_outcome=by_outcome,
                recent_cases=recent,
                stale_cases=stale,
            ),
            assignments=AssignmentSnapshot(
                total=assignments_total,
                active=active,
                ended=max(assignments_total - active, 0),
                primary=by_type.get("primary", 0),
                visiting=by_type.get("visiting", 0),
                temporary=by_type.get("temporary", 0),
                retired=by_type.get("retired", 0),
                overlapping=overlaps,
            ),
            quality_metrics=QualityMetrics(
                orphaned_records=orphaned_records,
                duplicate_external_ids=duplicates,
                temporal_overlaps=overlaps,
                jurisdiction_mismatches=mismatches,
                case_count_mismatches=drift,
                missing_required_fields=missing_fields,
                standardization_issues=standardization,
            ),
            health_score=compute_health_score(
                primary_ratio, linked_ratio, overlaps, duplicates, orphaned_records,
            ),
            skipped_checks=list(self._skipped),
        )
        snapshot.duration_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "Snapshot %s: health %.1f, %d check(s) skipped",
            snapshot.snapshot_id, snapshot.health_score, len(snapshot.skipped_checks),
        )
        return snapshot

    def _tally(self, name: str, query: Callable[[], dict]) -> dict:
        try:
            return query()
        except SQLAlchemyError as e:
            logger.warning("Snapshot check %s skipped: %s", name, e)
            self._skipped.append(name)
            return {}

    def _count_overlaps(self) -> int:
        return sum(len(find_overlaps(rows)) for rows in self.store.assignments_by_judge().values())

    def _count_duplicate_groups(self) -> int:
        return sum(len(self.store.duplicate_external_ids(e)) for e in ("judge", "court", "case"))

    # === Persistence ===

    def save_snapshot(self, snapshot: DataSnapshot) -> str:
        """Persist a snapshot as a new data_snapshots row. Returns its id."""
        record = DataSnapshotRecord(
            id=snapshot.snapshot_id,
            created_at=snapshot.timestamp,
            health_score=snapshot.health_score,
            data=snapshot.model_dump(mode="json"),
        )
        self.store.insert_snapshot(record)
        logger.info("Snapshot %s saved", snapshot.snapshot_id)
        return snapshot.snapshot_id

    def load_snapshot(self, snapshot_id: str) -> DataSnapshot | None:
        record = self.store.get_snapshot(snapshot_id)
        if record is None:
            return None
        return DataSnapshot.model_validate(record.data)

    def list_snapshots(self, limit: int = 50) -> list[DataSnapshot]:
        return [DataSnapshot.model_validate(r.data) for r in self.store.list_snapshots(limit)]
