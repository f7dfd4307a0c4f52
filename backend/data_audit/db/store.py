"""AuditStore — the named query/command surface used by rules, engine and snapshots.

Design:
- Every read the validation rules and snapshot generator need is a named,
  parameterized method here; callers never build SQL strings
- Every write is one remediation action and runs in its own session +
  transaction: it commits as a whole or not at all (no cross-action
  transaction)
- Commands return a StoreWrite carrying rows_affected and the old column
  values, so the engine can build rollback info
- restore_values() only touches whitelisted (table, column) pairs
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone

from pydantic import BaseModel, Field
from sqlalchemy import delete, or_, update
from sqlalchemy.engine import Engine
from sqlmodel import Session, col, func, select

from data_audit.models.directory import Case, Court, CourtAssignment, Judge
from data_audit.models.remediation import RemediationRun
from data_audit.models.snapshot import DataSnapshotRecord

logger = logging.getLogger(__name__)

ENTITY_TABLES = {
    "judge": Judge,
    "court": Court,
    "case": Case,
    "assignment": CourtAssignment,
}

# (entity, column) pairs that rollback may write back
RESTORABLE_COLUMNS = frozenset({
    ("judge", "name"),
    ("judge", "total_cases"),
    ("case", "judge_id"),
    ("case", "outcome"),
    ("assignment", "assignment_type"),
    ("assignment", "end_date"),
})

_DATE_COLUMNS = frozenset({("assignment", "end_date")})

# Required fields checked for null rather than blank text
_NULLABLE_DATE_FIELDS = frozenset({("case", "decision_date")})


class ColumnChange(BaseModel):
    """The value a column held before a remediation write."""

    id: int
    column: str
    old_value: str | int | None = None


class StoreWrite(BaseModel):
    """Outcome of one store command."""

    rows_affected: int = 0
    changes: list[ColumnChange] = Field(default_factory=list)


class OverlapConflictError(Exception):
    """Raised when two overlapping assignments cannot be separated by trimming."""

    def __init__(self, judge_id: int, first_id: int, second_id: int, reason: str) -> None:
        self.judge_id = judge_id
        self.first_id = first_id
        self.second_id = second_id
        self.reason = reason
        super().__init__(
            f"Assignments {first_id} and {second_id} of judge {judge_id} {reason}; "
            f"cannot trim end_date"
        )


def _active_clause(today: date):
    return or_(col(CourtAssignment.end_date).is_(None), col(CourtAssignment.end_date) >= today)


def _is_blank(column):
    return or_(column.is_(None), func.trim(column) == "")


class AuditStore:
    """Parameterized access to the legal directory store.

    Usage:
        store = AuditStore(engine)
        judges = store.judges_without_active_primary(date.today())
        store.nullify_case_judge(case_id=42)
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    # === Primary court queries ===

    def judges_without_active_primary(self, today: date) -> list[tuple[int, str]]:
        """Judges with no active primary assignment, ordered by id."""
        primaries = select(CourtAssignment.judge_id).where(
            CourtAssignment.assignment_type == "primary", _active_clause(today),
        )
        stmt = (
            select(Judge.id, Judge.name)
            .where(col(Judge.id).not_in(primaries))
            .order_by(Judge.id)
        )
        with Session(self.engine) as session:
            return [(row[0], row[1]) for row in session.exec(stmt).all()]

    def multiple_active_primaries(self, today: date) -> dict[int, list[CourtAssignment]]:
        """Active primary assignments of judges holding more than one, keyed by judge."""
        crowded = (
            select(CourtAssignment.judge_id)
            .where(CourtAssignment.assignment_type == "primary", _active_clause(today))
            .group_by(CourtAssignment.judge_id)
            .having(func.count(CourtAssignment.id) > 1)
        )
        stmt = (
            select(CourtAssignment)
            .where(
                CourtAssignment.assignment_type == "primary",
                _active_clause(today),
                col(CourtAssignment.judge_id).in_(crowded),
            )
            .order_by(CourtAssignment.judge_id, CourtAssignment.start_date, CourtAssignment.id)
        )
        grouped: dict[int, list[CourtAssignment]] = {}
        with Session(self.engine) as session:
            for row in session.exec(stmt).all():
                grouped.setdefault(row.judge_id, []).append(row)
        return grouped

    def count_judges_with_active_primary(self, today: date) -> int:
        stmt = select(func.count(func.distinct(CourtAssignment.judge_id))).where(
            CourtAssignment.assignment_type == "primary",
            _active_clause(today),
            col(CourtAssignment.judge_id).in_(select(Judge.id)),
        )
        with Session(self.engine) as session:
            return session.exec(stmt).one()

    # === Assignment queries ===

    def assignments_by_judge(self) -> dict[int, list[CourtAssignment]]:
        """All assignments grouped by judge, each group ordered by start date then id."""
        stmt = select(CourtAssignment).order_by(
            CourtAssignment.judge_id, CourtAssignment.start_date, CourtAssignment.id,
        )
        grouped: dict[int, list[CourtAssignment]] = {}
        with Session(self.engine) as session:
            for row in session.exec(stmt).all():
                grouped.setdefault(row.judge_id, []).append(row)
        return grouped

    def count_assignments_by_type(self) -> dict[str, int]:
        stmt = select(CourtAssignment.assignment_type, func.count(CourtAssignment.id)).group_by(
            CourtAssignment.assignment_type
        )
        with Session(self.engine) as session:
            return {row[0]: row[1] for row in session.exec(stmt).all()}

    def count_active_assignments(self, today: date) -> int:
        stmt = select(func.count(CourtAssignment.id)).where(_active_clause(today))
        with Session(self.engine) as session:
            return session.exec(stmt).one()

    def jurisdiction_mismatches(self, today: date) -> list[tuple[int, int, int, str, str]]:
        """Active primary assignments whose judge and court jurisdictions differ.

        Returns (assignment_id, judge_id, court_id, judge_jurisdiction, court_jurisdiction).
        Blank jurisdictions are not compared.
        """
        judge_j = func.lower(func.trim(Judge.jurisdiction))
        court_j = func.lower(func.trim(Court.jurisdiction))
        stmt = (
            select(
                CourtAssignment.id,
                CourtAssignment.judge_id,
                CourtAssignment.court_id,
                Judge.jurisdiction,
                Court.jurisdiction,
            )
            .join(Judge, Judge.id == CourtAssignment.judge_id)
            .join(Court, Court.id == CourtAssignment.court_id)
            .where(
                CourtAssignment.assignment_type == "primary",
                _active_clause(today),
                judge_j != "",
                court_j != "",
                judge_j != court_j,
            )
            .order_by(CourtAssignment.id)
        )
        with Session(self.engine) as session:
            return [tuple(row) for row in session.exec(stmt).all()]

    # === Case volume queries ===

    def judges_below_case_threshold(self, threshold: int) -> list[tuple[int, str, int]]:
        stmt = (
            select(Judge.id, Judge.name, Judge.total_cases)
            .where(Judge.total_cases < threshold)
            .order_by(Judge.total_cases, Judge.id)
        )
        with Session(self.engine) as session:
            return [(row[0], row[1], row[2]) for row in session.exec(stmt).all()]

    def case_count_drift(self, tolerance: int) -> list[tuple[int, str, int, int]]:
        """Judges whose total_cases differs from the real count by more than tolerance.

        Returns (judge_id, name, recorded, actual).
        """
        actual = (
            select(col(Case.judge_id).label("judge_id"), func.count(Case.id).label("n"))
            .where(col(Case.judge_id).is_not(None))
            .group_by(Case.judge_id)
            .subquery()
        )
        actual_n = func.coalesce(actual.c.n, 0)
        stmt = (
            select(Judge.id, Judge.name, Judge.total_cases, actual_n)
            .outerjoin(actual, actual.c.judge_id == Judge.id)
            .where(func.abs(Judge.total_cases - actual_n) > tolerance)
            .order_by(Judge.id)
        )
        with Session(self.engine) as session:
            return [(row[0], row[1], row[2], row[3]) for row in session.exec(stmt).all()]

    def count_judges_with_cases(self) -> int:
        stmt = select(func.count(func.distinct(Case.judge_id))).where(
            col(Case.judge_id).in_(select(Judge.id))
        )
        with Session(self.engine) as session:
            return session.exec(stmt).one()

    def count_linked_cases(self) -> int:
        """Cases whose judge_id points at an existing judge."""
        stmt = select(func.count(Case.id)).where(col(Case.judge_id).in_(select(Judge.id)))
        with Session(self.engine) as session:
            return session.exec(stmt).one()

    def count_courts_with_judges(self) -> int:
        stmt = select(func.count(func.distinct(CourtAssignment.court_id))).where(
            col(CourtAssignment.court_id).in_(select(Court.id))
        )
        with Session(self.engine) as session:
            return session.exec(stmt).one()

    # === Distributions ===

    def count_by_jurisdiction(self, entity: str) -> dict[str, int]:
        """Judges or courts per trimmed jurisdiction; blank ones under "unknown"."""
        table = ENTITY_TABLES[entity]
        jurisdiction = func.trim(func.coalesce(table.jurisdiction, ""))
        stmt = select(jurisdiction, func.count(table.id)).group_by(jurisdiction)
        counts: dict[str, int] = {}
        with Session(self.engine) as session:
            for value, n in session.exec(stmt).all():
                key = value or "unknown"
                counts[key] = counts.get(key, 0) + n
        return counts

    def count_courts_by_type(self) -> dict[str, int]:
        court_type = func.lower(func.trim(func.coalesce(Court.court_type, "")))
        stmt = select(court_type, func.count(Court.id)).group_by(court_type)
        counts: dict[str, int] = {}
        with Session(self.engine) as session:
            for value, n in session.exec(stmt).all():
                key = value or "unknown"
                counts[key] = counts.get(key, 0) + n
        return counts

    def active_assignments_per_court(self, today: date) -> dict[int, int]:
        stmt = (
            select(CourtAssignment.court_id, func.count(CourtAssignment.id))
            .where(_active_clause(today), col(CourtAssignment.court_id).in_(select(Court.id)))
            .group_by(CourtAssignment.court_id)
        )
        with Session(self.engine) as session:
            return {row[0]: row[1] for row in session.exec(stmt).all()}

    def case_outcome_distribution(self) -> dict[str, int]:
        """Non-blank outcomes, lowercased and trimmed, with their case counts."""
        outcome = func.lower(func.trim(Case.outcome))
        stmt = (
            select(outcome, func.count(Case.id))
            .where(col(Case.outcome).is_not(None), func.trim(Case.outcome) != "")
            .group_by(outcome)
        )
        with Session(self.engine) as session:
            return {row[0]: row[1] for row in session.exec(stmt).all()}

    def count_cases_decided_since(self, day: date) -> int:
        stmt = select(func.count(Case.id)).where(col(Case.decision_date) >= day)
        with Session(self.engine) as session:
            return session.exec(stmt).one()

    def count_cases_decided_before(self, day: date) -> int:
        stmt = select(func.count(Case.id)).where(col(Case.decision_date) < day)
        with Session(self.engine) as session:
            return session.exec(stmt).one()

    # === Orphans ===

    def orphaned_cases(self) -> list[tuple[int, int]]:
        """Cases referencing a judge that does not exist: (case_id, judge_id)."""
        stmt = (
            select(Case.id, Case.judge_id)
            .where(col(Case.judge_id).is_not(None), col(Case.judge_id).not_in(select(Judge.id)))
            .order_by(Case.id)
        )
        with Session(self.engine) as session:
            return [(row[0], row[1]) for row in session.exec(stmt).all()]

    def orphaned_assignments(self) -> list[tuple[int, str, int]]:
        """Assignments whose judge or court is missing: (assignment_id, column, missing_id)."""
        stmt = (
            select(CourtAssignment.id, CourtAssignment.judge_id, CourtAssignment.court_id)
            .where(
                or_(
                    col(CourtAssignment.judge_id).not_in(select(Judge.id)),
                    col(CourtAssignment.court_id).not_in(select(Court.id)),
                )
            )
            .order_by(CourtAssignment.id)
        )
        with Session(self.engine) as session:
            rows = session.exec(stmt).all()
            judge_ids = set(session.exec(select(Judge.id)).all())
        orphans = []
        for assignment_id, judge_id, court_id in rows:
            if judge_id not in judge_ids:
                orphans.append((assignment_id, "judge_id", judge_id))
            else:
                orphans.append((assignment_id, "court_id", court_id))
        return orphans

    # === Duplicates and required fields ===

    def duplicate_external_ids(self, entity: str) -> list[tuple[str, list[int]]]:
        """Groups of rows sharing one external id within an entity table."""
        table = ENTITY_TABLES[entity]
        ext = col(table.external_id)
        groups_stmt = (
            select(table.external_id)
            .where(ext.is_not(None), ext != "")
            .group_by(table.external_id)
            .having(func.count(table.id) > 1)
            .order_by(table.external_id)
        )
        with Session(self.engine) as session:
            external_ids = list(session.exec(groups_stmt).all())
            groups = []
            for external_id in external_ids:
                ids = session.exec(
                    select(table.id).where(table.external_id == external_id).order_by(table.id)
                ).all()
                groups.append((external_id, list(ids)))
        return groups

    def records_missing(self, entity: str, field: str) -> list[int]:
        """Ids of rows whose field is null, or blank for text columns."""
        table = ENTITY_TABLES[entity]
        column = col(getattr(table, field))
        missing = column.is_(None) if (entity, field) in _NULLABLE_DATE_FIELDS else _is_blank(column)
        stmt = select(table.id).where(missing).order_by(table.id)
        with Session(self.engine) as session:
            return list(session.exec(stmt).all())

    def duplicate_docket_numbers(self) -> list[tuple[str, list[int]]]:
        """Groups of cases sharing one non-blank docket number."""
        docket = col(Case.docket_number)
        groups_stmt = (
            select(Case.docket_number)
            .where(docket.is_not(None), func.trim(docket) != "")
            .group_by(Case.docket_number)
            .having(func.count(Case.id) > 1)
            .order_by(Case.docket_number)
        )
        with Session(self.engine) as session:
            groups = []
            for docket_number in session.exec(groups_stmt).all():
                ids = session.exec(
                    select(Case.id).where(Case.docket_number == docket_number).order_by(Case.id)
                ).all()
                groups.append((docket_number, list(ids)))
        return groups

    def case_jurisdiction_mismatches(self) -> list[tuple[int, int, int, str, str]]:
        """Cases whose judge and court sit in different jurisdictions.

        Returns (case_id, judge_id, court_id, judge_jurisdiction, court_jurisdiction).
        Cases missing either side, and blank jurisdictions, are not compared.
        """
        judge_j = func.lower(func.trim(Judge.jurisdiction))
        court_j = func.lower(func.trim(Court.jurisdiction))
        stmt = (
            select(Case.id, Case.judge_id, Case.court_id, Judge.jurisdiction, Court.jurisdiction)
            .join(Judge, Judge.id == Case.judge_id)
            .join(Court, Court.id == Case.court_id)
            .where(judge_j != "", court_j != "", judge_j != court_j)
            .order_by(Case.id)
        )
        with Session(self.engine) as session:
            return [tuple(row) for row in session.exec(stmt).all()]

    def judge_names(self) -> list[tuple[int, str]]:
        stmt = (
            select(Judge.id, Judge.name)
            .where(col(Judge.name).is_not(None), func.trim(Judge.name) != "")
            .order_by(Judge.id)
        )
        with Session(self.engine) as session:
            return [(row[0], row[1]) for row in session.exec(stmt).all()]

    def case_outcomes(self) -> list[tuple[int, str]]:
        stmt = (
            select(Case.id, Case.outcome)
            .where(col(Case.outcome).is_not(None), func.trim(Case.outcome) != "")
            .order_by(Case.id)
        )
        with Session(self.engine) as session:
            return [(row[0], row[1]) for row in session.exec(stmt).all()]

    def count_rows(self, entity: str) -> int:
        table = ENTITY_TABLES[entity]
        with Session(self.engine) as session:
            return session.exec(select(func.count(table.id))).one()

    # === Remediation commands (one transaction each) ===

    def nullify_case_judge(self, case_id: int) -> StoreWrite:
        """Clear a case's dangling judge reference."""
        with Session(self.engine) as session:
            case = session.get(Case, case_id)
            if case is None or case.judge_id is None:
                return StoreWrite()
            change = ColumnChange(id=case_id, column="judge_id", old_value=case.judge_id)
            case.judge_id = None
            session.add(case)
            session.commit()
        return StoreWrite(rows_affected=1, changes=[change])

    def delete_assignment(self, assignment_id: int) -> StoreWrite:
        with Session(self.engine) as session:
            result = session.execute(
                delete(CourtAssignment).where(CourtAssignment.id == assignment_id)
            )
            session.commit()
        return StoreWrite(rows_affected=result.rowcount or 0)

    def demote_extra_primaries(self, judge_id: int, today: date) -> StoreWrite:
        """Keep the most recently started active primary; others become visiting."""
        stmt = (
            select(CourtAssignment)
            .where(
                CourtAssignment.judge_id == judge_id,
                CourtAssignment.assignment_type == "primary",
                _active_clause(today),
            )
            .order_by(col(CourtAssignment.start_date).desc(), col(CourtAssignment.id).desc())
        )
        changes: list[ColumnChange] = []
        with Session(self.engine) as session:
            primaries = session.exec(stmt).all()
            for assignment in primaries[1:]:
                changes.append(
                    ColumnChange(id=assignment.id, column="assignment_type", old_value="primary")
                )
                assignment.assignment_type = "visiting"
                session.add(assignment)
            session.commit()
        return StoreWrite(rows_affected=len(changes), changes=changes)

    def trim_overlapping_assignments(self, judge_id: int, today: date) -> StoreWrite:
        """End each overlapping assignment the day before the next one at the same court starts.

        Assignments at different courts are never compared.

        Raises:
            OverlapConflictError: two overlapping assignments share a start date, or
                trimming would end an active primary seat because of a later
                non-primary assignment. Nothing is written in either case.
        """
        stmt = (
            select(CourtAssignment)
            .where(CourtAssignment.judge_id == judge_id)
            .order_by(CourtAssignment.court_id, CourtAssignment.start_date, CourtAssignment.id)
        )
        changes: list[ColumnChange] = []
        with Session(self.engine) as session:
            by_court: dict[int, list[CourtAssignment]] = {}
            for row in session.exec(stmt).all():
                by_court.setdefault(row.court_id, []).append(row)
            for rows in by_court.values():
                for earlier, later in zip(rows, rows[1:]):
                    earlier_end = earlier.end_date or date.max
                    if later.start_date > earlier_end:
                        continue
                    if later.start_date <= earlier.start_date:
                        raise OverlapConflictError(
                            judge_id, earlier.id, later.id, "start on the same day",
                        )
                    if (
                        earlier.assignment_type == "primary"
                        and later.assignment_type != "primary"
                        and earlier_end >= today
                    ):
                        raise OverlapConflictError(
                            judge_id, earlier.id, later.id,
                            "would end the active primary seat for a non-primary assignment",
                        )
                    old = earlier.end_date.isoformat() if earlier.end_date else None
                    changes.append(ColumnChange(id=earlier.id, column="end_date", old_value=old))
                    earlier.end_date = later.start_date - timedelta(days=1)
                    session.add(earlier)
            session.commit()
        return StoreWrite(rows_affected=len(changes), changes=changes)

    def recalculate_case_counts(self, judge_ids: list[int]) -> StoreWrite:
        """Reset total_cases to the real case count for each judge."""
        changes: list[ColumnChange] = []
        with Session(self.engine) as session:
            for judge_id in judge_ids:
                judge = session.get(Judge, judge_id)
                if judge is None:
                    continue
                actual = session.exec(
                    select(func.count(Case.id)).where(Case.judge_id == judge_id)
                ).one()
                if judge.total_cases == actual:
                    continue
                changes.append(
                    ColumnChange(id=judge_id, column="total_cases", old_value=judge.total_cases)
                )
                judge.total_cases = actual
                judge.updated_at = datetime.now(timezone.utc)
                session.add(judge)
            session.commit()
        return StoreWrite(rows_affected=len(changes), changes=changes)

    def get_judge_names(self, judge_ids: list[int]) -> dict[int, str]:
        stmt = select(Judge.id, Judge.name).where(col(Judge.id).in_(judge_ids))
        with Session(self.engine) as session:
            return {row[0]: row[1] for row in session.exec(stmt).all()}

    def update_judge_names(self, names: dict[int, str]) -> StoreWrite:
        """Set new names for the given judges."""
        changes: list[ColumnChange] = []
        with Session(self.engine) as session:
            for judge_id, name in names.items():
                judge = session.get(Judge, judge_id)
                if judge is None or judge.name == name:
                    continue
                changes.append(ColumnChange(id=judge_id, column="name", old_value=judge.name))
                judge.name = name
                judge.updated_at = datetime.now(timezone.utc)
                session.add(judge)
            session.commit()
        return StoreWrite(rows_affected=len(changes), changes=changes)

    def get_case_outcomes(self, case_ids: list[int]) -> dict[int, str | None]:
        stmt = select(Case.id, Case.outcome).where(col(Case.id).in_(case_ids))
        with Session(self.engine) as session:
            return {row[0]: row[1] for row in session.exec(stmt).all()}

    def update_case_outcomes(self, outcomes: dict[int, str]) -> StoreWrite:
        """Set new outcomes for the given cases."""
        changes: list[ColumnChange] = []
        with Session(self.engine) as session:
            for case_id, outcome in outcomes.items():
                case = session.get(Case, case_id)
                if case is None or case.outcome == outcome:
                    continue
                changes.append(ColumnChange(id=case_id, column="outcome", old_value=case.outcome))
                case.outcome = outcome
                session.add(case)
            session.commit()
        return StoreWrite(rows_affected=len(changes), changes=changes)

    def merge_duplicates(self, entity: str, keep_id: int, duplicate_ids: list[int]) -> StoreWrite:
        """Re-point references from duplicate rows to keep_id, then delete the duplicates."""
        table = ENTITY_TABLES[entity]
        dupes = [i for i in duplicate_ids if i != keep_id]
        if not dupes:
            return StoreWrite()
        rows = 0
        with Session(self.engine) as session:
            if entity == "judge":
                rows += session.execute(
                    update(Case).where(col(Case.judge_id).in_(dupes)).values(judge_id=keep_id)
                ).rowcount or 0
                rows += session.execute(
                    update(CourtAssignment)
                    .where(col(CourtAssignment.judge_id).in_(dupes))
                    .values(judge_id=keep_id)
                ).rowcount or 0
            elif entity == "court":
                rows += session.execute(
                    update(Case).where(col(Case.court_id).in_(dupes)).values(court_id=keep_id)
                ).rowcount or 0
                rows += session.execute(
                    update(CourtAssignment)
                    .where(col(CourtAssignment.court_id).in_(dupes))
                    .values(court_id=keep_id)
                ).rowcount or 0
            rows += session.execute(delete(table).where(col(table.id).in_(dupes))).rowcount or 0
            session.commit()
        return StoreWrite(rows_affected=rows)

    def restore_values(self, entity: str, changes: list[ColumnChange]) -> int:
        """Write recorded old values back. Only whitelisted columns are accepted."""
        table = ENTITY_TABLES[entity]
        for change in changes:
            if (entity, change.column) not in RESTORABLE_COLUMNS:
                raise ValueError(f"Column {entity}.{change.column} cannot be restored")
        restored = 0
        with Session(self.engine) as session:
            for change in changes:
                row = session.get(table, change.id)
                if row is None:
                    logger.warning("Rollback target %s/%d no longer exists", entity, change.id)
                    continue
                value = change.old_value
                if (entity, change.column) in _DATE_COLUMNS and isinstance(value, str):
                    value = date.fromisoformat(value)
                setattr(row, change.column, value)
                session.add(row)
                restored += 1
            session.commit()
        return restored

    # === Snapshots and run history ===

    def insert_snapshot(self, record: DataSnapshotRecord) -> None:
        with Session(self.engine) as session:
            session.add(record)
            session.commit()

    def get_snapshot(self, snapshot_id: str) -> DataSnapshotRecord | None:
        with Session(self.engine) as session:
            return session.get(DataSnapshotRecord, snapshot_id)

    def list_snapshots(self, limit: int = 50) -> list[DataSnapshotRecord]:
        stmt = (
            select(DataSnapshotRecord)
            .order_by(col(DataSnapshotRecord.created_at).desc())
            .limit(limit)
        )
        with Session(self.engine) as session:
            return list(session.exec(stmt).all())

    def insert_remediation_run(self, run: RemediationRun) -> None:
        with Session(self.engine) as session:
            session.add(run)
            session.commit()

    def list_remediation_runs(self, limit: int = 50) -> list[RemediationRun]:
        stmt = (
            select(RemediationRun)
            .order_by(col(RemediationRun.started_at).desc())
            .limit(limit)
        )
        with Session(self.engine) as session:
            return list(session.exec(stmt).all())
