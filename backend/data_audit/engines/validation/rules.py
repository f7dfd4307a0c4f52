"""Validation rule catalog.

Each rule is a pure query-and-classify function:

    rule(store, settings, today) -> list[Issue]

Rules only read from the store. Re-running a rule without intervening
writes yields the same Issues (ids are derived from the affected rows).

Order matters: RULES runs in list order, and QUICK_RULES is the cheap,
high-value prefix used by quick validation.
"""

from __future__ import annotations

from datetime import date
from typing import Callable

from data_audit.config import Settings
from data_audit.db.store import AuditStore
from data_audit.engines.remediation.catalog import catalog_entry
from data_audit.engines.validation.issue_models import (
    BelowCaseThresholdDetails,
    CaseCountDrift,
    CaseCountMismatchDetails,
    CaseJurisdictionMismatchDetails,
    CaseJurisdictionPair,
    DanglingReference,
    DuplicateDocketNumberDetails,
    DuplicateExternalIdDetails,
    Issue,
    JudgeCaseCount,
    JudgeRef,
    JurisdictionMismatchDetails,
    JurisdictionPair,
    MissingPrimaryCourtDetails,
    MissingRequiredFieldDetails,
    MultiplePrimaryCourtsDetails,
    NameFix,
    NonstandardJudgeNameDetails,
    NonstandardOutcomeDetails,
    OrphanedAssignmentDetails,
    OrphanedCaseDetails,
    OutcomeFix,
    OverlapPair,
    TemporalOverlapDetails,
    make_issue_id,
)
from data_audit.engines.validation.normalizers import (
    name_problems,
    standardize_judge_name,
    suggest_outcome,
)

Rule = Callable[[AuditStore, Settings, date], list[Issue]]

OPEN_END = date.max  # Open-ended assignments run forever


def _issue(
    category: str,
    severity: str,
    entity: str,
    affected_ids: list[int],
    description: str,
    suggested_action: str,
    details,
    key: str = "",
    fixable: bool = True,
) -> Issue:
    """Build an Issue, taking auto-fix metadata from the remediation catalog."""
    entry = catalog_entry(category)
    auto_fixable = entry.auto_fixable and fixable
    ids = tuple(affected_ids)
    return Issue(
        id=make_issue_id(category, entity, ids, key),
        category=category,
        severity=severity,
        entity=entity,
        description=description,
        suggested_action=suggested_action,
        affected_count=len(ids),
        affected_ids=ids,
        sample_details=details,
        auto_fixable=auto_fixable,
        suggested_fix_id=entry.fix_id if auto_fixable else None,
    )


# === Quick rules ===


def check_primary_court_assignments(store: AuditStore, settings: Settings, today: date) -> list[Issue]:
    """Every judge needs exactly one active primary court."""
    issues: list[Issue] = []
    limit = settings.sample_limit

    missing = store.judges_without_active_primary(today)
    if missing:
        issues.append(_issue(
            "missing_primary_court", "critical", "judge",
            [judge_id for judge_id, _ in missing],
            f"{len(missing)} judge(s) have no active primary court assignment",
            "Review assignments and designate one primary court per judge",
            MissingPrimaryCourtDetails(
                judges=tuple(JudgeRef(id=i, name=n or "") for i, n in missing[:limit]),
            ),
        ))

    for judge_id, primaries in store.multiple_active_primaries(today).items():
        keep = max(primaries, key=lambda a: (a.start_date, a.id))
        issues.append(_issue(
            "multiple_primary_courts", "critical", "judge", [judge_id],
            f"Judge {judge_id} has {len(primaries)} active primary court assignments",
            f"Keep assignment {keep.id} (most recent) as primary; convert the others to visiting",
            MultiplePrimaryCourtsDetails(
                judge_id=judge_id,
                assignment_ids=tuple(a.id for a in primaries),
                keep_assignment_id=keep.id,
            ),
        ))
    return issues


def find_overlaps(assignments) -> list[OverlapPair]:
    """Inclusive pairwise overlap check over one judge's assignments.

    Only assignments at the same court are compared: sitting by designation
    at another court while holding a primary seat is not an overlap.
    """
    ordered = sorted(assignments, key=lambda a: (a.court_id, a.start_date, a.id))
    pairs: list[OverlapPair] = []
    for i, first in enumerate(ordered):
        first_end = first.end_date or OPEN_END
        for second in ordered[i + 1:]:
            # Sorted by court then start: only the court and the end matter
            if second.court_id != first.court_id or second.start_date > first_end:
                break
            pairs.append(OverlapPair(
                earlier_assignment_id=first.id,
                later_assignment_id=second.id,
                earlier_court_id=first.court_id,
                later_court_id=second.court_id,
                earlier_start=first.start_date,
                earlier_end=first.end_date,
                later_start=second.start_date,
                later_end=second.end_date,
            ))
    return pairs


def check_temporal_overlaps(store: AuditStore, settings: Settings, today: date) -> list[Issue]:
    """A judge's assignments at one court must not overlap in time."""
    issues: list[Issue] = []
    for judge_id, assignments in store.assignments_by_judge().items():
        pairs = find_overlaps(assignments)
        if not pairs:
            continue
        issues.append(_issue(
            "temporal_overlap", "high", "judge", [judge_id],
            f"Judge {judge_id} has {len(pairs)} overlapping assignment pair(s)",
            "End each earlier assignment the day before the next one at the same court starts",
            TemporalOverlapDetails(
                judge_id=judge_id,
                overlaps=tuple(pairs[:settings.sample_limit]),
            ),
        ))
    return issues


def check_case_threshold(store: AuditStore, settings: Settings, today: date) -> list[Issue]:
    """Judges below the case floor are not eligible for analytics."""
    threshold = settings.min_case_threshold
    bands: dict[str, list[tuple[int, str, int]]] = {
        "under_100": [], "under_250": [], "under_threshold": [],
    }
    for judge_id, name, total in store.judges_below_case_threshold(threshold):
        if total < 100:
            bands["under_100"].append((judge_id, name, total))
        elif total < 250:
            bands["under_250"].append((judge_id, name, total))
        else:
            bands["under_threshold"].append((judge_id, name, total))

    severity_by_band = {"under_100": "high", "under_250": "medium", "under_threshold": "low"}
    issues: list[Issue] = []
    for band, rows in bands.items():
        if not rows:
            continue
        issues.append(_issue(
            "below_case_threshold", severity_by_band[band], "judge",
            [r[0] for r in rows],
            f"{len(rows)} judge(s) have fewer than {threshold} cases ({band.replace('_', ' ')})",
            "Exclude from analytics or backfill case history",
            BelowCaseThresholdDetails(
                threshold=threshold,
                band=band,
                judges=tuple(
                    JudgeCaseCount(id=i, name=n or "", total_cases=t)
                    for i, n, t in rows[:settings.sample_limit]
                ),
            ),
            key=band,
        ))
    return issues


# === Full rules ===


def check_orphaned_records(store: AuditStore, settings: Settings, today: date) -> list[Issue]:
    """Rows whose references point at missing parents."""
    issues: list[Issue] = []
    limit = settings.sample_limit

    cases = store.orphaned_cases()
    if cases:
        issues.append(_issue(
            "orphaned_case", "high", "case", [case_id for case_id, _ in cases],
            f"{len(cases)} case(s) reference a judge that does not exist",
            "Clear the dangling judge reference",
            OrphanedCaseDetails(references=tuple(
                DanglingReference(id=case_id, column="judge_id", missing_id=judge_id)
                for case_id, judge_id in cases[:limit]
            )),
        ))

    assignments = store.orphaned_assignments()
    if assignments:
        issues.append(_issue(
            "orphaned_assignment", "critical", "assignment", [a[0] for a in assignments],
            f"{len(assignments)} court assignment(s) reference a missing judge or court",
            "Delete the orphaned assignments",
            OrphanedAssignmentDetails(references=tuple(
                DanglingReference(id=a_id, column=column, missing_id=missing)
                for a_id, column, missing in assignments[:limit]
            )),
        ))
    return issues


def check_duplicate_external_ids(store: AuditStore, settings: Settings, today: date) -> list[Issue]:
    """External source ids must be unique within an entity type."""
    issues: list[Issue] = []
    for entity, severity in (("judge", "critical"), ("court", "critical"), ("case", "medium")):
        for external_id, ids in store.duplicate_external_ids(entity):
            issues.append(_issue(
                "duplicate_external_id", severity, entity, ids,
                f"{len(ids)} {entity} records share external id {external_id}",
                f"Merge into {entity} {ids[0]} and delete the rest",
                DuplicateExternalIdDetails(
                    entity=entity,
                    external_id=external_id,
                    record_ids=tuple(ids[:settings.sample_limit]),
                    keep_id=ids[0],
                ),
                key=external_id,
            ))
    return issues


def check_case_counts(store: AuditStore, settings: Settings, today: date) -> list[Issue]:
    """Denormalized judges.total_cases must track the real case count."""
    rows = store.case_count_drift(settings.case_count_tolerance)
    if not rows:
        return []
    worst = max(abs(recorded - actual) for _, _, recorded, actual in rows)
    return [_issue(
        "case_count_mismatch", "high" if worst > 20 else "medium", "judge",
        [r[0] for r in rows],
        f"{len(rows)} judge(s) have a total_cases value off by more than "
        f"{settings.case_count_tolerance} (worst: {worst})",
        "Recalculate total_cases from the cases table",
        CaseCountMismatchDetails(
            tolerance=settings.case_count_tolerance,
            judges=tuple(
                CaseCountDrift(judge_id=i, name=n or "", recorded=r, actual=a)
                for i, n, r, a in rows[:settings.sample_limit]
            ),
        ),
    )]


def check_jurisdictions(store: AuditStore, settings: Settings, today: date) -> list[Issue]:
    rows = store.jurisdiction_mismatches(today)
    if not rows:
        return []
    return [_issue(
        "jurisdiction_mismatch", "high", "assignment", [r[0] for r in rows],
        f"{len(rows)} primary assignment(s) place a judge in a court of another jurisdiction",
        "Verify the judge's jurisdiction and primary court",
        JurisdictionMismatchDetails(mismatches=tuple(
            JurisdictionPair(
                assignment_id=a, judge_id=j, court_id=c,
                judge_jurisdiction=jj, court_jurisdiction=cj,
            )
            for a, j, c, jj, cj in rows[:settings.sample_limit]
        )),
    )]


# (entity, field, severity) in check order
REQUIRED_FIELDS: tuple[tuple[str, str, str], ...] = (
    ("judge", "name", "high"),
    ("court", "name", "high"),
    ("case", "case_name", "high"),
    ("judge", "jurisdiction", "medium"),
    ("case", "decision_date", "medium"),
)


def check_required_fields(store: AuditStore, settings: Settings, today: date) -> list[Issue]:
    issues: list[Issue] = []
    for entity, field, severity in REQUIRED_FIELDS:
        ids = store.records_missing(entity, field)
        if ids:
            issues.append(_issue(
                "missing_required_field", severity, entity, ids,
                f"{len(ids)} {entity} record(s) have no {field}",
                f"Backfill {entity} {field} values from the source system",
                MissingRequiredFieldDetails(
                    entity=entity, field=field, record_ids=tuple(ids[:settings.sample_limit]),
                ),
                key=field,
            ))
    return issues


def check_judge_names(store: AuditStore, settings: Settings, today: date) -> list[Issue]:
    """Names should be plain "First Middle Last" without titles or odd casing."""
    fixable: list[NameFix] = []
    manual: list[NameFix] = []
    for judge_id, name in store.judge_names():
        problems = name_problems(name)
        if not problems:
            continue
        fix = NameFix(
            judge_id=judge_id,
            current=name,
            suggested=standardize_judge_name(name),
            problems=tuple(problems),
        )
        (fixable if fix.suggested else manual).append(fix)

    issues: list[Issue] = []
    limit = settings.sample_limit
    if fixable:
        issues.append(_issue(
            "nonstandard_judge_name", "medium", "judge", [f.judge_id for f in fixable],
            f"{len(fixable)} judge name(s) need standardization",
            "Strip titles, collapse whitespace and apply title case",
            NonstandardJudgeNameDetails(names=tuple(fixable[:limit])),
            key="fixable",
        ))
    if manual:
        issues.append(_issue(
            "nonstandard_judge_name", "medium", "judge", [f.judge_id for f in manual],
            f"{len(manual)} judge name(s) contain characters that need manual cleanup",
            "Edit the names by hand",
            NonstandardJudgeNameDetails(names=tuple(manual[:limit])),
            key="manual",
            fixable=False,
        ))
    return issues


def check_outcomes(store: AuditStore, settings: Settings, today: date) -> list[Issue]:
    fixes: list[OutcomeFix] = []
    for case_id, outcome in store.case_outcomes():
        suggested = suggest_outcome(outcome)
        if suggested is not None:
            fixes.append(OutcomeFix(case_id=case_id, current=outcome, suggested=suggested))
    if not fixes:
        return []
    return [_issue(
        "nonstandard_outcome", "low", "case", [f.case_id for f in fixes],
        f"{len(fixes)} case outcome(s) are outside the standard taxonomy",
        "Map outcomes onto the standard taxonomy",
        NonstandardOutcomeDetails(outcomes=tuple(fixes[:settings.sample_limit])),
    )]


def check_duplicate_dockets(store: AuditStore, settings: Settings, today: date) -> list[Issue]:
    """A docket number identifies one case."""
    issues: list[Issue] = []
    for docket_number, ids in store.duplicate_docket_numbers():
        issues.append(_issue(
            "duplicate_docket_number", "medium", "case", ids,
            f"{len(ids)} cases share docket number {docket_number}",
            "Review and merge the duplicate case records",
            DuplicateDocketNumberDetails(
                docket_number=docket_number, case_ids=tuple(ids[:settings.sample_limit]),
            ),
            key=docket_number,
        ))
    return issues


def check_case_jurisdictions(store: AuditStore, settings: Settings, today: date) -> list[Issue]:
    rows = store.case_jurisdiction_mismatches()
    if not rows:
        return []
    return [_issue(
        "case_jurisdiction_mismatch", "medium", "case", [r[0] for r in rows],
        f"{len(rows)} case(s) pair a judge and a court from different jurisdictions",
        "Verify the case's judge and court assignment",
        CaseJurisdictionMismatchDetails(mismatches=tuple(
            CaseJurisdictionPair(
                case_id=k, judge_id=j, court_id=c,
                judge_jurisdiction=jj, court_jurisdiction=cj,
            )
            for k, j, c, jj, cj in rows[:settings.sample_limit]
        )),
    )]


# === Catalog ===

QUICK_RULES: list[tuple[str, Rule]] = [
    ("primary_court_assignment", check_primary_court_assignments),
    ("temporal_overlap", check_temporal_overlaps),
    ("minimum_case_threshold", check_case_threshold),
]

RULES: list[tuple[str, Rule]] = QUICK_RULES + [
    ("orphan_detection", check_orphaned_records),
    ("duplicate_external_id", check_duplicate_external_ids),
    ("case_count_consistency", check_case_counts),
    ("jurisdiction_consistency", check_jurisdictions),
    ("required_fields", check_required_fields),
    ("judge_name_format", check_judge_names),
    ("outcome_taxonomy", check_outcomes),
    ("docket_number_uniqueness", check_duplicate_dockets),
    ("case_jurisdiction_consistency", check_case_jurisdictions),
]
