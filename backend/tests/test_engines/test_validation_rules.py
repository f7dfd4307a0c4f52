"""Tests for DataQualityValidator and the rule catalog."""

import os
import sys
from datetime import date
from unittest.mock import patch

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

import pytest
from sqlalchemy.exc import OperationalError

from data_audit.engines.validation.report import render_report_text
from data_audit.engines.validation.rules import QUICK_RULES, RULES, find_overlaps
from data_audit.engines.validation.validator import DataQualityValidator, run_rule
from data_audit.models.directory import CourtAssignment

TODAY = date(2026, 3, 1)


def _validator(store, settings, **overrides):
    if overrides:
        settings = settings.model_copy(update=overrides)
    return DataQualityValidator(store, settings, today=TODAY)


def _by_category(report, category):
    return [i for i in report.issues if i.category == category]


# === Catalog ===


def test_quick_rules_are_prefix_of_full_rules():
    assert [name for name, _ in QUICK_RULES] == [
        "primary_court_assignment", "temporal_overlap", "minimum_case_threshold",
    ]
    assert RULES[:3] == QUICK_RULES
    assert len(RULES) == 12


def test_unknown_mode_rejected(store, settings):
    with pytest.raises(ValueError, match="Unknown validation mode"):
        _validator(store, settings).validate("deep")


def test_empty_store_is_healthy(store, settings):
    report = _validator(store, settings).run_full_validation()
    assert report.total_issues == 0
    assert report.overall_level == "HEALTHY"
    assert report.counts_by_severity == {"critical": 0, "high": 0, "medium": 0, "low": 0}
    assert report.summary.startswith("HEALTHY")
    assert not report.has_critical
    print("  PASS: empty_store_is_healthy")


# === Primary court rule ===


def test_missing_primary_aggregates_into_one_issue(store, settings, directory):
    """Ten unseated judges produce a single critical issue, not ten."""
    ids = [directory.judge(name=f"Judge Number {n}") for n in range(10)]

    report = _validator(store, settings, sample_limit=3).run_full_validation()
    missing = _by_category(report, "missing_primary_court")

    assert len(missing) == 1
    issue = missing[0]
    assert issue.severity == "critical"
    assert issue.affected_count == 10
    assert list(issue.affected_ids) == ids
    assert len(issue.sample_details.judges) == 3
    assert issue.auto_fixable is False
    assert issue.suggested_fix_id is None
    assert report.has_critical
    print("  PASS: missing_primary_aggregates_into_one_issue")


def test_ended_primary_does_not_count(store, settings, directory):
    court = directory.court()
    judge = directory.judge()
    directory.assignment(judge, court, start=date(2010, 1, 1), end=date(2020, 12, 31))

    report = _validator(store, settings).run_quick_validation()
    missing = _by_category(report, "missing_primary_court")
    assert len(missing) == 1
    assert missing[0].affected_ids == (judge,)


def test_primary_ending_today_is_still_active(store, settings, directory):
    court = directory.court()
    judge = directory.judge()
    directory.assignment(judge, court, start=date(2010, 1, 1), end=TODAY)

    report = _validator(store, settings).run_quick_validation()
    assert _by_category(report, "missing_primary_court") == []


def test_multiple_primaries_keeps_most_recent(store, settings, directory):
    court_a = directory.court(name="North District")
    court_b = directory.court(name="South District")
    judge = directory.judge()
    older = directory.assignment(judge, court_a, start=date(2010, 1, 1), end=date(2030, 1, 1))
    newer = directory.assignment(judge, court_b, start=date(2031, 1, 1))

    # Not overlapping in time, but both count as active primaries today
    report = _validator(store, settings).run_quick_validation()
    multiple = _by_category(report, "multiple_primary_courts")

    assert len(multiple) == 1
    details = multiple[0].sample_details
    assert details.kind == "multiple_primary_courts"
    assert set(details.assignment_ids) == {older, newer}
    assert details.keep_assignment_id == newer
    assert multiple[0].severity == "critical"
    assert multiple[0].suggested_fix_id == "demote_extra_primaries"


# === Temporal overlap ===


def _assignment(assignment_id, start, end=None, court_id=1):
    return CourtAssignment(
        id=assignment_id, judge_id=1, court_id=court_id, start_date=start, end_date=end,
    )


def test_overlap_boundary_is_inclusive():
    touching = [
        _assignment(1, date(2010, 1, 1), date(2015, 6, 30)),
        _assignment(2, date(2015, 6, 30), None),
    ]
    adjacent = [
        _assignment(1, date(2010, 1, 1), date(2015, 6, 30)),
        _assignment(2, date(2015, 7, 1), None),
    ]
    assert len(find_overlaps(touching)) == 1
    assert find_overlaps(adjacent) == []


def test_open_ended_assignment_overlaps_everything_after():
    rows = [
        _assignment(3, date(2018, 1, 1), date(2019, 1, 1)),
        _assignment(1, date(2010, 1, 1)),
        _assignment(2, date(2012, 1, 1), date(2013, 1, 1)),
    ]
    pairs = find_overlaps(rows)
    assert [(p.earlier_assignment_id, p.later_assignment_id) for p in pairs] == [(1, 2), (1, 3)]


def test_assignments_at_different_courts_never_overlap():
    """A visiting seat elsewhere during an open-ended primary is not a conflict."""
    rows = [
        _assignment(1, date(2010, 1, 1), None, court_id=1),
        _assignment(2, date(2020, 1, 1), date(2020, 6, 30), court_id=2),
        _assignment(3, date(2021, 1, 1), date(2021, 3, 31), court_id=1),
    ]
    pairs = find_overlaps(rows)
    assert [(p.earlier_assignment_id, p.later_assignment_id) for p in pairs] == [(1, 3)]


def test_overlap_found_by_quick_and_full(store, settings, directory):
    """A judge with overlapping assignments shows up in both modes; full adds the other rules."""
    court_a = directory.court(name="North District")
    court_b = directory.court(name="South District")
    healthy = directory.seated_judge(name="Ada Lovelace", court_id=court_a)
    judge_x = directory.judge(name="Grace Hopper")
    directory.assignment(judge_x, court_a, start=date(2010, 1, 1))
    directory.assignment(judge_x, court_a, start=date(2016, 1, 1), end=date(2018, 12, 31), kind="visiting")
    directory.assignment(judge_x, court_b, start=date(2017, 1, 1), end=date(2017, 6, 30), kind="temporary")
    directory.case(judge_id=9999)  # orphan
    directory.case(judge_id=healthy, external_id="dup-1")
    directory.case(judge_id=healthy, external_id="dup-1")

    quick = _validator(store, settings).run_quick_validation()
    assert quick.mode == "quick"
    assert quick.total_issues == 1
    overlap = quick.issues[0]
    assert overlap.category == "temporal_overlap"
    assert overlap.severity == "high"
    assert overlap.affected_ids == (judge_x,)
    assert len(overlap.sample_details.overlaps) == 1

    full = _validator(store, settings).run_full_validation()
    categories = {i.category for i in full.issues}
    assert {"temporal_overlap", "orphaned_case", "duplicate_external_id"} <= categories
    assert [i.id for i in _by_category(full, "temporal_overlap")] == [overlap.id]
    print("  PASS: overlap_found_by_quick_and_full")


# === Case threshold ===


def test_case_threshold_bands(store, settings, directory):
    court = directory.court()
    low = directory.seated_judge(name="Low Volume", court_id=court, total_cases=50)
    mid = directory.seated_judge(name="Mid Volume", court_id=court, total_cases=200)
    near = directory.seated_judge(name="Near Floor", court_id=court, total_cases=400)
    directory.seated_judge(name="Busy Judge", court_id=court, total_cases=600)

    report = _validator(store, settings, min_case_threshold=500).run_quick_validation()
    below = _by_category(report, "below_case_threshold")

    bands = {i.sample_details.band: i for i in below}
    assert set(bands) == {"under_100", "under_250", "under_threshold"}
    assert bands["under_100"].severity == "high"
    assert bands["under_100"].affected_ids == (low,)
    assert bands["under_250"].severity == "medium"
    assert bands["under_250"].affected_ids == (mid,)
    assert bands["under_threshold"].severity == "low"
    assert bands["under_threshold"].affected_ids == (near,)
    assert all(not i.auto_fixable for i in below)


# === Orphans ===


def test_orphaned_cases_and_assignments(store, settings, directory):
    court = directory.court()
    judge = directory.seated_judge(court_id=court)
    orphan_case = directory.case(judge_id=4242)
    directory.case(judge_id=judge)
    directory.case(judge_id=None)  # unlinked is not orphaned
    missing_judge = directory.assignment(7777, court)
    missing_court = directory.assignment(judge, 8888, kind="visiting", start=date(2001, 1, 1), end=date(2002, 1, 1))

    report = _validator(store, settings).run_full_validation()

    cases = _by_category(report, "orphaned_case")
    assert len(cases) == 1
    assert cases[0].severity == "high"
    assert cases[0].affected_ids == (orphan_case,)
    assert cases[0].sample_details.references[0].missing_id == 4242

    assignments = _by_category(report, "orphaned_assignment")
    assert len(assignments) == 1
    assert assignments[0].severity == "critical"
    refs = {r.id: (r.column, r.missing_id) for r in assignments[0].sample_details.references}
    assert refs == {missing_judge: ("judge_id", 7777), missing_court: ("court_id", 8888)}


# === Duplicates ===


def test_duplicate_external_ids_per_entity(store, settings, directory):
    court = directory.court()
    first = directory.seated_judge(court_id=court, external_id="cl-1")
    second = directory.seated_judge(name="John Roe", court_id=court, external_id="cl-1")
    directory.case(judge_id=first, external_id="case-9")
    directory.case(judge_id=first, external_id="case-9")
    directory.case(judge_id=first, external_id="")  # blank ids never group

    report = _validator(store, settings).run_full_validation()
    dupes = {i.entity: i for i in _by_category(report, "duplicate_external_id")}

    assert set(dupes) == {"judge", "case"}
    assert dupes["judge"].severity == "critical"
    assert dupes["judge"].affected_ids == (first, second)
    assert dupes["judge"].sample_details.keep_id == first
    assert dupes["case"].severity == "medium"
    assert dupes["case"].suggested_fix_id == "merge_duplicate_records"


# === Case counts, jurisdictions, required fields ===


def test_case_count_mismatch_severity(store, settings, directory):
    court = directory.court()
    far = directory.seated_judge(name="Far Off", court_id=court, total_cases=30)
    directory.case(judge_id=far)
    directory.case(judge_id=far)
    directory.seated_judge(name="Within Tolerance", court_id=court, total_cases=3)

    report = _validator(store, settings).run_full_validation()
    mismatch = _by_category(report, "case_count_mismatch")
    assert len(mismatch) == 1
    assert mismatch[0].severity == "high"
    assert mismatch[0].affected_ids == (far,)
    drift = mismatch[0].sample_details.judges[0]
    assert (drift.recorded, drift.actual) == (30, 2)


def test_small_case_count_drift_is_medium(store, settings, directory):
    judge = directory.seated_judge(total_cases=10)
    report = _validator(store, settings).run_full_validation()
    mismatch = _by_category(report, "case_count_mismatch")
    assert mismatch[0].severity == "medium"
    assert mismatch[0].affected_ids == (judge,)


def test_jurisdiction_mismatch(store, settings, directory):
    ny_court = directory.court(name="Kings County", jurisdiction="NY")
    mismatched = directory.judge(jurisdiction="CA")
    assignment = directory.assignment(mismatched, ny_court)
    blank = directory.judge(name="No Jurisdiction", jurisdiction="")
    directory.assignment(blank, ny_court)
    same = directory.judge(name="Same Place", jurisdiction=" ny ")
    directory.assignment(same, ny_court)

    report = _validator(store, settings).run_full_validation()
    issues = _by_category(report, "jurisdiction_mismatch")
    assert len(issues) == 1
    assert issues[0].affected_ids == (assignment,)
    assert issues[0].severity == "high"


def test_missing_required_fields(store, settings, directory):
    court = directory.court(name="  ")
    nameless = directory.seated_judge(name="", court_id=court)
    placeless = directory.seated_judge(name="Ada Lovelace", court_id=court, jurisdiction=" ")
    untitled = directory.case(judge_id=nameless, case_name="")
    undated = directory.case(judge_id=nameless, decision_date=None)

    report = _validator(store, settings).run_full_validation()
    missing = {
        (i.entity, i.sample_details.field): i
        for i in _by_category(report, "missing_required_field")
    }
    assert set(missing) == {
        ("judge", "name"), ("court", "name"), ("case", "case_name"),
        ("judge", "jurisdiction"), ("case", "decision_date"),
    }
    assert missing[("judge", "name")].affected_ids == (nameless,)
    assert missing[("court", "name")].affected_ids == (court,)
    assert missing[("case", "case_name")].affected_ids == (untitled,)
    assert missing[("case", "case_name")].severity == "high"
    assert missing[("judge", "jurisdiction")].affected_ids == (placeless,)
    assert missing[("judge", "jurisdiction")].severity == "medium"
    assert missing[("case", "decision_date")].affected_ids == (undated,)
    assert missing[("case", "decision_date")].severity == "medium"
    assert all(not i.auto_fixable for i in missing.values())
    assert len({i.id for i in missing.values()}) == 5


def test_duplicate_docket_numbers(store, settings, directory):
    judge = directory.seated_judge()
    first = directory.case(judge_id=judge, docket_number="2:24-cv-0001")
    second = directory.case(judge_id=judge, docket_number="2:24-cv-0001")
    directory.case(judge_id=judge, docket_number="2:24-cv-0002")
    directory.case(judge_id=judge, docket_number="")
    directory.case(judge_id=judge, docket_number="  ")

    report = _validator(store, settings).run_full_validation()
    dockets = _by_category(report, "duplicate_docket_number")
    assert len(dockets) == 1
    assert dockets[0].severity == "medium"
    assert dockets[0].affected_ids == (first, second)
    assert dockets[0].sample_details.docket_number == "2:24-cv-0001"
    assert dockets[0].auto_fixable is False


def test_case_judge_and_court_jurisdictions(store, settings, directory):
    ca_court = directory.court(name="Los Angeles Superior Court", jurisdiction="CA")
    ny_court = directory.court(name="Kings County", jurisdiction="NY")
    judge = directory.seated_judge(court_id=ca_court, jurisdiction="ca")
    elsewhere = directory.case(judge_id=judge, court_id=ny_court)
    directory.case(judge_id=judge, court_id=ca_court)
    directory.case(judge_id=judge, court_id=None)
    blank_court = directory.court(name="Unplaced Court", jurisdiction="")
    directory.case(judge_id=judge, court_id=blank_court)

    report = _validator(store, settings).run_full_validation()
    issues = _by_category(report, "case_jurisdiction_mismatch")
    assert len(issues) == 1
    assert issues[0].severity == "medium"
    assert issues[0].affected_ids == (elsewhere,)
    pair = issues[0].sample_details.mismatches[0]
    assert (pair.judge_id, pair.court_id) == (judge, ny_court)
    assert (pair.judge_jurisdiction, pair.court_jurisdiction) == ("ca", "NY")


# === Names and outcomes ===


def test_judge_names_split_fixable_and_manual(store, settings, directory):
    court = directory.court()
    titled = directory.seated_judge(name="Hon. JOHN SMITH", court_id=court)
    digits = directory.seated_judge(name="J0hn Smith", court_id=court)
    directory.seated_judge(name="Mary O'Neil", court_id=court)

    report = _validator(store, settings).run_full_validation()
    names = _by_category(report, "nonstandard_judge_name")
    assert len(names) == 2

    fixable = next(i for i in names if i.auto_fixable)
    manual = next(i for i in names if not i.auto_fixable)
    assert fixable.affected_ids == (titled,)
    assert fixable.sample_details.names[0].suggested == "John Smith"
    assert fixable.suggested_fix_id == "standardize_judge_names"
    assert manual.affected_ids == (digits,)
    assert "invalid_characters" in manual.sample_details.names[0].problems
    assert fixable.id != manual.id


def test_nonstandard_outcomes(store, settings, directory):
    judge = directory.seated_judge()
    cased = directory.case(judge_id=judge, outcome="Settled")
    synonym = directory.case(judge_id=judge, outcome="Dismissed with prejudice")
    unknown = directory.case(judge_id=judge, outcome="mistrial")
    directory.case(judge_id=judge, outcome="affirmed")
    directory.case(judge_id=judge, outcome=None)

    report = _validator(store, settings).run_full_validation()
    outcomes = _by_category(report, "nonstandard_outcome")
    assert len(outcomes) == 1
    assert outcomes[0].severity == "low"
    assert outcomes[0].affected_ids == (cased, synonym, unknown)
    suggested = {f.case_id: f.suggested for f in outcomes[0].sample_details.outcomes}
    assert suggested == {cased: "settled", synonym: "dismissed", unknown: "other"}


# === Idempotence and failure isolation ===


def test_rerun_without_writes_is_identical(store, settings, directory):
    court = directory.court()
    directory.judge()
    judge = directory.seated_judge(name="Hon. Jane Doe", court_id=court, total_cases=40)
    directory.assignment(judge, court, start=date(2016, 1, 1), kind="visiting")
    directory.case(judge_id=31337, outcome="granted in part")

    validator = _validator(store, settings)
    first = validator.run_full_validation()
    second = validator.run_full_validation()

    assert [i.model_dump() for i in first.issues] == [i.model_dump() for i in second.issues]
    assert first.counts_by_severity == second.counts_by_severity
    assert first.counts_by_category == second.counts_by_category
    assert first.report_id != second.report_id


def test_failing_query_becomes_skipped_rule(store, settings, directory):
    directory.case(judge_id=5150)
    directory.judge()
    boom = OperationalError("SELECT cases", {}, Exception("no such table: cases"))

    with patch.object(store, "orphaned_cases", side_effect=boom):
        report = _validator(store, settings).run_full_validation()

    assert [s.name for s in report.skipped_rules] == ["orphan_detection"]
    assert report.skipped_rules[0].error.startswith("query failed")
    assert _by_category(report, "orphaned_case") == []
    # Other rules still ran
    assert len(_by_category(report, "missing_primary_court")) == 1
    assert any("could not run" in r for r in report.recommendations)
    print("  PASS: failing_query_becomes_skipped_rule")


def test_run_rule_catches_plain_exceptions(store, settings):
    def broken(store, settings, today):
        raise RuntimeError("bad data")

    outcome = run_rule("broken", broken, store, settings, TODAY)
    assert outcome.ok is False
    assert outcome.error == "bad data"
    assert outcome.issues == []


def test_text_rendering_groups_by_severity(store, settings, directory):
    directory.judge()
    directory.case(judge_id=None, outcome="Granted")
    report = _validator(store, settings).run_full_validation()
    text = render_report_text(report)

    assert "DATA QUALITY VALIDATION REPORT" in text
    assert "CRITICAL ISSUES" in text
    assert "LOW ISSUES" in text
    assert text.index("CRITICAL ISSUES") < text.index("LOW ISSUES")
    assert "Auto-fixable: No" in text
