"""Tests for SnapshotGenerator and the health score."""

import os
import sys
from datetime import date
from unittest.mock import patch

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

import pytest
from sqlalchemy.exc import OperationalError

from data_audit.engines.snapshot.generator import (
    SnapshotGenerator,
    compute_health_score,
    render_snapshot_text,
)

TODAY = date(2026, 3, 1)


def _generator(store, settings):
    return SnapshotGenerator(store, settings, today=TODAY)


# === Health score ===


def test_perfect_store_scores_100():
    assert compute_health_score(1.0, 1.0, 0, 0, 0) == 100.0


def test_score_is_clamped():
    assert compute_health_score(0.0, 0.0, 10_000, 10_000, 10_000) == 0.0
    assert 0.0 <= compute_health_score(1.0, 1.0, 0, 0, 3) <= 100.0


@pytest.mark.parametrize("field", ["temporal_overlaps", "duplicate_external_ids", "orphaned_records"])
def test_score_never_rises_with_more_problems(field):
    scores = []
    for count in (0, 1, 2, 5, 50, 500):
        kwargs = {"temporal_overlaps": 0, "duplicate_external_ids": 0, "orphaned_records": 0}
        kwargs[field] = count
        scores.append(compute_health_score(0.8, 0.9, **kwargs))
    assert scores == sorted(scores, reverse=True)


def test_score_rises_with_ratios():
    assert compute_health_score(0.9, 0.5, 1, 1, 1) > compute_health_score(0.5, 0.5, 1, 1, 1)
    assert compute_health_score(0.5, 0.9, 1, 1, 1) > compute_health_score(0.5, 0.5, 1, 1, 1)


# === Generation ===


def test_empty_store_snapshot(store, settings):
    snapshot = _generator(store, settings).generate()
    assert snapshot.judges.total == 0
    assert snapshot.judges.primary_court_ratio == 1.0
    assert snapshot.cases.linked_ratio == 1.0
    assert snapshot.health_score == 100.0
    assert snapshot.skipped_checks == []


def test_snapshot_counts(store, settings, directory):
    court = directory.court()
    directory.court(name="Empty Court")
    seated = directory.seated_judge(court_id=court, total_cases=2)
    directory.assignment(seated, court, start=date(2016, 1, 1), end=date(2018, 12, 31), kind="visiting")
    directory.judge(name="Unseated Judge")
    directory.case(judge_id=seated)
    directory.case(judge_id=seated)
    directory.case(judge_id=777)
    directory.case(judge_id=None)

    snapshot = _generator(store, settings).generate()

    judges = snapshot.judges
    assert (judges.total, judges.with_primary_court, judges.without_primary_court) == (2, 1, 1)
    assert judges.with_cases == 1
    assert judges.primary_court_ratio == 0.5
    assert judges.avg_cases_per_judge == 1.0

    assert (snapshot.courts.total, snapshot.courts.with_judges, snapshot.courts.without_judges) == (2, 1, 1)

    cases = snapshot.cases
    assert (cases.total, cases.linked_to_judge, cases.orphaned, cases.unlinked) == (4, 2, 1, 1)
    assert cases.linked_ratio == 0.5

    assignments = snapshot.assignments
    assert (assignments.total, assignments.active, assignments.ended) == (2, 1, 1)
    assert (assignments.primary, assignments.visiting) == (1, 1)
    assert assignments.overlapping == 1

    quality = snapshot.quality_metrics
    assert quality.orphaned_records == 1
    assert quality.temporal_overlaps == 1
    assert quality.duplicate_external_ids == 0

    assert snapshot.health_score == 59.5
    print("  PASS: snapshot_counts")


def test_generate_never_writes(store, settings, directory):
    directory.seated_judge()
    _generator(store, settings).generate()
    assert store.list_snapshots() == []


def test_failed_query_is_skipped_not_fatal(store, settings, directory):
    directory.seated_judge()
    boom = OperationalError("SELECT", {}, Exception("disk I/O error"))

    with patch.object(store, "orphaned_cases", side_effect=boom):
        snapshot = _generator(store, settings).generate()

    assert snapshot.skipped_checks == ["cases.orphaned"]
    assert snapshot.cases.orphaned == 0
    assert snapshot.judges.total == 1
    assert "Skipped checks: cases.orphaned" in render_snapshot_text(snapshot)


def test_distributions_and_quality_counts(store, settings, directory):
    ca_state = directory.court(name="Los Angeles Superior Court", jurisdiction="CA", court_type="state")
    ny_federal = directory.court(name="Eastern District", jurisdiction="NY", court_type=" Federal ")
    directory.court(name="Unplaced Court", jurisdiction=" ", court_type="")
    seated = directory.seated_judge(name="Ada Lovelace", court_id=ca_state)
    directory.seated_judge(name="Grace Hopper", court_id=ca_state, jurisdiction="NY")
    directory.seated_judge(name="Hon. Jane Doe", court_id=ny_federal, jurisdiction=" NY ")
    directory.judge(name="", jurisdiction="")
    directory.case(judge_id=seated, decision_date=date(2025, 12, 1))
    directory.case(judge_id=seated, outcome=" Dismissed ")
    directory.case(judge_id=seated, outcome="mistrial", decision_date=date(2020, 1, 1))
    directory.case(judge_id=seated, outcome=None, decision_date=None)

    snapshot = _generator(store, settings).generate()

    assert snapshot.judges.by_jurisdiction == {"CA": 1, "NY": 2, "unknown": 1}
    courts = snapshot.courts
    assert courts.by_jurisdiction == {"CA": 1, "NY": 1, "unknown": 1}
    assert courts.by_type == {"state": 1, "federal": 1, "unknown": 1}
    assert courts.avg_judges_per_court == 1.5

    cases = snapshot.cases
    assert cases.by_outcome == {"settled": 1, "dismissed": 1, "mistrial": 1}
    assert (cases.with_valid_outcome, cases.with_invalid_outcome) == (2, 1)
    assert (cases.recent_cases, cases.stale_cases) == (1, 1)

    quality = snapshot.quality_metrics
    # Blank judge name, blank judge jurisdiction, one undated case
    assert quality.missing_required_fields == 3
    assert quality.standardization_issues == 1
    assert snapshot.skipped_checks == []

    text = render_snapshot_text(snapshot)
    assert "Missing required fields: 3" in text
    assert "1 recent, 1 stale" in text
    print("  PASS: distributions_and_quality_counts")


def test_failed_distribution_is_skipped(store, settings, directory):
    directory.seated_judge()
    boom = OperationalError("SELECT", {}, Exception("no such column: court_type"))

    with patch.object(store, "count_courts_by_type", side_effect=boom):
        snapshot = _generator(store, settings).generate()

    assert snapshot.skipped_checks == ["courts.by_type"]
    assert snapshot.courts.by_type == {}
    assert snapshot.courts.by_jurisdiction == {"CA": 1}


# === Persistence ===


def test_save_and_load_snapshot(store, settings, directory):
    directory.seated_judge()
    generator = _generator(store, settings)
    snapshot = generator.generate()

    snapshot_id = generator.save_snapshot(snapshot)
    loaded = generator.load_snapshot(snapshot_id)

    assert loaded is not None
    assert loaded.model_dump(mode="json") == snapshot.model_dump(mode="json")
    assert generator.load_snapshot("missing") is None
    assert [s.snapshot_id for s in generator.list_snapshots()] == [snapshot_id]


def test_each_save_adds_a_row(store, settings):
    generator = _generator(store, settings)
    first = generator.save_snapshot(generator.generate())
    second = generator.save_snapshot(generator.generate())

    assert first != second
    assert len(store.list_snapshots()) == 2


def test_text_rendering(store, settings, directory):
    directory.seated_judge()
    text = render_snapshot_text(_generator(store, settings).generate())
    assert "DATA SNAPSHOT" in text
    assert "Health score: 100.0/100" in text
