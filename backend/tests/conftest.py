"""Shared test fixtures for data-audit backend tests."""

import os
import sys
from datetime import date

import pytest

# Ensure backend is on the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from data_audit.config import Settings
from data_audit.db.database import create_db_and_tables
from data_audit.db.store import AuditStore
from data_audit.models.directory import Case, Court, CourtAssignment, Judge


class DirectoryBuilder:
    """Inserts directory rows one at a time and returns their ids."""

    def __init__(self, engine) -> None:
        self.engine = engine

    def _add(self, row) -> int:
        with Session(self.engine) as session:
            session.add(row)
            session.commit()
            session.refresh(row)
            return row.id

    def judge(
        self,
        name: str = "Jane Doe",
        jurisdiction: str = "CA",
        total_cases: int = 0,
        external_id: str | None = None,
    ) -> int:
        return self._add(Judge(
            name=name, jurisdiction=jurisdiction, total_cases=total_cases, external_id=external_id,
        ))

    def court(
        self,
        name: str = "Superior Court",
        jurisdiction: str = "CA",
        external_id: str | None = None,
        court_type: str = "state",
    ) -> int:
        return self._add(Court(
            name=name, jurisdiction=jurisdiction, external_id=external_id, court_type=court_type,
        ))

    def case(
        self,
        judge_id: int | None = None,
        court_id: int | None = None,
        outcome: str | None = "settled",
        external_id: str | None = None,
        docket_number: str = "",
        decision_date: date | None = date(2024, 6, 1),
        case_name: str = "Doe v. Roe",
    ) -> int:
        return self._add(Case(
            case_name=case_name, judge_id=judge_id, court_id=court_id, outcome=outcome,
            external_id=external_id, docket_number=docket_number, decision_date=decision_date,
        ))

    def assignment(
        self,
        judge_id: int,
        court_id: int,
        start: date = date(2015, 1, 1),
        end: date | None = None,
        kind: str = "primary",
    ) -> int:
        return self._add(CourtAssignment(
            judge_id=judge_id, court_id=court_id, assignment_type=kind,
            start_date=start, end_date=end,
        ))

    def seated_judge(self, name: str = "Jane Doe", court_id: int | None = None, **kwargs) -> int:
        """A judge with one open-ended primary assignment."""
        if court_id is None:
            court_id = self.court()
        judge_id = self.judge(name=name, **kwargs)
        self.assignment(judge_id, court_id)
        return judge_id

    def get(self, model, row_id: int):
        with Session(self.engine) as session:
            return session.get(model, row_id)


def make_memory_engine():
    """In-memory SQLite; StaticPool keeps one connection so every session sees the same data."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_db_and_tables(engine)
    return engine


@pytest.fixture
def engine():
    eng = make_memory_engine()
    yield eng
    eng.dispose()


@pytest.fixture
def store(engine) -> AuditStore:
    return AuditStore(engine)


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings with the case floor disabled so fixtures only trip the rules under test."""
    return Settings(
        database_url="sqlite:///:memory:",
        min_case_threshold=0,
        case_count_tolerance=5,
        sample_limit=10,
        audit_log_path=str(tmp_path / "remediation-audit.json"),
        operator="pytest",
        _env_file=None,
    )


@pytest.fixture
def directory(engine) -> DirectoryBuilder:
    return DirectoryBuilder(engine)


@pytest.fixture
def make_directory():
    """Factory for builders over engines the test creates itself."""
    return DirectoryBuilder
