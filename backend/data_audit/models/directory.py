"""Legal directory models — judges, courts, cases, court assignments.

Includes: Judge, Court, Case, CourtAssignment (SQL tables).

References (cases.judge_id, judge_court_assignments.judge_id/court_id) are
plain integer columns without FK constraints: upstream ingestion can leave
dangling references, and orphan detection exists to find them.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Literal

from sqlmodel import Field as SQLField
from sqlmodel import SQLModel

AssignmentType = Literal["primary", "visiting", "temporary", "retired"]


class Judge(SQLModel, table=True):
    """A judge in the directory."""

    __tablename__ = "judges"

    id: int | None = SQLField(default=None, primary_key=True)
    name: str = ""
    jurisdiction: str = ""
    external_id: str | None = SQLField(default=None, index=True)  # CourtListener person id
    total_cases: int = 0  # Denormalized counter
    updated_at: datetime = SQLField(default_factory=lambda: datetime.now(timezone.utc))


class Court(SQLModel, table=True):
    """A court in the directory."""

    __tablename__ = "courts"

    id: int | None = SQLField(default=None, primary_key=True)
    name: str = ""
    jurisdiction: str = ""
    court_type: str = ""  # "federal" | "state" | "appellate" | ...
    external_id: str | None = SQLField(default=None, index=True)


class Case(SQLModel, table=True):
    """A decided or pending case."""

    __tablename__ = "cases"

    id: int | None = SQLField(default=None, primary_key=True)
    case_name: str = ""
    docket_number: str = ""
    judge_id: int | None = SQLField(default=None, index=True)
    court_id: int | None = SQLField(default=None, index=True)
    outcome: str | None = None
    decision_date: date | None = None
    external_id: str | None = SQLField(default=None, index=True)


class CourtAssignment(SQLModel, table=True):
    """A judge's seat on a court over a date range."""

    __tablename__ = "judge_court_assignments"

    id: int | None = SQLField(default=None, primary_key=True)
    judge_id: int = SQLField(index=True)
    court_id: int = SQLField(index=True)
    assignment_type: str = "primary"  # AssignmentType
    start_date: date
    end_date: date | None = None  # None = open-ended (currently seated)
