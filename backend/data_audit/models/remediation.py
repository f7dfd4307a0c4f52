"""Remediation run history.

Includes: RemediationRun (SQL table), one row per live engine execution.
"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from sqlmodel import JSON, Column, SQLModel
from sqlmodel import Field as SQLField


class RemediationRun(SQLModel, table=True):
    """A single remediation execution against the store."""

    __tablename__ = "remediation_runs"

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True)
    plan_id: str = ""
    operator: str = ""
    dry_run: bool = False
    total_issues: int = 0
    attempted: int = 0
    successful: int = 0
    failed: int = 0
    skipped: int = 0
    duration_ms: int = 0
    results: list = SQLField(default_factory=list, sa_column=Column(JSON))
    started_at: datetime = SQLField(default_factory=lambda: datetime.now(timezone.utc))
