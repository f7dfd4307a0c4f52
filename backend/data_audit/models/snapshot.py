"""Persisted data-quality snapshots."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlmodel import JSON, Column, SQLModel
from sqlmodel import Field as SQLField


class DataSnapshotRecord(SQLModel, table=True):
    """A DataSnapshot saved on explicit request. Never updated after insert."""

    __tablename__ = "data_snapshots"

    id: str = SQLField(primary_key=True)  # DataSnapshot.snapshot_id
    created_at: datetime = SQLField(default_factory=lambda: datetime.now(timezone.utc))
    health_score: float = 0.0
    data: dict = SQLField(default_factory=dict, sa_column=Column(JSON))
