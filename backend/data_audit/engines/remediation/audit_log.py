"""Append-only remediation audit trail.

The log is a single JSON array on disk; each execution appends one
AuditLogEntry. Existing entries are never rewritten. Writes go through a
temp file + os.replace so a crash cannot truncate the history.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, Field

from data_audit.config import VERSION
from data_audit.engines.remediation.plan_models import RemediationSummary

logger = logging.getLogger(__name__)


class ActionError(BaseModel):
    action_ref: str
    error: str


class AuditLogEntry(BaseModel):
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    version: str = VERSION
    operator: str = ""
    plan_id: str = ""
    dry_run: bool = False
    total_issues: int = 0
    attempted: int = 0
    successful: int = 0
    failed: int = 0
    skipped: int = 0
    duration_ms: int = 0
    errors: list[ActionError] = Field(default_factory=list)


class AuditLog:
    """JSON-array audit log at a fixed path."""

    def __init__(self, path: str | Path, operator: str = "") -> None:
        self.path = Path(path)
        self.operator = operator

    def read(self) -> list[dict]:
        """Return all recorded entries (empty if the log does not exist yet)."""
        if not self.path.exists():
            return []
        raw = self.path.read_text(encoding="utf-8").strip()
        if not raw:
            return []
        entries = json.loads(raw)
        if not isinstance(entries, list):
            raise ValueError(f"Audit log {self.path} is not a JSON array")
        return entries

    def append(self, summary: RemediationSummary) -> AuditLogEntry:
        """Record one remediation execution."""
        entry = AuditLogEntry(
            operator=self.operator,
            plan_id=summary.plan_id,
            dry_run=summary.dry_run,
            total_issues=summary.total_issues,
            attempted=summary.attempted,
            successful=summary.successful,
            failed=summary.failed,
            skipped=summary.skipped,
            duration_ms=summary.duration_ms,
            errors=[
                ActionError(action_ref=r.action_ref, error=r.error or "")
                for r in summary.results
                if r.status == "failed"
            ],
        )
        entries = self.read()
        entries.append(entry.model_dump(mode="json"))

        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        tmp_path.write_text(json.dumps(entries, indent=2), encoding="utf-8")
        os.replace(tmp_path, self.path)
        logger.info("Audit log entry written to %s (%d total)", self.path, len(entries))
        return entry
