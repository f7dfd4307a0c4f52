"""Backup Manager — file-level SQLite backup before destructive remediation.

Design:
- create_backup() copies the SQLite DB file (+ WAL/SHM sidecars) into a
  timestamped folder, labelled with the plan being applied
- _rotate() keeps the last N backups (default 5)
- restore() copies a backup back over the active database file
- Non-SQLite stores are the operator's responsibility; from_database_url()
  returns None for them
"""

from __future__ import annotations

import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)


class BackupManager:
    """Manages backups of the SQLite directory store."""

    def __init__(
        self,
        backup_dir: str | Path,
        sqlite_path: str | Path,
        max_backups: int = 5,
    ) -> None:
        self.backup_dir = Path(backup_dir)
        self.sqlite_path = Path(sqlite_path)
        self.max_backups = max_backups
        self.backup_dir.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_database_url(
        cls, database_url: str, backup_dir: str | Path, max_backups: int = 5,
    ) -> BackupManager | None:
        """Build a manager for a file-backed SQLite URL, else None."""
        if not database_url.startswith("sqlite:///") or database_url == "sqlite:///:memory:":
            return None
        return cls(
            backup_dir=backup_dir,
            sqlite_path=database_url.replace("sqlite:///", ""),
            max_backups=max_backups,
        )

    def create_backup(self, label: str = "") -> Path:
        """Create a timestamped backup. Returns the backup directory."""
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S_%f")
        name = f"backup_{timestamp}_{label}" if label else f"backup_{timestamp}"

        backup_path = self.backup_dir / name
        backup_path.mkdir(parents=True, exist_ok=True)

        if self.sqlite_path.exists():
            shutil.copy2(self.sqlite_path, backup_path / self.sqlite_path.name)
            for suffix in ["-wal", "-shm"]:
                sidecar = self.sqlite_path.parent / (self.sqlite_path.name + suffix)
                if sidecar.exists():
                    shutil.copy2(sidecar, backup_path / sidecar.name)
        else:
            logger.warning("SQLite file %s not found; backup %s is empty", self.sqlite_path, name)

        self._rotate()
        logger.info("Backup created at %s", backup_path)
        return backup_path

    def _rotate(self) -> None:
        """Remove oldest backups beyond max_backups limit."""
        backups = self.list_backups()
        if len(backups) > self.max_backups:
            for old_backup in backups[self.max_backups:]:
                shutil.rmtree(old_backup, ignore_errors=True)

    def list_backups(self) -> list[Path]:
        """List all backup directories sorted by name (newest first)."""
        if not self.backup_dir.exists():
            return []
        backups = [
            p for p in self.backup_dir.iterdir()
            if p.is_dir() and p.name.startswith("backup_")
        ]
        backups.sort(key=lambda p: p.name, reverse=True)
        return backups

    def restore(self, backup_path: str | Path) -> bool:
        """Restore the database file from a backup directory.

        Returns True if restore succeeded, False if backup not found.
        """
        backup_path = Path(backup_path)
        db_copy = backup_path / self.sqlite_path.name
        if not db_copy.exists():
            return False

        self.sqlite_path.parent.mkdir(parents=True, exist_ok=True)
        for f in backup_path.iterdir():
            if f.is_file() and f.name.startswith(self.sqlite_path.name):
                shutil.copy2(f, self.sqlite_path.parent / f.name)
        return True
