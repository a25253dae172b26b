"""Timestamped backups of workflow files taken before they are rewritten.

Backups are written append-only under a backup root:

    <backup-root>/<repo>_<workflow>_<YYYYMMDD_HHMMSS>.yml.backup

An existing backup is never overwritten; if two backups of the same file
land in the same second the later one gets a numeric suffix. The engine
never deletes backups, retention is left to the operator.
"""

from __future__ import annotations

import datetime as dt
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Final

from .exceptions import BackupWriteError, MigrationError
from .models import BackupRecord
from .utils import atomic_write_bytes

if TYPE_CHECKING:
    from .protocols import Clock

logger: logging.Logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT: Final = "%Y%m%d_%H%M%S"
BACKUP_SUFFIX: Final = ".yml.backup"
_MAX_NAME_ATTEMPTS: Final = 100


class BackupManager:
    """Creates and restores workflow backups under a backup root."""

    def __init__(self, backup_root: Path, clock: Clock = dt.datetime.now) -> None:
        self.backup_root: Path = backup_root
        self.clock: Clock = clock

    def backup_name(self, repo_name: str, workflow_path: Path, created_at: dt.datetime, attempt: int = 0) -> str:
        stem = f"{repo_name}_{workflow_path.stem}_{created_at.strftime(TIMESTAMP_FORMAT)}"
        if attempt:
            stem = f"{stem}_{attempt}"
        return f"{stem}{BACKUP_SUFFIX}"

    def backup(self, workflow_path: Path, repo_name: str) -> BackupRecord:
        """Snapshot the current bytes of a workflow file.

        Raises:
            BackupWriteError: If the source cannot be read or the backup cannot be written
        """
        created_at = self.clock()
        try:
            content = workflow_path.read_bytes()
            self.backup_root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            msg = f"Failed to prepare backup of {workflow_path} in {self.backup_root}: {e}"
            raise BackupWriteError(msg) from e

        for attempt in range(_MAX_NAME_ATTEMPTS):
            backup_path = self.backup_root / self.backup_name(repo_name, workflow_path, created_at, attempt)
            try:
                with backup_path.open("xb") as fh:
                    _ = fh.write(content)
            except FileExistsError:
                continue
            except OSError as e:
                backup_path.unlink(missing_ok=True)
                msg = f"Failed to write backup {backup_path}: {e}"
                raise BackupWriteError(msg) from e

            logger.debug(f"Created backup: {backup_path}")
            return BackupRecord(
                source_path=workflow_path,
                content=content,
                created_at=created_at,
                backup_path=backup_path,
            )

        msg = f"Could not find a free backup file name for {workflow_path} in {self.backup_root}"
        raise BackupWriteError(msg)

    def restore(self, record: BackupRecord) -> None:
        """Overwrite the original workflow file with the backed-up content."""
        try:
            atomic_write_bytes(record.source_path, record.content)
        except OSError as e:
            msg = f"Failed to restore {record.source_path} from {record.backup_path}: {e}"
            raise MigrationError(msg) from e
        logger.info(f"Restored {record.source_path} from {record.backup_path}")

    def load(self, backup_path: Path, target_path: Path) -> BackupRecord:
        """Rebuild a record from a backup file on disk, for a manual restore."""
        try:
            content = backup_path.read_bytes()
            created_at = dt.datetime.fromtimestamp(backup_path.stat().st_mtime)
        except OSError as e:
            msg = f"Cannot read backup file {backup_path}: {e}"
            raise MigrationError(msg) from e
        return BackupRecord(source_path=target_path, content=content, created_at=created_at, backup_path=backup_path)

    def list_backups(self, repo_name: str | None = None) -> list[Path]:
        """List stored backups, optionally only those of one repository."""
        if not self.backup_root.is_dir():
            return []
        pattern = f"{repo_name}_*{BACKUP_SUFFIX}" if repo_name else f"*{BACKUP_SUFFIX}"
        return sorted(self.backup_root.glob(pattern))
