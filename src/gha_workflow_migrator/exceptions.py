"""
Custom exception classes for the workflow runner migration tool.
"""

from __future__ import annotations

from pathlib import Path


class MigrationError(Exception):
    """Base exception for migration errors."""


class NoWorkflowsDirectoryError(MigrationError):
    """Raised when no .github/workflows directory can be found for a path."""

    def __init__(self, searched_path: Path) -> None:
        self.searched_path: Path = searched_path
        super().__init__(f"No .github/workflows directory found (searched in: {searched_path})")


class BackupWriteError(MigrationError):
    """Raised when a backup file cannot be created or written."""


class RewriteError(MigrationError):
    """Raised when a workflow file cannot be rewritten."""


class InvalidSelectionIndexError(MigrationError):
    """Raised when an operator toggles a workflow number that does not exist."""
