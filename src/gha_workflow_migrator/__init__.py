"""
GitHub Actions Workflow Runner Migrator

Scans a repository's GitHub Actions workflows, classifies the runner each
job targets and rewrites GitHub-hosted `runs-on` labels to a self-hosted
label, with timestamped backups and atomic per-file writes.
"""

from __future__ import annotations

from .backup import BackupManager
from .classifier import classify, classify_workflow
from .cli import main
from .cost import estimate
from .exceptions import (
    BackupWriteError,
    InvalidSelectionIndexError,
    MigrationError,
    NoWorkflowsDirectoryError,
    RewriteError,
)
from .models import Classification, RunsOnShape
from .orchestrator import Command, WorkflowMigrator
from .selection import SelectionController, SelectionSet
from .utils import setup_logging

# Package version
__version__ = "0.1.0"

__all__ = [
    "BackupManager",
    "BackupWriteError",
    "Classification",
    "Command",
    "InvalidSelectionIndexError",
    "MigrationError",
    "NoWorkflowsDirectoryError",
    "RewriteError",
    "RunsOnShape",
    "SelectionController",
    "SelectionSet",
    "WorkflowMigrator",
    "classify",
    "classify_workflow",
    "estimate",
    "main",
    "setup_logging",
]
