"""Data models shared by the scanning, selection and rewrite stages.

A WorkflowFile is read once per command. Everything derived from it
(RunsOnEntry line numbers in particular) refers to that snapshot of the
content; once the file is rewritten the entries are stale and have to be
extracted again.
"""

from __future__ import annotations

import datetime as dt
import enum
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import NamedTuple

from .utils import split_lines


class RunsOnShape(enum.Enum):
    """Syntactic shape of a `runs-on:` value."""

    SCALAR = "scalar"
    INLINE_ARRAY = "inline-array"
    EXPRESSION = "expression"


class Classification(enum.Enum):
    """Static category of a `runs-on` value."""

    GITHUB_HOSTED = "github-hosted"
    SELF_HOSTED = "self-hosted"
    DYNAMIC_EXPRESSION = "dynamic-expression"
    UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True)
class WorkflowFile:
    """A workflow file as read from disk."""

    path: Path
    content: str
    modified_at: dt.datetime

    @classmethod
    def read(cls, path: Path) -> WorkflowFile:
        # surrogateescape keeps undecodable bytes intact through a rewrite
        content = path.read_bytes().decode("utf-8", errors="surrogateescape")
        modified_at = dt.datetime.fromtimestamp(path.stat().st_mtime, tz=dt.UTC)
        return cls(path=path, content=content, modified_at=modified_at)

    @property
    def lines(self) -> list[str]:
        """Lines of the content, each with its original line ending."""
        return split_lines(self.content)

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class RunsOnEntry:
    """One `runs-on:` declaration found in a workflow file."""

    workflow: WorkflowFile = field(repr=False, compare=False)
    line_number: int  # 1-based
    line: str  # the full physical line, without its line ending
    indentation: str
    raw_value: str  # everything after `runs-on:`, minus any trailing comment
    value: str  # classification basis: unquoted, first element for arrays
    shape: RunsOnShape
    comment: str = ""  # trailing comment including its leading whitespace


class ClassifiedEntry(NamedTuple):
    """A runs-on entry together with its classification."""

    entry: RunsOnEntry
    classification: Classification


@dataclass
class WorkflowClassification:
    """All classified runs-on entries of one workflow file."""

    workflow: WorkflowFile
    entries: list[ClassifiedEntry] = field(default_factory=list)

    @property
    def classification(self) -> Classification:
        """File-level classification derived from the entries.

        GitHub-hosted wins over self-hosted, which wins over custom labels.
        Only a file whose every entry is an expression is dynamic. A file
        without any runs-on is unrecognized.
        """
        found = {item.classification for item in self.entries}
        for candidate in (Classification.GITHUB_HOSTED, Classification.SELF_HOSTED, Classification.UNRECOGNIZED):
            if candidate in found:
                return candidate
        if found:
            return Classification.DYNAMIC_EXPRESSION
        return Classification.UNRECOGNIZED

    def entries_with(self, classification: Classification) -> list[RunsOnEntry]:
        return [item.entry for item in self.entries if item.classification is classification]

    @property
    def runs_on_summary(self) -> str:
        """The first runs-on value as written, for display."""
        if not self.entries:
            return "unknown"
        return self.entries[0].entry.raw_value or "unknown"


@dataclass(frozen=True)
class CostEstimate:
    """Rough monthly savings estimate; not a billing computation."""

    github_hosted_count: int
    estimated_minutes: int
    monthly_savings_usd: int
    per_minute_rate_usd: Decimal


@dataclass(frozen=True)
class BackupRecord:
    """Snapshot of a workflow file taken before it is modified."""

    source_path: Path
    content: bytes
    created_at: dt.datetime
    backup_path: Path


@dataclass(frozen=True)
class RewriteOutcome:
    """The planned or applied replacement of one runs-on line."""

    entry: RunsOnEntry
    old_line: str
    new_line: str
    requires_manual_review: bool = False


@dataclass
class MigrationResult:
    """Result of migrating a single workflow file."""

    workflow_path: Path
    attempted: bool = False
    succeeded: bool = False
    backup: BackupRecord | None = None
    error: str | None = None
    outcomes: list[RewriteOutcome] = field(default_factory=list)

    @property
    def requires_manual_review(self) -> bool:
        return any(outcome.requires_manual_review for outcome in self.outcomes)


@dataclass
class ScanReport:
    """Read-only classification report for a repository."""

    repo_path: Path
    workflows_dir: Path
    workflows: list[WorkflowClassification]
    cost: CostEstimate
    # files that could not be read; each is a failed, attempted result
    unreadable: list[MigrationResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.workflows) + len(self.unreadable)

    def count(self, classification: Classification) -> int:
        return sum(1 for workflow in self.workflows if workflow.classification is classification)

    def with_classification(self, classification: Classification) -> list[WorkflowClassification]:
        return [workflow for workflow in self.workflows if workflow.classification is classification]


@dataclass
class MigrationReport:
    """Aggregated outcome of a migrate or update run."""

    repo_path: Path
    workflows_dir: Path
    total: int
    selected: int
    cost: CostEstimate
    results: list[MigrationResult] = field(default_factory=list)
    dry_run: bool = False
    cancelled: bool = False
    backup_root: Path | None = None

    @property
    def succeeded(self) -> int:
        return sum(1 for result in self.results if result.succeeded)

    @property
    def failed(self) -> int:
        return sum(1 for result in self.results if result.attempted and not result.succeeded)

    @property
    def success(self) -> bool:
        return self.failed == 0

    @property
    def backups(self) -> list[BackupRecord]:
        return [result.backup for result in self.results if result.backup is not None]
