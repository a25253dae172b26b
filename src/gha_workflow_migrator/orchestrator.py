"""Migration orchestrator that composes discovery, selection, backup and rewrite.

Command Flow
------------
scan / analyze (read-only, idempotent)
    locate -> read -> extract -> classify -> ScanReport (+ cost estimate)

migrate (interactive)
    locate -> read -> extract -> classify
        -> selector(SelectionSet)         operator picks workflows, may cancel
        -> preview + confirm(changes)     operator sees old/new lines, may cancel
        -> per file: backup -> rewrite    -> MigrationReport

update (non-interactive)
    same as migrate's mutation phase, with the selection fixed to every
    GitHub-hosted workflow and no prompts.

With dry_run set, selection is fixed to the GitHub-hosted workflows and the
planned changes are reported without taking backups or writing anything.

Error Handling
--------------
- NoWorkflowsDirectoryError is raised while resolving the repository and
  aborts the command before anything is read or written.
- An unreadable workflow, a BackupWriteError or a RewriteError only
  affects its own file. The file is recorded as failed and the rest of the
  batch continues. Files converted earlier in the batch stay converted.
- Cancelling at the selection or confirmation step has no side effects.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Final

from . import cost
from .classifier import classify_workflow
from .exceptions import BackupWriteError, RewriteError
from .locator import find_workflows_dir, list_workflow_files
from .models import Classification, MigrationReport, MigrationResult, ScanReport, WorkflowFile
from .rewrite import plan, rewrite_file
from .selection import SelectionSet

if TYPE_CHECKING:
    from collections.abc import Callable

    from .backup import BackupManager
    from .models import CostEstimate, RewriteOutcome, WorkflowClassification

logger: logging.Logger = logging.getLogger(__name__)

DEFAULT_RUNNER: Final = "self-hosted"


class Command(enum.Enum):
    """Operator-facing commands."""

    SCAN = "scan"
    ANALYZE = "analyze"
    MIGRATE = "migrate"
    UPDATE = "update"
    RESTORE = "restore"
    BACKUPS = "backups"
    GENERATE = "generate"


@dataclass
class PlannedChange:
    """The rewrites planned for one selected workflow."""

    workflow: WorkflowClassification
    outcomes: list[RewriteOutcome]


type Selector = Callable[[SelectionSet], SelectionSet | None]
type Confirmer = Callable[[list[PlannedChange]], bool]


class WorkflowMigrator:
    """Scans and migrates the workflows of one repository."""

    def __init__(
        self,
        repo_path: str | Path,
        *,
        target_runner: str = DEFAULT_RUNNER,
        backup_manager: BackupManager | None = None,
        dry_run: bool = False,
    ) -> None:
        self.repo_path: Path
        self.workflows_dir: Path
        self.repo_path, self.workflows_dir = find_workflows_dir(repo_path)
        self.target_runner: str = target_runner
        # None means backups are disabled
        self.backup_manager: BackupManager | None = backup_manager
        self.dry_run: bool = dry_run

        logger.info(f"Initialized migrator for {self.repo_path} (target runner: {target_runner})")

    @property
    def repo_name(self) -> str:
        return self.repo_path.name

    def _load(self) -> tuple[list[WorkflowClassification], list[MigrationResult]]:
        """Read and classify every workflow file.

        Returns:
            Tuple of (classified workflows, failed results for unreadable files)
        """
        workflows: list[WorkflowClassification] = []
        unreadable: list[MigrationResult] = []
        for path in list_workflow_files(self.workflows_dir):
            try:
                workflow = WorkflowFile.read(path)
            except OSError as e:
                error = f"Failed to read workflow {path}: {e}"
                logger.error(error)
                unreadable.append(MigrationResult(workflow_path=path, attempted=True, error=error))
                continue
            workflows.append(classify_workflow(workflow))
        return workflows, unreadable

    @staticmethod
    def _estimate(workflows: list[WorkflowClassification]) -> CostEstimate:
        github_hosted = sum(1 for w in workflows if w.classification is Classification.GITHUB_HOSTED)
        return cost.estimate(github_hosted)

    def scan(self) -> ScanReport:
        """Classify every workflow of the repository without modifying anything."""
        workflows, unreadable = self._load()
        return ScanReport(
            repo_path=self.repo_path,
            workflows_dir=self.workflows_dir,
            workflows=workflows,
            cost=self._estimate(workflows),
            unreadable=unreadable,
        )

    def analyze(self) -> ScanReport:
        """Same data as scan; the caller renders the per-entry breakdown."""
        report = self.scan()
        logger.info(
            f"Analyzed {report.total} workflow(s): {report.count(Classification.GITHUB_HOSTED)} GitHub-hosted"
        )
        return report

    def preview(self, selection: SelectionSet) -> list[PlannedChange]:
        """Plan the rewrites for the selected workflows without writing."""
        return [
            PlannedChange(workflow=workflow, outcomes=plan(workflow, self.target_runner))
            for workflow in selection.selected_workflows
        ]

    def _report(
        self, workflows: list[WorkflowClassification], unreadable: list[MigrationResult], selected: int
    ) -> MigrationReport:
        return MigrationReport(
            repo_path=self.repo_path,
            workflows_dir=self.workflows_dir,
            total=len(workflows) + len(unreadable),
            selected=selected,
            cost=self._estimate(workflows),
            dry_run=self.dry_run,
            results=list(unreadable),
            backup_root=self.backup_manager.backup_root if self.backup_manager else None,
        )

    def migrate(self, selector: Selector, confirm: Confirmer) -> MigrationReport:
        """Interactively select, preview, confirm and convert workflows."""
        workflows, unreadable = self._load()

        if self.dry_run:
            selection = SelectionSet.github_hosted_only(workflows)
            logger.info(f"Selected {len(selection.selected_workflows)} GitHub-hosted workflow(s) for dry run")
        else:
            initial = SelectionSet.from_classifications(workflows)
            if not len(initial):
                logger.info("No workflows with a static runs-on found to migrate")
                return self._report(workflows, unreadable, selected=0)
            chosen = selector(initial)
            if chosen is None:
                logger.info("Migration cancelled during selection")
                report = self._report(workflows, unreadable, selected=0)
                report.cancelled = True
                return report
            selection = chosen

        changes = self.preview(selection)
        report = self._report(workflows, unreadable, selected=len(changes))

        if not changes:
            logger.info("No workflows selected for migration")
            return report

        if not self.dry_run and not confirm(changes):
            logger.info("Migration cancelled at confirmation")
            report.cancelled = True
            return report

        report.results.extend(self._apply(changes))
        return report

    def update(self) -> MigrationReport:
        """Convert every GitHub-hosted workflow without prompting."""
        workflows, unreadable = self._load()
        changes = self.preview(SelectionSet.github_hosted_only(workflows))
        report = self._report(workflows, unreadable, selected=len(changes))
        report.results.extend(self._apply(changes))
        return report

    def _apply(self, changes: list[PlannedChange]) -> list[MigrationResult]:
        if changes and not self.dry_run and self.backup_manager is None:
            logger.warning("Backups are disabled; converted workflows cannot be restored by this tool")

        results: list[MigrationResult] = []
        for change in changes:
            workflow = change.workflow.workflow
            result = MigrationResult(workflow_path=workflow.path, outcomes=change.outcomes)
            results.append(result)

            if not change.outcomes:
                logger.info(f"Skipping {workflow.name}: no GitHub-hosted runs-on to convert")
                continue
            if self.dry_run:
                logger.info(f"[DRY RUN] Would convert {workflow.name}")
                continue

            result.attempted = True
            logger.info(f"Processing {workflow.name}...")

            if self.backup_manager is not None:
                try:
                    result.backup = self.backup_manager.backup(workflow.path, self.repo_name)
                except BackupWriteError as e:
                    result.error = str(e)
                    logger.error(f"Skipping {workflow.name}, backup failed: {e}")
                    continue

            try:
                _ = rewrite_file(workflow, change.outcomes)
            except RewriteError as e:
                result.error = str(e)
                logger.error(f"Failed to convert {workflow.name}: {e}")
                continue

            result.succeeded = True

        return results
