"""
Command-line interface for the workflow runner migration tool.
"""

from __future__ import annotations

import argparse
import datetime as dt
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, assert_never

from .backup import BackupManager
from .exceptions import MigrationError, NoWorkflowsDirectoryError
from .models import Classification, RunsOnShape
from .orchestrator import DEFAULT_RUNNER, Command, WorkflowMigrator
from .protocols import ConsoleTerminal
from .selection import SelectionController
from .templates import LANGUAGES, WORKFLOW_TYPES, render_workflow, write_workflow
from .utils import resolve_backup_root, resolve_log_file, setup_logging

if TYPE_CHECKING:
    from .models import MigrationReport, ScanReport
    from .protocols import Terminal
    from .orchestrator import PlannedChange

logger: logging.Logger = logging.getLogger(__name__)

_LABELS: dict[Classification, str] = {
    Classification.GITHUB_HOSTED: "GitHub-hosted (migratable)",
    Classification.SELF_HOSTED: "Self-hosted (already migrated)",
    Classification.DYNAMIC_EXPRESSION: "Dynamic expression (left alone)",
    Classification.UNRECOGNIZED: "Custom/Unknown (left alone)",
}

_COST_DISCLAIMER = "rough estimate, not a billing figure"


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Migrate GitHub Actions workflows from GitHub-hosted to self-hosted runners"
    )
    _ = parser.add_argument(
        "--verbose", "-v", action="count", default=0, help="Increase verbosity (-v for INFO, -vv for DEBUG)"
    )
    _ = parser.add_argument(
        "--backup-dir", help="Backup root directory (default: $GHA_MIGRATOR_BACKUP_DIR or ~/.github-runner-backups)"
    )

    subparsers = parser.add_subparsers(dest="command", required=True, metavar="command")

    scan = subparsers.add_parser(Command.SCAN.value, help="Scan for workflows that can be migrated")
    _ = scan.add_argument("path", nargs="?", default=".", help="Repository path (default: current directory)")

    analyze = subparsers.add_parser(Command.ANALYZE.value, help="Analyze current workflow runner usage")
    _ = analyze.add_argument("path", help="Repository path")

    migrate = subparsers.add_parser(Command.MIGRATE.value, help="Interactively migrate workflows")
    _ = migrate.add_argument("path", help="Repository path")
    _ = migrate.add_argument("--force", action="store_true", help="Do not ask for confirmation before converting")

    update = subparsers.add_parser(Command.UPDATE.value, help="Convert all GitHub-hosted workflows without prompts")
    _ = update.add_argument("path", help="Repository path")

    for sub in (migrate, update):
        _ = sub.add_argument("--runner", default=DEFAULT_RUNNER, help=f"Target runner label (default: {DEFAULT_RUNNER})")
        _ = sub.add_argument("--dry-run", action="store_true", help="Show what would change without writing")
        _ = sub.add_argument("--no-backup", action="store_true", help="Skip creating backups (discouraged)")

    restore = subparsers.add_parser(Command.RESTORE.value, help="Restore a workflow file from a backup")
    _ = restore.add_argument("backup_file", help="Backup file to restore from")
    _ = restore.add_argument("workflow_file", help="Workflow file to overwrite")

    backups = subparsers.add_parser(Command.BACKUPS.value, help="List stored backups")
    _ = backups.add_argument("--repo", help="Only list backups of this repository name")

    generate = subparsers.add_parser(Command.GENERATE.value, help="Generate a starter workflow for a self-hosted runner")
    _ = generate.add_argument("--type", dest="workflow_type", choices=WORKFLOW_TYPES, default="ci")
    _ = generate.add_argument("--lang", dest="language", choices=LANGUAGES, default="generic")
    _ = generate.add_argument("--name", help="Workflow file name without extension (default: <type>-<lang>)")
    _ = generate.add_argument("--output-dir", default=".github/workflows", help="Output directory")
    _ = generate.add_argument("--runner", default=DEFAULT_RUNNER, help=f"Runner label (default: {DEFAULT_RUNNER})")
    _ = generate.add_argument("--dry-run", action="store_true", help="Print the workflow instead of writing it")
    _ = generate.add_argument("--force", action="store_true", help="Overwrite an existing file")

    return parser.parse_args(argv)


def _print_cost(report: ScanReport | MigrationReport) -> None:
    estimate = report.cost
    print(f"Estimated monthly savings: ~{estimate.monthly_savings_usd} USD")
    print(
        f"   (Based on {estimate.estimated_minutes} minutes/month at "
        f"${estimate.per_minute_rate_usd}/minute; {_COST_DISCLAIMER})"
    )


def _print_unreadable(report: ScanReport) -> None:
    for result in report.unreadable:
        print(f"  {result.workflow_path.name}: UNREADABLE ({result.error})")


def _print_scan_report(report: ScanReport) -> None:
    """Print the summary produced by the scan command."""
    print("Workflow Migration Scan")
    print(f"Scanning: {report.repo_path}")
    print()

    for workflow in report.workflows:
        print(f"  {workflow.workflow.name}: {workflow.classification.value} ({workflow.runs_on_summary})")
    _print_unreadable(report)

    github_hosted = report.with_classification(Classification.GITHUB_HOSTED)
    print()
    print(
        f"Total={report.total} GitHub-hosted={len(github_hosted)} "
        f"Self-hosted={report.count(Classification.SELF_HOSTED)} "
        f"Dynamic={report.count(Classification.DYNAMIC_EXPRESSION)} "
        f"Unrecognized={report.count(Classification.UNRECOGNIZED)}"
        + (f" Unreadable={len(report.unreadable)}" if report.unreadable else "")
    )

    if github_hosted:
        print()
        print("These workflows can be migrated to self-hosted runners:")
        for workflow in github_hosted:
            print(f"  - {workflow.workflow.name}")
        print()
        _print_cost(report)
    else:
        print(f"No GitHub-hosted workflows found among {report.total} workflow(s)")


def _print_analysis_report(report: ScanReport) -> None:
    """Print the per-file and per-entry breakdown produced by the analyze command."""
    print("GitHub Actions Usage Analysis")
    print(f"Analyzing workflows in: {report.repo_path}")
    print()

    for workflow in report.workflows:
        print(f"  {workflow.workflow.name}: {_LABELS[workflow.classification]}")
        if not workflow.entries:
            print("      no static runs-on found")
        for entry, classification in workflow.entries:
            shape = "" if entry.shape is RunsOnShape.SCALAR else f" [{entry.shape.value}]"
            print(f"      line {entry.line_number}: {entry.raw_value or '<empty>'}{shape} -> {classification.value}")
    _print_unreadable(report)

    print()
    print("Summary:")
    print(f"  Total workflows: {report.total}")
    print(f"  GitHub-hosted runners: {report.count(Classification.GITHUB_HOSTED)}")
    print(f"  Self-hosted runners: {report.count(Classification.SELF_HOSTED)}")
    print(f"  Dynamic expressions: {report.count(Classification.DYNAMIC_EXPRESSION)}")
    print(f"  Custom/Unknown: {report.count(Classification.UNRECOGNIZED)}")
    if report.unreadable:
        print(f"  Unreadable: {len(report.unreadable)}")
    print()

    github_hosted = report.count(Classification.GITHUB_HOSTED)
    if github_hosted:
        print("Migration Potential:")
        print(f"  {github_hosted} workflow(s) can be migrated to self-hosted runners")
        _print_cost(report)
    else:
        print("All workflows are already using self-hosted or custom runners!")


def _print_preview(changes: list[PlannedChange]) -> None:
    print("Preview of changes:")
    for change in changes:
        name = change.workflow.workflow.name
        if not change.outcomes:
            print(f"  {name}: nothing to convert (no GitHub-hosted runs-on)")
            continue
        for outcome in change.outcomes:
            print(f"  {name}:{outcome.entry.line_number}")
            print(f"    - {outcome.old_line.strip()}")
            print(f"    + {outcome.new_line.strip()}")
            if outcome.requires_manual_review:
                print("      (array value: review this conversion manually)")
    print()


def _print_migration_report(report: MigrationReport) -> None:
    """Print the closing summary of a migrate or update run."""
    if report.cancelled:
        print("Migration cancelled; no files were changed")
        for result in report.results:
            print(f"  FAILED {result.workflow_path.name}: {result.error}")
        return

    if report.dry_run:
        print("[DRY RUN] No files were changed")
        changed = [result for result in report.results if result.outcomes]
        for result in changed:
            print(f"  Would convert {result.workflow_path.name}")
            for outcome in result.outcomes:
                print(f"    {outcome.entry.line_number}: {outcome.old_line.strip()} -> {outcome.new_line.strip()}")

    attempted = sum(1 for result in report.results if result.attempted)
    print()
    print(
        f"Summary: total={report.total} selected={report.selected} attempted={attempted} "
        f"succeeded={report.succeeded} failed={report.failed}"
    )

    for result in report.results:
        if result.error:
            print(f"  FAILED {result.workflow_path.name}: {result.error}")
        elif result.succeeded and result.requires_manual_review:
            print(f"  REVIEW {result.workflow_path.name}: array runs-on converted, check the TODO marker")

    if report.cost.github_hosted_count:
        _print_cost(report)

    if report.dry_run or not any(result.outcomes for result in report.results if result.attempted):
        return

    if report.backup_root is not None:
        print(f"Backups stored in: {report.backup_root}")
        if report.backups:
            print("To rollback changes, restore from:")
            for record in report.backups:
                print(f"  {record.backup_path}")

    print()
    print("Next Steps:")
    print("1. Review the converted workflows for any manual adjustments")
    print("2. Test the workflows with your self-hosted runner")
    print("3. Commit and push the changes to your repository")


def _confirm_changes(changes: list[PlannedChange], terminal: Terminal, *, force: bool) -> bool:
    _print_preview(changes)
    if force:
        return True
    try:
        answer = terminal.prompt("Proceed with migration? [y/N]: ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def _backup_manager(args: argparse.Namespace) -> BackupManager | None:
    if getattr(args, "no_backup", False):
        return None
    return BackupManager(resolve_backup_root(args.backup_dir))


def _run_migrate(args: argparse.Namespace) -> int:
    migrator = WorkflowMigrator(
        args.path, target_runner=args.runner, backup_manager=_backup_manager(args), dry_run=args.dry_run
    )
    terminal = ConsoleTerminal()
    controller = SelectionController(terminal)
    report = migrator.migrate(controller.run, lambda changes: _confirm_changes(changes, terminal, force=args.force))
    _print_migration_report(report)
    return 0 if report.success else 1


def _run_update(args: argparse.Namespace) -> int:
    migrator = WorkflowMigrator(
        args.path, target_runner=args.runner, backup_manager=_backup_manager(args), dry_run=args.dry_run
    )
    print("Quick Workflow Update")
    print(f"Updating workflows in: {migrator.repo_path}")
    print(f"Target runner: {args.runner}")
    report = migrator.update()
    if not report.selected:
        print("No GitHub-hosted workflows found - nothing to update")
    _print_migration_report(report)
    return 0 if report.success else 1


def _run_restore(args: argparse.Namespace) -> int:
    manager = BackupManager(resolve_backup_root(args.backup_dir))
    record = manager.load(Path(args.backup_file), Path(args.workflow_file))
    manager.restore(record)
    print(f"Restored {record.source_path} from {record.backup_path}")
    return 0


def _run_backups(args: argparse.Namespace) -> int:
    manager = BackupManager(resolve_backup_root(args.backup_dir))
    backups = manager.list_backups(args.repo)
    print(f"Backups in {manager.backup_root}: {len(backups)}")
    for path in backups:
        print(f"  {path.name}")
    return 0


def _run_generate(args: argparse.Namespace) -> int:
    name = args.name or f"{args.workflow_type}-{args.language}"
    path = Path(args.output_dir) / f"{name}.yml"
    content = render_workflow(args.workflow_type, args.language, args.runner, dt.datetime.now())
    if args.dry_run:
        print(f"[DRY RUN] Would create {path}:")
        print(content)
        return 0
    write_workflow(path, content, force=args.force)
    print(f"Created workflow: {path}")
    return 0


def run_command(args: argparse.Namespace) -> int:
    """Dispatch a parsed command line to its handler and return the exit code."""
    command = Command(args.command)
    match command:
        case Command.SCAN:
            scan_report = WorkflowMigrator(args.path).scan()
            _print_scan_report(scan_report)
            return 1 if scan_report.unreadable else 0
        case Command.ANALYZE:
            scan_report = WorkflowMigrator(args.path).analyze()
            _print_analysis_report(scan_report)
            return 1 if scan_report.unreadable else 0
        case Command.MIGRATE:
            return _run_migrate(args)
        case Command.UPDATE:
            return _run_update(args)
        case Command.RESTORE:
            return _run_restore(args)
        case Command.BACKUPS:
            return _run_backups(args)
        case Command.GENERATE:
            return _run_generate(args)
        case _:
            assert_never(command)


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_arguments(argv)
    setup_logging(verbosity=args.verbose, log_file=resolve_log_file())

    try:
        exit_code = run_command(args)
    except NoWorkflowsDirectoryError as e:
        logger.error(str(e))  # noqa: TRY400 - no traceback for a missing directory
        exit_code = 1
    except MigrationError:
        logger.exception("Command failed")
        exit_code = 1

    sys.exit(exit_code)
