"""
Discovery of GitHub Actions workflow files.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Final

from .exceptions import NoWorkflowsDirectoryError

logger: logging.Logger = logging.getLogger(__name__)

WORKFLOW_SUFFIXES: Final = (".yml", ".yaml")


def find_workflows_dir(path: str | Path) -> tuple[Path, Path]:
    """Resolve the repository root and its .github/workflows directory.

    The path itself, its parent and its grandparent are tried in that order,
    so the tool also works when started from a subdirectory of a checkout.
    A path pointing directly at a .github/workflows directory is accepted too.

    Returns:
        Tuple of (repository root, workflows directory)

    Raises:
        NoWorkflowsDirectoryError: If none of the candidates has the directory
    """
    start = Path(path).resolve()

    if start.is_dir() and start.name == "workflows" and start.parent.name == ".github":
        return start.parent.parent, start

    for candidate in (start, start.parent, start.parent.parent):
        workflows_dir = candidate / ".github" / "workflows"
        if workflows_dir.is_dir():
            if candidate != start:
                logger.info(f"Using workflows directory from ancestor: {workflows_dir}")
            return candidate, workflows_dir

    raise NoWorkflowsDirectoryError(start)


def list_workflow_files(workflows_dir: Path) -> list[Path]:
    """Return *.yml and *.yaml files in a workflows directory, sorted by path."""
    return sorted(
        entry for entry in workflows_dir.iterdir() if entry.is_file() and entry.suffix in WORKFLOW_SUFFIXES
    )


def locate_workflows(path: str | Path) -> list[Path]:
    """Find the workflow files of the repository containing `path`."""
    _, workflows_dir = find_workflows_dir(path)
    files = list_workflow_files(workflows_dir)
    logger.debug(f"Found {len(files)} workflow file(s) in {workflows_dir}")
    return files
