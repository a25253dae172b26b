"""In-place rewriting of runs-on lines.

Each planned line is replaced on its own; every other byte of the file
stays as it was. All replacements for a file are applied in one pass
(one read, one write), so line numbers taken from the extraction are
still valid while they are applied.

Inline arrays are not collapsed silently. A value like
`[ubuntu-latest, macos-latest]` usually spans a build matrix, so the
line becomes a single-element array with a review marker and the
outcome is flagged for manual review.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final

from .exceptions import RewriteError
from .models import Classification, RewriteOutcome, RunsOnShape
from .utils import atomic_write_bytes, split_lines

if TYPE_CHECKING:
    from .models import RunsOnEntry, WorkflowClassification, WorkflowFile

logger: logging.Logger = logging.getLogger(__name__)

REVIEW_MARKER: Final = "# TODO: Review array conversion"


def render(entry: RunsOnEntry, target: str) -> RewriteOutcome:
    """Compute the replacement line for one runs-on entry.

    Raises:
        ValueError: For expression entries, which are never rewritten
    """
    match entry.shape:
        case RunsOnShape.SCALAR:
            new_line = f"{entry.indentation}runs-on: {target}{entry.comment}"
            return RewriteOutcome(entry=entry, old_line=entry.line, new_line=new_line)
        case RunsOnShape.INLINE_ARRAY:
            new_line = f"{entry.indentation}runs-on: [{target}]  {REVIEW_MARKER}"
            return RewriteOutcome(entry=entry, old_line=entry.line, new_line=new_line, requires_manual_review=True)
        case RunsOnShape.EXPRESSION:
            msg = f"Expression runs-on at {entry.workflow.name}:{entry.line_number} cannot be rewritten"
            raise ValueError(msg)


def plan(workflow: WorkflowClassification, target: str) -> list[RewriteOutcome]:
    """Plan the rewrite of every GitHub-hosted runs-on entry of a workflow."""
    return [render(entry, target) for entry in workflow.entries_with(Classification.GITHUB_HOSTED)]


def apply_outcomes(content: str, outcomes: list[RewriteOutcome]) -> str:
    """Return `content` with the planned lines replaced.

    Raises:
        RewriteError: If a planned line no longer matches the content
    """
    lines = split_lines(content)
    for outcome in outcomes:
        index = outcome.entry.line_number - 1
        current = lines[index] if index < len(lines) else None
        if current is None or current.rstrip("\r\n") != outcome.old_line:
            msg = (
                f"{outcome.entry.workflow.name}:{outcome.entry.line_number} changed since it was scanned; "
                "scan again before migrating"
            )
            raise RewriteError(msg)
        ending = current[len(current.rstrip("\r\n")) :]
        lines[index] = outcome.new_line + ending
    return "".join(lines)


def rewrite_file(workflow: WorkflowFile, outcomes: list[RewriteOutcome]) -> str:
    """Apply planned outcomes to a workflow file on disk, atomically.

    The file is re-read so that a modification after scanning is detected
    instead of being overwritten.

    Returns:
        The new file content

    Raises:
        RewriteError: If the file changed, cannot be read or cannot be written
    """
    path = workflow.path
    try:
        current = path.read_bytes().decode("utf-8", errors="surrogateescape")
    except OSError as e:
        msg = f"Failed to read {path}: {e}"
        raise RewriteError(msg) from e

    new_content = apply_outcomes(current, outcomes)

    try:
        atomic_write_bytes(path, new_content.encode("utf-8", errors="surrogateescape"))
    except OSError as e:
        msg = f"Failed to write {path}: {e}"
        raise RewriteError(msg) from e

    for outcome in outcomes:
        if outcome.requires_manual_review:
            logger.warning(
                f"Array runs-on {outcome.entry.raw_value} in {workflow.name}:{outcome.entry.line_number} "
                "collapsed to a single label - manual review recommended"
            )
    logger.info(f"Converted {workflow.name} ({len(outcomes)} runs-on line(s))")
    return new_content
