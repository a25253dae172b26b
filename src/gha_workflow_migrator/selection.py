"""Selection of the workflows that take part in a migration batch.

The selection is an immutable value. Every operator command produces a new
SelectionSet, and the controller returns the final one when the operator is
done. Workflows whose runner is only known at run time (every runs-on is an
expression) and workflows without any runs-on are never offered.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from .exceptions import InvalidSelectionIndexError
from .models import Classification

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from .models import WorkflowClassification
    from .protocols import Terminal

logger: logging.Logger = logging.getLogger(__name__)

_STATUS_NOTES: dict[Classification, str] = {
    Classification.SELF_HOSTED: " (already self-hosted)",
    Classification.UNRECOGNIZED: " (custom runner)",
}


def _is_candidate(workflow: WorkflowClassification) -> bool:
    return bool(workflow.entries) and workflow.classification is not Classification.DYNAMIC_EXPRESSION


@dataclass(frozen=True)
class SelectionSet:
    """Ordered candidate workflows and whether each one is selected."""

    candidates: tuple[WorkflowClassification, ...]
    selected: tuple[bool, ...]

    @classmethod
    def from_classifications(cls, workflows: Iterable[WorkflowClassification]) -> SelectionSet:
        """Offer all candidate workflows, pre-selecting the GitHub-hosted ones."""
        candidates = tuple(workflow for workflow in workflows if _is_candidate(workflow))
        return cls(
            candidates=candidates,
            selected=tuple(workflow.classification is Classification.GITHUB_HOSTED for workflow in candidates),
        )

    @classmethod
    def github_hosted_only(cls, workflows: Iterable[WorkflowClassification]) -> SelectionSet:
        """Fixed selection used by non-interactive runs: every GitHub-hosted workflow."""
        candidates = tuple(
            workflow for workflow in workflows if workflow.classification is Classification.GITHUB_HOSTED
        )
        return cls(candidates=candidates, selected=(True,) * len(candidates))

    def __len__(self) -> int:
        return len(self.candidates)

    def select_all(self) -> SelectionSet:
        return replace(self, selected=(True,) * len(self.candidates))

    def select_none(self) -> SelectionSet:
        return replace(self, selected=(False,) * len(self.candidates))

    def invert(self) -> SelectionSet:
        return replace(self, selected=tuple(not flag for flag in self.selected))

    def toggle(self, number: int) -> SelectionSet:
        """Toggle the workflow shown as `number` (1-based).

        Raises:
            InvalidSelectionIndexError: If no workflow has that number
        """
        if not 1 <= number <= len(self.candidates):
            msg = f"Invalid workflow number: {number}"
            raise InvalidSelectionIndexError(msg)
        index = number - 1
        flags = list(self.selected)
        flags[index] = not flags[index]
        return replace(self, selected=tuple(flags))

    @property
    def selected_workflows(self) -> list[WorkflowClassification]:
        return [workflow for workflow, flag in zip(self.candidates, self.selected, strict=True) if flag]

    def as_mapping(self) -> dict[Path, bool]:
        return {
            workflow.workflow.path: flag for workflow, flag in zip(self.candidates, self.selected, strict=True)
        }


class SelectionController:
    """Interactive checkbox-style selection loop."""

    HELP_TEXT = (
        "Selection options:\n"
        "  [a]ll - Select all workflows\n"
        "  [n]one - Deselect all workflows\n"
        "  [i]nvert - Invert current selection\n"
        "  [1-9] - Toggle specific workflow\n"
        "  [d]one - Proceed with current selection\n"
        "  [q]uit - Cancel without changing anything"
    )

    def __init__(self, terminal: Terminal) -> None:
        self.terminal: Terminal = terminal

    def render(self, selection: SelectionSet) -> None:
        self.terminal.write(f"Found {len(selection)} workflow file(s):")
        for number, (workflow, flag) in enumerate(zip(selection.candidates, selection.selected, strict=True), 1):
            marker = "[x]" if flag else "[ ]"
            note = _STATUS_NOTES.get(workflow.classification, "")
            self.terminal.write(
                f"{marker} {number}. {workflow.workflow.name} (currently: {workflow.runs_on_summary}){note}"
            )

    def apply(self, selection: SelectionSet, choice: str) -> SelectionSet:
        """Apply one operator command to a selection.

        Raises:
            InvalidSelectionIndexError: For an unknown workflow number
            ValueError: For an unknown command
        """
        match choice.strip().lower():
            case "a" | "all":
                return selection.select_all()
            case "n" | "none":
                return selection.select_none()
            case "i" | "invert":
                return selection.invert()
            case number if number.isdigit():
                return selection.toggle(int(number))
            case _:
                msg = f"Invalid choice: {choice}"
                raise ValueError(msg)

    def run(self, selection: SelectionSet) -> SelectionSet | None:
        """Run the selection loop.

        Returns:
            The final selection (possibly empty), or None if the operator cancelled
        """
        self.render(selection)
        self.terminal.write(self.HELP_TEXT)

        while True:
            try:
                choice = self.terminal.prompt("Select workflows to migrate: ")
            except EOFError:
                logger.info("Input closed during workflow selection; cancelling")
                return None

            command = choice.strip().lower()
            if command in ("d", "done"):
                return selection
            if command in ("q", "quit"):
                return None

            try:
                selection = self.apply(selection, choice)
            except (InvalidSelectionIndexError, ValueError) as e:
                self.terminal.write(f"Error: {e}")
                continue

            self.render(selection)
