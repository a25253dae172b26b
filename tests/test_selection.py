"""Tests for workflow selection."""

from __future__ import annotations

from collections.abc import Iterator
from typing import override

import pytest

from gha_workflow_migrator.exceptions import InvalidSelectionIndexError
from gha_workflow_migrator.protocols import Terminal
from gha_workflow_migrator.selection import SelectionController, SelectionSet


class ScriptedTerminal(Terminal):
    """Terminal that replays canned answers and records output."""

    def __init__(self, answers: list[str]) -> None:
        self._answers: Iterator[str] = iter(answers)
        self.output: list[str] = []

    @override
    def prompt(self, message: str) -> str:
        try:
            return next(self._answers)
        except StopIteration:
            raise EOFError from None

    @override
    def write(self, text: str) -> None:
        self.output.append(text)


@pytest.fixture
def workflows(classify_text, workflow_yaml):
    return [
        classify_text("a-build.yml", workflow_yaml("ubuntu-latest")),
        classify_text("b-deploy.yml", workflow_yaml("self-hosted")),
        classify_text("c-matrix.yml", workflow_yaml("${{ matrix.os }}")),
        classify_text("d-gpu.yml", workflow_yaml("gpu-pool")),
        classify_text("e-release.yml", workflow_yaml("windows-2022")),
        classify_text("f-reusable.yml", "on: workflow_call\n"),
    ]


def _names(selection: SelectionSet) -> list[str]:
    return [w.workflow.name for w in selection.selected_workflows]


@pytest.mark.unit
class TestSelectionSet:
    def test_defaults_select_github_hosted(self, workflows) -> None:
        selection = SelectionSet.from_classifications(workflows)
        assert [w.workflow.name for w in selection.candidates] == [
            "a-build.yml",
            "b-deploy.yml",
            "d-gpu.yml",
            "e-release.yml",
        ]
        assert _names(selection) == ["a-build.yml", "e-release.yml"]

    def test_dynamic_and_empty_workflows_are_never_offered(self, workflows) -> None:
        offered = SelectionSet.from_classifications(workflows).select_all()
        assert "c-matrix.yml" not in _names(offered)
        assert "f-reusable.yml" not in _names(offered)

    def test_select_all_and_none(self, workflows) -> None:
        selection = SelectionSet.from_classifications(workflows)
        assert len(selection.select_all().selected_workflows) == 4
        assert selection.select_none().selected_workflows == []

    def test_invert(self, workflows) -> None:
        selection = SelectionSet.from_classifications(workflows).invert()
        assert _names(selection) == ["b-deploy.yml", "d-gpu.yml"]

    def test_toggle_is_one_based(self, workflows) -> None:
        selection = SelectionSet.from_classifications(workflows).toggle(1).toggle(2)
        assert _names(selection) == ["b-deploy.yml", "e-release.yml"]

    @pytest.mark.parametrize("number", [0, 5, -1, 100])
    def test_toggle_out_of_range_keeps_state(self, workflows, number: int) -> None:
        selection = SelectionSet.from_classifications(workflows)
        before = selection.selected
        with pytest.raises(InvalidSelectionIndexError, match="Invalid workflow number"):
            _ = selection.toggle(number)
        assert selection.selected == before

    def test_transitions_return_new_values(self, workflows) -> None:
        selection = SelectionSet.from_classifications(workflows)
        _ = selection.select_all()
        assert _names(selection) == ["a-build.yml", "e-release.yml"]

    def test_github_hosted_only(self, workflows) -> None:
        selection = SelectionSet.github_hosted_only(workflows)
        assert _names(selection) == ["a-build.yml", "e-release.yml"]
        assert all(selection.selected)

    def test_as_mapping(self, workflows) -> None:
        mapping = SelectionSet.from_classifications(workflows).as_mapping()
        assert {path.name: flag for path, flag in mapping.items()} == {
            "a-build.yml": True,
            "b-deploy.yml": False,
            "d-gpu.yml": False,
            "e-release.yml": True,
        }


@pytest.mark.unit
class TestSelectionController:
    def _run(self, workflows, answers: list[str]) -> tuple[SelectionSet | None, ScriptedTerminal]:
        terminal = ScriptedTerminal(answers)
        result = SelectionController(terminal).run(SelectionSet.from_classifications(workflows))
        return result, terminal

    def test_done_keeps_defaults(self, workflows) -> None:
        result, terminal = self._run(workflows, ["d"])
        assert result is not None
        assert _names(result) == ["a-build.yml", "e-release.yml"]
        assert any("[x] 1. a-build.yml (currently: ubuntu-latest)" in line for line in terminal.output)
        assert any("(already self-hosted)" in line for line in terminal.output)

    def test_command_sequence(self, workflows) -> None:
        result, _ = self._run(workflows, ["none", "3", "i", "done"])
        assert result is not None
        assert _names(result) == ["a-build.yml", "b-deploy.yml", "e-release.yml"]

    def test_invalid_number_reprompts(self, workflows) -> None:
        result, terminal = self._run(workflows, ["9", "a", "d"])
        assert result is not None
        assert len(result.selected_workflows) == 4
        assert "Error: Invalid workflow number: 9" in terminal.output

    def test_unknown_command_reprompts(self, workflows) -> None:
        result, terminal = self._run(workflows, ["bogus", "d"])
        assert result is not None
        assert "Error: Invalid choice: bogus" in terminal.output

    def test_empty_selection_is_returned_not_cancelled(self, workflows) -> None:
        result, _ = self._run(workflows, ["n", "d"])
        assert result is not None
        assert result.selected_workflows == []

    def test_quit_cancels(self, workflows) -> None:
        result, _ = self._run(workflows, ["a", "q"])
        assert result is None

    def test_end_of_input_cancels(self, workflows) -> None:
        result, _ = self._run(workflows, ["a"])
        assert result is None
