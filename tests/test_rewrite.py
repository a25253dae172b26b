"""Tests for runs-on line rewriting."""

from __future__ import annotations

import textwrap
from pathlib import Path
from unittest.mock import patch

import pytest

from gha_workflow_migrator.classifier import classify_workflow
from gha_workflow_migrator.exceptions import RewriteError
from gha_workflow_migrator.extractor import extract_runs_on
from gha_workflow_migrator.models import WorkflowFile
from gha_workflow_migrator.rewrite import REVIEW_MARKER, apply_outcomes, plan, render, rewrite_file

CONTENT = textwrap.dedent("""\
    # Build and test
    name: CI
    on: [push]

    jobs:
      lint:
        runs-on: ubuntu-latest   # fast lane
        steps:
          - run: make lint
      test:
        runs-on: [ubuntu-latest, macos-latest]
        steps:
          - run: make test
      deploy:
        runs-on: self-hosted
      matrix:
        runs-on: ${{ matrix.os }}
    """)


def _write(tmp_path: Path, content: str = CONTENT, name: str = "ci.yml") -> WorkflowFile:
    path = tmp_path / name
    _ = path.write_bytes(content.encode())
    return WorkflowFile.read(path)


@pytest.mark.unit
class TestRender:
    def test_scalar_keeps_indentation_and_comment(self, tmp_path: Path) -> None:
        entry = extract_runs_on(_write(tmp_path))[0]
        outcome = render(entry, "self-hosted")
        assert outcome.old_line == "    runs-on: ubuntu-latest   # fast lane"
        assert outcome.new_line == "    runs-on: self-hosted   # fast lane"
        assert not outcome.requires_manual_review

    def test_array_is_flagged_for_review(self, tmp_path: Path) -> None:
        entry = extract_runs_on(_write(tmp_path))[1]
        outcome = render(entry, "self-hosted")
        assert outcome.new_line == f"    runs-on: [self-hosted]  {REVIEW_MARKER}"
        assert outcome.requires_manual_review
        assert "# TODO" in outcome.new_line

    def test_expression_is_rejected(self, tmp_path: Path) -> None:
        entry = extract_runs_on(_write(tmp_path))[3]
        with pytest.raises(ValueError, match="cannot be rewritten"):
            _ = render(entry, "self-hosted")


@pytest.mark.unit
class TestPlan:
    def test_only_github_hosted_entries(self, tmp_path: Path) -> None:
        outcomes = plan(classify_workflow(_write(tmp_path)), "my-runner")
        assert [o.entry.line_number for o in outcomes] == [7, 11]
        assert outcomes[0].new_line == "    runs-on: my-runner   # fast lane"


@pytest.mark.unit
class TestApplyOutcomes:
    def test_only_planned_lines_change(self, tmp_path: Path) -> None:
        workflow = _write(tmp_path)
        outcomes = plan(classify_workflow(workflow), "self-hosted")
        new_lines = apply_outcomes(workflow.content, outcomes).splitlines(keepends=True)
        old_lines = workflow.lines

        assert len(new_lines) == len(old_lines)
        changed = [i + 1 for i, (old, new) in enumerate(zip(old_lines, new_lines, strict=True)) if old != new]
        assert changed == [7, 11]

    def test_crlf_is_preserved(self, tmp_path: Path) -> None:
        workflow = _write(tmp_path, "jobs:\r\n  a:\r\n    runs-on: windows-latest\r\n")
        outcomes = plan(classify_workflow(workflow), "self-hosted")
        assert apply_outcomes(workflow.content, outcomes) == "jobs:\r\n  a:\r\n    runs-on: self-hosted\r\n"

    def test_missing_final_newline_is_preserved(self, tmp_path: Path) -> None:
        workflow = _write(tmp_path, "    runs-on: ubuntu-latest")
        outcomes = plan(classify_workflow(workflow), "self-hosted")
        assert apply_outcomes(workflow.content, outcomes) == "    runs-on: self-hosted"

    def test_form_feed_and_vertical_tab_are_not_line_breaks(self, tmp_path: Path) -> None:
        content = "jobs:\x0c\n  a:\n    # old:\x0b runs-on: ubuntu-latest\n    runs-on: macos-latest\n"
        workflow = _write(tmp_path, content)
        outcomes = plan(classify_workflow(workflow), "self-hosted")

        assert [o.entry.line_number for o in outcomes] == [4]
        assert apply_outcomes(workflow.content, outcomes) == (
            "jobs:\x0c\n  a:\n    # old:\x0b runs-on: ubuntu-latest\n    runs-on: self-hosted\n"
        )

    def test_stale_line_raises(self, tmp_path: Path) -> None:
        workflow = _write(tmp_path)
        outcomes = plan(classify_workflow(workflow), "self-hosted")
        edited = workflow.content.replace("ubuntu-latest   # fast lane", "ubuntu-22.04")
        with pytest.raises(RewriteError, match="changed since it was scanned"):
            _ = apply_outcomes(edited, outcomes)


@pytest.mark.unit
class TestRewriteFile:
    def test_rewrites_in_place(self, tmp_path: Path) -> None:
        workflow = _write(tmp_path)
        outcomes = plan(classify_workflow(workflow), "self-hosted")

        new_content = rewrite_file(workflow, outcomes)

        assert workflow.path.read_text() == new_content
        assert "runs-on: self-hosted   # fast lane" in new_content
        assert "runs-on: ${{ matrix.os }}" in new_content
        assert sorted(p.name for p in tmp_path.iterdir()) == ["ci.yml"]

    def test_rewritten_file_reclassifies_as_self_hosted(self, tmp_path: Path) -> None:
        workflow = _write(tmp_path)
        _ = rewrite_file(workflow, plan(classify_workflow(workflow), "self-hosted"))
        assert plan(classify_workflow(WorkflowFile.read(workflow.path)), "self-hosted") == []

    def test_write_failure_leaves_file_untouched(self, tmp_path: Path) -> None:
        workflow = _write(tmp_path)
        outcomes = plan(classify_workflow(workflow), "self-hosted")

        with (
            patch("gha_workflow_migrator.rewrite.atomic_write_bytes", side_effect=OSError("disk full")),
            pytest.raises(RewriteError, match="disk full"),
        ):
            _ = rewrite_file(workflow, outcomes)

        assert workflow.path.read_text() == CONTENT

    def test_file_changed_on_disk_is_not_overwritten(self, tmp_path: Path) -> None:
        workflow = _write(tmp_path)
        outcomes = plan(classify_workflow(workflow), "self-hosted")
        edited = CONTENT.replace("make lint", "make lint-all").replace("ubuntu-latest   # fast lane", "macos-14")
        _ = workflow.path.write_text(edited)

        with pytest.raises(RewriteError):
            _ = rewrite_file(workflow, outcomes)

        assert workflow.path.read_text() == edited
