"""
Pytest configuration and fixtures.

Integration tests run real commands against a workflow repository created
under tmp_path. They fail on any WARNING or ERROR logged by the package,
since a clean repository should migrate without warnings.
"""

from __future__ import annotations

import datetime as dt
import logging
import textwrap
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from gha_workflow_migrator.classifier import classify_workflow
from gha_workflow_migrator.models import WorkflowFile

if TYPE_CHECKING:
    from collections.abc import Callable, Generator

    from gha_workflow_migrator.models import WorkflowClassification

FIXED_NOW = dt.datetime(2026, 3, 14, 15, 9, 26)


def _workflow_yaml(runs_on: str, job: str = "build") -> str:
    return textwrap.dedent(f"""\
        name: CI
        on: [push]
        jobs:
          {job}:
            runs-on: {runs_on}
            steps:
              - uses: actions/checkout@v4
        """)


@pytest.fixture
def workflow_yaml() -> Callable[..., str]:
    """A minimal single-job workflow using the given runs-on value."""
    return _workflow_yaml


@pytest.fixture
def make_repo(tmp_path: Path) -> Callable[..., Path]:
    """Factory creating <tmp>/<name>/.github/workflows with the given files."""

    def _make(workflows: dict[str, str], name: str = "demo-repo") -> Path:
        repo = tmp_path / name
        workflows_dir = repo / ".github" / "workflows"
        workflows_dir.mkdir(parents=True)
        for filename, content in workflows.items():
            _ = (workflows_dir / filename).write_text(content)
        return repo

    return _make


@pytest.fixture
def classify_text() -> Callable[[str, str], WorkflowClassification]:
    """Classify in-memory workflow content without touching the disk."""

    def _classify(name: str, content: str) -> WorkflowClassification:
        workflow = WorkflowFile(path=Path(name), content=content, modified_at=FIXED_NOW)
        return classify_workflow(workflow)

    return _classify


@pytest.fixture
def fixed_clock() -> Callable[[], dt.datetime]:
    return lambda: FIXED_NOW


@pytest.fixture(autouse=True)
def fail_on_log_warnings_for_integration_tests(request: pytest.FixtureRequest) -> Generator[None]:
    """Fail integration tests that log a WARNING or worse from the package."""
    if request.node.get_closest_marker("integration") is None:
        yield
        return

    caplog: pytest.LogCaptureFixture = request.getfixturevalue("caplog")
    caplog.set_level(logging.WARNING, logger="gha_workflow_migrator")
    yield

    problems = [
        f"{record.levelname}: {record.getMessage()} (in {record.name}:{record.lineno})"
        for record in caplog.get_records("call")
        if record.levelno >= logging.WARNING and record.name.startswith("gha_workflow_migrator")
    ]
    if problems:
        pytest.fail("Integration test logged warnings:\n" + "\n".join(f"  - {p}" for p in problems))
