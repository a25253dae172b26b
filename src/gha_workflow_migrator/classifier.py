"""
Classification of runs-on values into GitHub-hosted, self-hosted, dynamic or unrecognized.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Final

from .extractor import extract_runs_on
from .models import Classification, ClassifiedEntry, RunsOnShape, WorkflowClassification

if TYPE_CHECKING:
    from .models import WorkflowFile

SELF_HOSTED_LABEL: Final = "self-hosted"
GITHUB_HOSTED_PATTERN: Final = re.compile(r"(ubuntu|windows|macos)-(latest|[0-9]+(\.[0-9]+)?)")


def classify(value: str, shape: RunsOnShape) -> Classification:
    """Classify a runs-on value.

    For inline arrays `value` is the first element; the remaining elements
    do not take part in classification. Anything not positively identified
    is unrecognized and will never be migrated automatically.
    """
    if shape is RunsOnShape.EXPRESSION:
        return Classification.DYNAMIC_EXPRESSION
    if value == SELF_HOSTED_LABEL:
        return Classification.SELF_HOSTED
    if GITHUB_HOSTED_PATTERN.fullmatch(value):
        return Classification.GITHUB_HOSTED
    return Classification.UNRECOGNIZED


def classify_workflow(workflow: WorkflowFile) -> WorkflowClassification:
    """Extract and classify all runs-on entries of a workflow file."""
    return WorkflowClassification(
        workflow=workflow,
        entries=[ClassifiedEntry(entry, classify(entry.value, entry.shape)) for entry in extract_runs_on(workflow)],
    )
