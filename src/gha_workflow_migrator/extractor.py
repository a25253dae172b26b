"""Line-oriented extraction of `runs-on:` declarations from workflow files.

Only the `runs-on` key is ever inspected or rewritten, so the workflow is
scanned line by line instead of being parsed as YAML. Nothing else in the
file is touched, which keeps comments, quoting and indentation exactly as
the author wrote them.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Final

from .models import RunsOnEntry, RunsOnShape

if TYPE_CHECKING:
    from .models import WorkflowFile

logger: logging.Logger = logging.getLogger(__name__)

RUNS_ON_PATTERN: Final = re.compile(r"^(?P<indent>\s*)runs-on:(?P<rest>.*)$")
EXPRESSION_PREFIX: Final = "${{"


def _strip_quotes(text: str) -> str:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "'\"":
        return text[1:-1]
    return text


def _split_comment(rest: str) -> tuple[str, str]:
    """Split the text after `runs-on:` into (value part, trailing comment).

    A `#` starts a comment only outside quotes and when preceded by
    whitespace, the same rule YAML applies.
    """
    quote: str | None = None
    for index, char in enumerate(rest):
        if quote:
            if char == quote:
                quote = None
        elif char in "'\"":
            quote = char
        elif char == "#" and (index == 0 or rest[index - 1].isspace()):
            head = rest[:index]
            return head, head[len(head.rstrip()) :] + rest[index:]
    return rest, ""


def parse_runs_on_value(raw: str) -> tuple[str, RunsOnShape]:
    """Determine the classification basis and shape of a raw runs-on value.

    Returns:
        Tuple of (value used for classification, shape)
    """
    unquoted = _strip_quotes(raw)
    if unquoted.startswith(EXPRESSION_PREFIX):
        return unquoted, RunsOnShape.EXPRESSION

    if raw.startswith("[") and raw.endswith("]"):
        first = raw[1:-1].split(",", 1)[0].strip()
        return _strip_quotes(first), RunsOnShape.INLINE_ARRAY

    return unquoted, RunsOnShape.SCALAR


def extract_runs_on(workflow: WorkflowFile) -> list[RunsOnEntry]:
    """Extract every runs-on declaration of a workflow file, in file order.

    A workflow without any static runs-on yields an empty list.
    """
    entries: list[RunsOnEntry] = []

    for index, physical_line in enumerate(workflow.lines):
        line = physical_line.rstrip("\r\n")
        match = RUNS_ON_PATTERN.match(line)
        if not match:
            continue

        head, comment = _split_comment(match.group("rest"))
        raw_value = head.strip()
        value, shape = parse_runs_on_value(raw_value)

        entries.append(
            RunsOnEntry(
                workflow=workflow,
                line_number=index + 1,
                line=line,
                indentation=match.group("indent"),
                raw_value=raw_value,
                value=value,
                shape=shape,
                comment=comment,
            )
        )

    logger.debug(f"Extracted {len(entries)} runs-on entries from {workflow.name}")
    return entries
