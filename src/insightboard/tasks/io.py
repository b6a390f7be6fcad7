"""Turn untrusted task payloads (engine output, JSON files) into Task lists."""

from __future__ import annotations

import json
import re
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from insightboard.errors import UpstreamFailure, ValidationError
from insightboard.io_utils import read_text
from insightboard.tasks.model import Priority, Task, TaskStatus
from insightboard.tasks.validate import validate

_FENCE_RE = re.compile(r"```(?:json)?\s*\n?", re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences some engines wrap around JSON."""
    return _FENCE_RE.sub("", text).strip()


def _coerce_dependencies(raw: object) -> list[str]:
    if not isinstance(raw, list):
        return []
    deps: list[str] = []
    for item in raw:
        if isinstance(item, (str, int)) and not isinstance(item, bool):
            value = str(item).strip()
            if value:
                deps.append(value)
    return deps


def normalize_tasks(raw: Sequence[Any]) -> list[Task]:
    """Build fresh tasks from raw dicts.

    ``id`` and ``description`` are required. Priority falls back to medium,
    dependencies to an empty list, and status always starts at ready. Raises
    :class:`ValidationError` on missing fields or duplicate ids.
    """
    tasks: list[Task] = []
    for idx, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValidationError(f"Task at index {idx} is not an object")
        task_id = item.get("id")
        description = item.get("description")
        if task_id is None or str(task_id).strip() == "" or not description or not str(description).strip():
            raise ValidationError(f"Task at index {idx} missing required fields")
        tasks.append(
            Task(
                id=str(task_id).strip(),
                description=str(description).strip(),
                priority=Priority.coerce(item.get("priority")),
                dependencies=_coerce_dependencies(item.get("dependencies")),
                status=TaskStatus.READY,
            )
        )

    errors = validate(tasks)
    if errors:
        raise ValidationError("; ".join(errors))
    return tasks


def parse_task_json(text: str) -> list[Task]:
    """Parse engine output into normalized tasks.

    Output that is not a JSON array is an upstream problem, not a validation
    one: the engine did not do what it was asked.
    """
    cleaned = strip_code_fences(text or "")
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise UpstreamFailure(
            f"Engine output is not valid JSON: {exc.msg}",
            kind="unparseable",
            detail=cleaned[:200],
        ) from exc
    if not isinstance(data, list):
        raise UpstreamFailure(
            "Engine output is not a JSON array",
            kind="unparseable",
            detail=cleaned[:200],
        )
    return normalize_tasks(data)


def load_task_file(path: Path) -> list[Task]:
    """Load a JSON task list from disk.

    Accepts either a bare array or an object with a ``tasks`` array (the
    shape ``insightboard status --json`` writes). Only the task definitions
    are read: every status starts at ``ready`` and completions recorded in
    the file are dropped, so the result describes the graph from scratch.
    """
    try:
        data = json.loads(read_text(path))
    except json.JSONDecodeError as exc:
        raise ValidationError(f"{path}: invalid JSON ({exc.msg})") from exc
    if isinstance(data, dict):
        data = data.get("tasks")
    if not isinstance(data, list):
        raise ValidationError(f"{path}: expected a JSON array of tasks")
    return normalize_tasks(data)


def dump_tasks(tasks: Sequence[Task]) -> str:
    return json.dumps([t.to_dict() for t in tasks], indent=2, ensure_ascii=False)
