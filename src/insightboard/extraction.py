"""Task extraction: ask an AI engine to turn a transcript into candidate tasks."""

from __future__ import annotations

from insightboard import log
from insightboard.engine_errors import classify_engine_error
from insightboard.engines.base import EngineBase
from insightboard.errors import UpstreamFailure
from insightboard.tasks.io import parse_task_json
from insightboard.tasks.model import Task


def build_prompt(transcript: str) -> str:
    return f"""You are an assistant that converts meeting transcripts into structured tasks with dependencies.

Analyze the following meeting transcript and extract all actionable tasks. For each task:
1. Assign a unique ID in the format "task-1", "task-2", etc.
2. Write a clear description
3. Assign a priority (low, medium, high, or urgent)
4. Identify dependencies (which other tasks must be completed first)

Return ONLY a valid JSON array with this exact structure:
[
  {{
    "id": "task-1",
    "description": "Task description",
    "priority": "high",
    "dependencies": []
  }}
]

Rules:
- IDs must be in format "task-X" where X is a number
- Dependencies must only contain IDs of tasks that exist in your response
- If a task has no dependencies, use an empty array []
- Priority must be one of: low, medium, high, urgent
- Return ONLY the JSON array, no additional text

Meeting transcript:
---
{transcript}
---"""


def extract_tasks(engine: EngineBase, transcript: str, *, timeout: int | None = None) -> list[Task]:
    """Run *engine* on *transcript* and return normalized, unvalidated-graph tasks.

    Raises :class:`UpstreamFailure` when the engine errors or its answer is not
    a JSON task array, and :class:`~insightboard.errors.ValidationError` when
    the array has tasks missing required fields.
    """
    result = engine.run_sync(build_prompt(transcript), timeout=timeout)
    if result.error:
        kind = classify_engine_error(result.error)
        raise UpstreamFailure(
            f"Failed to generate tasks ({engine.name}): {result.error}",
            kind=kind,
            detail=result.error,
        )

    log.debug(
        f"{engine.name} answered in {result.duration_ms}ms "
        f"({result.input_tokens} in / {result.output_tokens} out tokens)"
    )
    if not result.text.strip():
        raise UpstreamFailure(f"Failed to generate tasks ({engine.name}): empty response", kind="unparseable")

    tasks = parse_task_json(result.text)
    log.debug(f"Extracted {len(tasks)} task(s)")
    return tasks
