"""Task status resolution: initial classification and completion propagation.

States are ``ready``, ``blocked``, ``error`` and ``completed``. Completed is
terminal. Error marks a task caught in a dependency cycle and is never changed
by automatic recomputation; only an explicit :func:`complete` overrides it.

Both entry points are pure: they copy the tasks they are given and return a
new list.

Usage::

    tasks = classify(tasks, report.cycle_details)
    tasks = complete(tasks, "task-1")   # raises TaskNotFoundError if unknown
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from insightboard.errors import TaskNotFoundError
from insightboard.tasks.model import Task, TaskStatus
from insightboard.tasks.validate import cyclic_ids

CYCLE_ERROR_MESSAGE = "Part of a circular dependency"


def _has_unmet_deps(task: Task, by_id: dict[str, Task]) -> bool:
    """True when a dependency present in *by_id* is not completed. Unknown ids are ignored."""
    for dep in task.dependencies:
        dep_task = by_id.get(dep)
        if dep_task is not None and dep_task.status != TaskStatus.COMPLETED:
            return True
    return False


# ── Initial classification ───────────────────────────────────────


def classify(tasks: Sequence[Task], cycle_details: Iterable[str]) -> list[Task]:
    """Assign every task its initial status.

    Tasks named in a cycle trace become ``error``. The rest are ``blocked``
    when at least one dependency is not completed, ``ready`` otherwise. A task
    already marked ``completed`` keeps that status.
    Dependencies are judged by their status in *tasks* as given.
    """
    by_id = {t.id: t for t in tasks}
    cyclic = cyclic_ids(cycle_details, by_id.keys())

    result: list[Task] = []
    for task in tasks:
        updated = task.copy()
        if task.id in cyclic:
            updated.status = TaskStatus.ERROR
            updated.error_message = CYCLE_ERROR_MESSAGE
        elif task.status == TaskStatus.COMPLETED:
            pass
        else:
            updated.status = TaskStatus.BLOCKED if _has_unmet_deps(task, by_id) else TaskStatus.READY
            updated.error_message = ""
        result.append(updated)
    return result


# ── Completion propagation ───────────────────────────────────────


def complete(tasks: Sequence[Task], task_id: str) -> list[Task]:
    """Mark *task_id* completed and unblock whatever that frees up.

    The target is completed whatever its prior status. Blocked tasks are then
    re-checked, repeating until a full pass changes nothing, so a release that
    cascades through several links settles within this one call.
    Dependencies on ids missing from *tasks* are ignored, as in :func:`classify`.
    """
    if not any(t.id == task_id for t in tasks):
        raise TaskNotFoundError(task_id)

    result = [t.copy() for t in tasks]
    by_id = {t.id: t for t in result}

    target = by_id[task_id]
    target.status = TaskStatus.COMPLETED
    target.error_message = ""

    changed = True
    while changed:
        changed = False
        for task in result:
            if task.status != TaskStatus.BLOCKED:
                continue
            if not _has_unmet_deps(task, by_id):
                task.status = TaskStatus.READY
                changed = True
    return result


# ── Queries ──────────────────────────────────────────────────────


def status_counts(tasks: Sequence[Task]) -> dict[TaskStatus, int]:
    counts = dict.fromkeys(TaskStatus, 0)
    for t in tasks:
        counts[t.status] += 1
    return counts


def ready_ids(tasks: Sequence[Task]) -> list[str]:
    """Return ids of tasks that can be started now."""
    return [t.id for t in tasks if t.status == TaskStatus.READY]


def explain_block(tasks: Sequence[Task], task_id: str) -> str:
    """Human-readable explanation of why *task_id* is not ready."""
    by_id = {t.id: t for t in tasks}
    task = by_id.get(task_id)
    if task is None:
        raise TaskNotFoundError(task_id)
    if task.status == TaskStatus.ERROR:
        return task.error_message or "error"

    waiting = []
    for dep in task.dependencies:
        dep_task = by_id.get(dep)
        if dep_task is not None and dep_task.status != TaskStatus.COMPLETED:
            waiting.append(f"{dep} ({dep_task.status.value})")
    if not waiting:
        return ""
    return "waiting on: " + ", ".join(waiting)
