"""Tests for initial status classification and completion propagation."""

from __future__ import annotations

import pytest

from insightboard.errors import NotFoundError, TaskNotFoundError
from insightboard.status import (
    CYCLE_ERROR_MESSAGE,
    classify,
    complete,
    explain_block,
    ready_ids,
    status_counts,
)
from insightboard.tasks.model import Task, TaskStatus
from insightboard.tasks.validate import detect_cycles, sanitize


# ── Helpers ─────────────────────────────────────────────────────────


def _t(id: str, depends_on: list[str] | None = None, status: TaskStatus = TaskStatus.READY) -> Task:
    return Task(id=id, description=f"Task {id}", dependencies=depends_on or [], status=status)


def _statuses(tasks: list[Task]) -> dict[str, str]:
    return {t.id: t.status.value for t in tasks}


def _pipeline(tasks: list[Task]) -> list[Task]:
    clean = sanitize(tasks)
    return classify(clean, detect_cycles(clean).cycle_details)


# ═══════════════════════════════════════════════════════════════════
#  Initial classification
# ═══════════════════════════════════════════════════════════════════


class TestClassify:
    """Tests for classify()."""

    def test_chain(self):
        tasks = classify([_t("t1"), _t("t2", ["t1"]), _t("t3", ["t2"])], [])
        assert _statuses(tasks) == {"t1": "ready", "t2": "blocked", "t3": "blocked"}

    def test_cycle_members_are_error(self):
        tasks = _pipeline([_t("t1", ["t2"]), _t("t2", ["t1"])])
        assert _statuses(tasks) == {"t1": "error", "t2": "error"}
        assert all(t.error_message == CYCLE_ERROR_MESSAGE for t in tasks)

    def test_task_depending_on_cycle_is_blocked(self):
        tasks = _pipeline([_t("a", ["b"]), _t("b", ["a"]), _t("c", ["a"])])
        assert _statuses(tasks) == {"a": "error", "b": "error", "c": "blocked"}
        assert tasks[2].error_message == ""

    def test_self_cycle_is_error(self):
        tasks = _pipeline([_t("solo", ["solo"])])
        assert tasks[0].status == TaskStatus.ERROR

    def test_completed_dependency_counts_as_met(self):
        tasks = classify([_t("a", status=TaskStatus.COMPLETED), _t("b", ["a"])], [])
        assert _statuses(tasks) == {"a": "completed", "b": "ready"}

    def test_unknown_dependency_is_ignored(self):
        tasks = classify([_t("a", ["ghost"])], [])
        assert tasks[0].status == TaskStatus.READY

    def test_id_containing_arrow_is_marked_error(self):
        tasks = _pipeline([_t("draft → review", ["z"]), _t("z", ["draft → review"])])
        assert _statuses(tasks) == {"draft → review": "error", "z": "error"}

    def test_returns_new_objects(self):
        original = [_t("a"), _t("b", ["a"])]
        result = classify(original, [])
        assert original[1].status == TaskStatus.READY
        assert result[1].status == TaskStatus.BLOCKED
        assert result[0] is not original[0]

    def test_status_correctness_property(self):
        tasks = _pipeline([
            _t("a"), _t("b", ["a"]), _t("c", ["a", "b"]),
            _t("x", ["y"]), _t("y", ["x"]), _t("z", ["c", "x"]),
        ])
        by_id = {t.id: t for t in tasks}
        for task in tasks:
            if task.status == TaskStatus.ERROR:
                continue
            unmet = any(by_id[d].status != TaskStatus.COMPLETED for d in task.dependencies)
            assert (task.status == TaskStatus.BLOCKED) == unmet


# ═══════════════════════════════════════════════════════════════════
#  Completion propagation
# ═══════════════════════════════════════════════════════════════════


class TestComplete:
    """Tests for complete()."""

    def test_end_to_end_chain(self):
        tasks = classify([_t("t1"), _t("t2", ["t1"]), _t("t3", ["t2"])], [])

        tasks = complete(tasks, "t1")
        assert _statuses(tasks) == {"t1": "completed", "t2": "ready", "t3": "blocked"}

        tasks = complete(tasks, "t2")
        assert _statuses(tasks) == {"t1": "completed", "t2": "completed", "t3": "ready"}

    def test_waits_for_all_dependencies(self):
        tasks = classify([_t("a"), _t("b"), _t("c", ["a", "b"])], [])
        tasks = complete(tasks, "a")
        assert tasks[2].status == TaskStatus.BLOCKED
        tasks = complete(tasks, "b")
        assert tasks[2].status == TaskStatus.READY

    def test_unknown_task_raises_not_found(self):
        tasks = classify([_t("task-1")], [])
        snapshot = [t.copy() for t in tasks]
        with pytest.raises(TaskNotFoundError) as exc_info:
            complete(tasks, "task-99")
        assert exc_info.value.task_id == "task-99"
        assert isinstance(exc_info.value, NotFoundError)
        assert tasks == snapshot

    def test_input_list_not_mutated(self):
        tasks = classify([_t("a"), _t("b", ["a"])], [])
        result = complete(tasks, "a")
        assert _statuses(tasks) == {"a": "ready", "b": "blocked"}
        assert _statuses(result) == {"a": "completed", "b": "ready"}

    def test_completing_blocked_task_is_allowed(self):
        tasks = classify([_t("a"), _t("b", ["a"]), _t("c", ["b"])], [])
        tasks = complete(tasks, "b")
        assert _statuses(tasks) == {"a": "ready", "b": "completed", "c": "ready"}

    def test_completing_error_task_overrides_it(self):
        tasks = _pipeline([_t("a", ["b"]), _t("b", ["a"])])
        tasks = complete(tasks, "a")
        assert tasks[0].status == TaskStatus.COMPLETED
        assert tasks[0].error_message == ""
        # b stays error: automatic recomputation never touches cyclic tasks
        assert tasks[1].status == TaskStatus.ERROR

    def test_repeat_completion_is_noop(self):
        tasks = classify([_t("a"), _t("b", ["a"])], [])
        once = complete(tasks, "a")
        twice = complete(once, "a")
        assert twice == once

    def test_completed_is_never_downgraded(self):
        tasks = classify([_t("a"), _t("b"), _t("c", ["a", "b"])], [])
        tasks = complete(tasks, "c")
        tasks = complete(tasks, "a")
        tasks = complete(tasks, "b")
        assert tasks[2].status == TaskStatus.COMPLETED

    def test_fixed_point_over_stale_blocked_tasks(self):
        """Every blocked task whose dependencies are all completed is released in one call."""
        tasks = [
            _t("a", status=TaskStatus.COMPLETED),
            _t("b", ["a"], status=TaskStatus.BLOCKED),
            _t("c"),
            _t("d", ["c"], status=TaskStatus.BLOCKED),
        ]
        result = complete(tasks, "c")
        assert _statuses(result) == {"a": "completed", "b": "ready", "c": "completed", "d": "ready"}

    def test_unknown_dependency_agrees_with_classify(self):
        """A dependency on a missing id never holds a task back, before or after completion."""
        tasks = classify([_t("a"), _t("b", ["a", "ghost"])], [])
        assert tasks[1].status == TaskStatus.BLOCKED
        tasks = complete(tasks, "a")
        assert tasks[1].status == TaskStatus.READY

    def test_duplicate_dependency_entries(self):
        tasks = classify([_t("a"), _t("b", ["a", "a"])], [])
        tasks = complete(tasks, "a")
        assert tasks[1].status == TaskStatus.READY


# ═══════════════════════════════════════════════════════════════════
#  Queries
# ═══════════════════════════════════════════════════════════════════


class TestQueries:
    def test_status_counts(self):
        tasks = _pipeline([_t("a"), _t("b", ["a"]), _t("x", ["x"])])
        counts = status_counts(tasks)
        assert counts[TaskStatus.READY] == 1
        assert counts[TaskStatus.BLOCKED] == 1
        assert counts[TaskStatus.ERROR] == 1
        assert counts[TaskStatus.COMPLETED] == 0

    def test_ready_ids(self):
        tasks = classify([_t("a"), _t("b", ["a"]), _t("c")], [])
        assert ready_ids(tasks) == ["a", "c"]

    def test_explain_block_lists_unmet_dependencies(self):
        tasks = classify([_t("a"), _t("b"), _t("c", ["a", "b"])], [])
        tasks = complete(tasks, "a")
        assert explain_block(tasks, "c") == "waiting on: b (ready)"

    def test_explain_block_for_ready_task_is_empty(self):
        tasks = classify([_t("a")], [])
        assert explain_block(tasks, "a") == ""

    def test_explain_block_for_cyclic_task(self):
        tasks = _pipeline([_t("a", ["a"])])
        assert explain_block(tasks, "a") == CYCLE_ERROR_MESSAGE

    def test_explain_block_unknown(self):
        with pytest.raises(TaskNotFoundError):
            explain_block([], "nope")
