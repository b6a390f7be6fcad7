"""Tests for normalizing untrusted task payloads (engine output, task files)."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from insightboard.errors import UpstreamFailure, ValidationError
from insightboard.io_utils import write_text
from insightboard.tasks.io import (
    dump_tasks,
    load_task_file,
    normalize_tasks,
    parse_task_json,
    strip_code_fences,
)
from insightboard.tasks.model import Priority, TaskStatus


class TestNormalizeTasks:
    def test_defaults_for_missing_optional_fields(self):
        tasks = normalize_tasks([{"id": "task-1", "description": "Do it"}])
        assert tasks[0].priority == Priority.MEDIUM
        assert tasks[0].dependencies == []
        assert tasks[0].status == TaskStatus.READY

    def test_invalid_priority_becomes_medium(self):
        tasks = normalize_tasks([{"id": "task-1", "description": "x", "priority": "asap"}])
        assert tasks[0].priority == Priority.MEDIUM

    def test_status_from_input_is_ignored(self):
        tasks = normalize_tasks([{"id": "task-1", "description": "x", "status": "completed"}])
        assert tasks[0].status == TaskStatus.READY

    def test_non_list_dependencies_mean_none(self):
        tasks = normalize_tasks([{"id": "a", "description": "x", "dependencies": "b"}])
        assert tasks[0].dependencies == []

    def test_dependency_entries_coerced_to_strings(self):
        tasks = normalize_tasks([{"id": "a", "description": "x", "dependencies": [1, None, " b ", True, ""]}])
        assert tasks[0].dependencies == ["1", "b"]

    def test_numeric_id_kept_as_opaque_string(self):
        tasks = normalize_tasks([{"id": 7, "description": "x"}])
        assert tasks[0].id == "7"

    @pytest.mark.parametrize(
        "item",
        [
            {"description": "no id"},
            {"id": "task-1"},
            {"id": "", "description": "empty id"},
            {"id": "task-1", "description": "   "},
        ],
    )
    def test_missing_required_fields(self, item):
        with pytest.raises(ValidationError, match="index 0"):
            normalize_tasks([item])

    def test_non_object_entry(self):
        with pytest.raises(ValidationError):
            normalize_tasks(["task-1"])

    def test_duplicate_ids_rejected(self):
        with pytest.raises(ValidationError, match="Duplicate task id: task-1"):
            normalize_tasks([
                {"id": "task-1", "description": "a"},
                {"id": "task-1", "description": "b"},
            ])


class TestParseTaskJson:
    def test_plain_array(self):
        tasks = parse_task_json('[{"id": "task-1", "description": "x"}]')
        assert [t.id for t in tasks] == ["task-1"]

    def test_code_fenced_array(self):
        text = '```json\n[{"id": "task-1", "description": "x"}]\n```'
        assert parse_task_json(text)[0].id == "task-1"

    def test_strip_code_fences(self):
        assert strip_code_fences("```\n[]\n```") == "[]"

    def test_invalid_json_is_upstream_failure(self):
        with pytest.raises(UpstreamFailure) as exc_info:
            parse_task_json("Sure! Here are your tasks: ...")
        assert exc_info.value.kind == "unparseable"
        assert isinstance(exc_info.value.__cause__, json.JSONDecodeError)

    def test_non_array_is_upstream_failure(self):
        with pytest.raises(UpstreamFailure, match="not a JSON array"):
            parse_task_json('{"tasks": []}')

    def test_empty_array(self):
        assert parse_task_json("[]") == []


class TestTaskFiles:
    def test_load_bare_array(self, tmp_path: Path):
        path = tmp_path / "tasks.json"
        write_text(path, json.dumps([{"id": "a", "description": "x"}]))
        assert load_task_file(path)[0].id == "a"

    def test_load_job_shaped_object(self, tmp_path: Path):
        path = tmp_path / "job.json"
        write_text(path, json.dumps({"jobId": "j", "tasks": [{"id": "a", "description": "x"}]}))
        assert load_task_file(path)[0].id == "a"

    def test_load_resets_recorded_statuses(self, tmp_path: Path):
        path = tmp_path / "job.json"
        tasks = [
            {"id": "a", "description": "x", "status": "completed"},
            {"id": "b", "description": "y", "status": "error", "errorMessage": "Part of a circular dependency"},
        ]
        write_text(path, json.dumps({"jobId": "j", "tasks": tasks}))

        loaded = load_task_file(path)

        assert [t.status for t in loaded] == [TaskStatus.READY, TaskStatus.READY]
        assert [t.error_message for t in loaded] == ["", ""]

    def test_load_invalid_json(self, tmp_path: Path):
        path = tmp_path / "broken.json"
        write_text(path, "{nope")
        with pytest.raises(ValidationError, match="invalid JSON"):
            load_task_file(path)

    def test_load_wrong_shape(self, tmp_path: Path):
        path = tmp_path / "odd.json"
        write_text(path, '"just a string"')
        with pytest.raises(ValidationError, match="expected a JSON array"):
            load_task_file(path)

    def test_dump_tasks(self):
        tasks = normalize_tasks([{"id": "a", "description": "x", "dependencies": ["b"]}])
        assert json.loads(dump_tasks(tasks)) == [
            {"id": "a", "description": "x", "priority": "medium", "dependencies": ["b"], "status": "ready"}
        ]
