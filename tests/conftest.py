"""Shared fixtures for insightboard tests.

File handling in tests:
- Use tmp_path for the job store so tests are isolated and cleaned up.
- Engines are replaced by FakeEngine; no test calls a real AI CLI.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from fakes import FakeEngine, engine_answer
from insightboard.jobs import JobService
from insightboard.store import JobStore


@pytest.fixture
def store(tmp_path: Path) -> JobStore:
    return JobStore(tmp_path / "jobs")


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine(
        engine_answer(
            {"id": "task-1", "description": "Draft the budget", "priority": "high", "dependencies": []},
            {"id": "task-2", "description": "Review the budget", "dependencies": ["task-1"]},
            {"id": "task-3", "description": "Present the budget", "priority": "urgent", "dependencies": ["task-2", "task-9"]},
        )
    )


@pytest.fixture
def service(store: JobStore, fake_engine: FakeEngine) -> JobService:
    return JobService(store, fake_engine)
