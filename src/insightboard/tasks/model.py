"""Task, cycle report and job data models shared by the graph engine and the store."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @classmethod
    def coerce(cls, raw: object) -> Priority:
        """Map arbitrary input to a priority, defaulting to MEDIUM."""
        if isinstance(raw, cls):
            return raw
        if isinstance(raw, str):
            try:
                return cls(raw.strip().lower())
            except ValueError:
                pass
        return cls.MEDIUM


class TaskStatus(str, Enum):
    READY = "ready"
    BLOCKED = "blocked"
    ERROR = "error"
    COMPLETED = "completed"

    @classmethod
    def coerce(cls, raw: object) -> TaskStatus:
        if isinstance(raw, cls):
            return raw
        if isinstance(raw, str):
            try:
                return cls(raw.strip().lower())
            except ValueError:
                pass
        return cls.READY


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class Task:
    id: str
    description: str = ""
    priority: Priority = Priority.MEDIUM
    dependencies: list[str] = field(default_factory=list)
    status: TaskStatus = TaskStatus.READY
    error_message: str = ""

    def copy(self) -> Task:
        """Return an independent copy (the dependency list is not shared)."""
        return Task(
            id=self.id,
            description=self.description,
            priority=self.priority,
            dependencies=list(self.dependencies),
            status=self.status,
            error_message=self.error_message,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "description": self.description,
            "priority": self.priority.value,
            "dependencies": list(self.dependencies),
            "status": self.status.value,
        }
        if self.error_message:
            data["errorMessage"] = self.error_message
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        """Rebuild a stored task. Use ``tasks.io.normalize_tasks`` for untrusted input."""
        return cls(
            id=str(data["id"]),
            description=str(data.get("description", "")),
            priority=Priority.coerce(data.get("priority")),
            dependencies=[str(d) for d in data.get("dependencies") or []],
            status=TaskStatus.coerce(data.get("status")),
            error_message=str(data.get("errorMessage", "") or ""),
        )


@dataclass
class CycleReport:
    has_cycles: bool = False
    cycle_details: list[str] = field(default_factory=list)
    cycles: list[list[str]] = field(default_factory=list)


@dataclass
class Job:
    job_id: str
    transcript: str = ""
    transcript_hash: str = ""
    tasks: list[Task] = field(default_factory=list)
    has_cycles: bool = False
    cycle_details: list[str] = field(default_factory=list)
    status: JobStatus = JobStatus.PENDING
    error_message: str = ""
    created_at: str = ""
    completed_at: str = ""

    def get_task(self, task_id: str) -> Task | None:
        for t in self.tasks:
            if t.id == task_id:
                return t
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "jobId": self.job_id,
            "transcript": self.transcript,
            "transcriptHash": self.transcript_hash,
            "tasks": [t.to_dict() for t in self.tasks],
            "hasCycles": self.has_cycles,
            "cycleDetails": list(self.cycle_details),
            "status": self.status.value,
            "errorMessage": self.error_message,
            "createdAt": self.created_at,
            "completedAt": self.completed_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Job:
        return cls(
            job_id=str(data["jobId"]),
            transcript=str(data.get("transcript", "")),
            transcript_hash=str(data.get("transcriptHash", "")),
            tasks=[Task.from_dict(t) for t in data.get("tasks") or []],
            has_cycles=bool(data.get("hasCycles", False)),
            cycle_details=[str(c) for c in data.get("cycleDetails") or []],
            status=JobStatus(data.get("status", JobStatus.PENDING.value)),
            error_message=str(data.get("errorMessage", "") or ""),
            created_at=str(data.get("createdAt", "") or ""),
            completed_at=str(data.get("completedAt", "") or ""),
        )
