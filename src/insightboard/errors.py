"""Error taxonomy surfaced by the job pipeline and the completion surface."""

from __future__ import annotations


class InsightBoardError(Exception):
    """Base class for every error this package raises on purpose."""


class ValidationError(InsightBoardError):
    """Input (transcript or extracted task list) is malformed."""


class NotFoundError(InsightBoardError):
    """A referenced job or task does not exist."""


class JobNotFoundError(NotFoundError):
    def __init__(self, job_id: str) -> None:
        super().__init__(f"Job not found: {job_id}")
        self.job_id = job_id


class TaskNotFoundError(NotFoundError):
    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class UpstreamFailure(InsightBoardError):
    """The extraction engine failed or produced output we cannot use.

    ``kind`` is one of the labels returned by
    :func:`insightboard.engine_errors.classify_engine_error` or
    ``"unparseable"`` when the engine answered but not with a JSON task array.
    """

    def __init__(self, message: str, *, kind: str = "engine", detail: str = "") -> None:
        super().__init__(message)
        self.kind = kind
        self.detail = detail


class JobLockedError(InsightBoardError):
    """Another writer kept the job locked past the store's lock timeout."""

    def __init__(self, job_id: str) -> None:
        super().__init__(f"Job is being updated by another process: {job_id}")
        self.job_id = job_id
