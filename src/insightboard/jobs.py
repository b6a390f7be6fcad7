"""Job service: runs the extraction → validation → status pipeline and serves completions."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

from insightboard import log
from insightboard.engines.base import EngineBase
from insightboard.errors import UpstreamFailure, ValidationError
from insightboard.extraction import extract_tasks
from insightboard.status import classify, complete
from insightboard.store import JobStore, transcript_hash, utc_now
from insightboard.tasks.model import CycleReport, Job, JobStatus, Task
from insightboard.tasks.validate import RemovedDependency, detect_cycles, sanitize


def analyze(tasks: Sequence[Task]) -> tuple[list[Task], CycleReport, list[RemovedDependency]]:
    """Pure graph pipeline on normalized tasks: sanitize, detect cycles, classify."""
    removed: list[RemovedDependency] = []
    clean = sanitize(tasks, on_removed=removed.append)
    report = detect_cycles(clean)
    return classify(clean, report.cycle_details), report, removed


class JobService:
    def __init__(self, store: JobStore, engine: EngineBase | None = None, *, timeout: int | None = None) -> None:
        self.store = store
        self.engine = engine
        self.timeout = timeout

    # ── submission ───────────────────────────────────────────────

    def submit(self, transcript: str) -> tuple[Job, bool]:
        """Create and process a job for *transcript*.

        Returns ``(job, cached)``. Resubmitting the same text (ignoring case
        and surrounding whitespace) returns the existing job with
        ``cached=True`` and does not call the engine again.
        """
        if not transcript or not transcript.strip():
            raise ValidationError("Transcript is required")

        existing = self.store.find_by_hash(transcript_hash(transcript))
        if existing is not None and existing.status == JobStatus.FAILED:
            # An explicit resubmission is the caller's retry; reuse the job id.
            log.info(f"Previous attempt for job {existing.job_id} failed, reprocessing")
            retry = replace(existing, status=JobStatus.PROCESSING, error_message="", completed_at="")
            self.store.save(retry)
            return self.process(retry), False
        if existing is not None:
            log.job_step(existing.job_id, "transcript already submitted")
            return existing, True

        job = self.store.create(transcript)
        log.job_step(job.job_id, "created")
        return self.process(job), False

    def process(self, job: Job) -> Job:
        """Run extraction and graph validation for *job* and persist the outcome.

        On :class:`ValidationError` or :class:`UpstreamFailure` the job is saved
        as failed with the error message and the error is re-raised. Any other
        exception from extraction is raised as an :class:`UpstreamFailure`. No task
        list is stored for a failed job.
        """
        if self.engine is None:
            raise UpstreamFailure("No extraction engine configured", kind="unavailable")

        try:
            log.job_step(job.job_id, f"extracting tasks with {self.engine.name}")
            raw_tasks = extract_tasks(self.engine, job.transcript, timeout=self.timeout)
        except (ValidationError, UpstreamFailure) as exc:
            self._fail(job, exc)
            raise
        except Exception as exc:
            wrapped = UpstreamFailure(
                f"Failed to generate tasks ({self.engine.name}): {exc}",
                kind="engine",
                detail=str(exc),
            )
            self._fail(job, wrapped)
            raise wrapped from exc

        tasks, report, removed = analyze(raw_tasks)
        for item in removed:
            log.warn(str(item))
        if report.has_cycles:
            log.warn(f"Cycles detected: {', '.join(report.cycle_details)}")

        done = replace(
            job,
            tasks=tasks,
            has_cycles=report.has_cycles,
            cycle_details=report.cycle_details,
            status=JobStatus.COMPLETED,
            error_message="",
            completed_at=utc_now(),
        )
        self.store.save(done)
        log.job_step(job.job_id, f"completed with {len(tasks)} task(s)")
        return done

    def _fail(self, job: Job, exc: Exception) -> None:
        log.error(f"Job {job.job_id} failed: {exc}")
        self.store.save(replace(job, status=JobStatus.FAILED, error_message=str(exc), tasks=[]))

    # ── queries ──────────────────────────────────────────────────

    def get_job(self, job_id: str) -> Job:
        return self.store.get(job_id)

    def list_jobs(self, limit: int = 20) -> list[Job]:
        return self.store.list_recent(limit)

    # ── completion ───────────────────────────────────────────────

    def complete_task(self, job_id: str, task_id: str) -> Job:
        """Mark *task_id* completed in *job_id* and persist the propagated statuses.

        Raises :class:`JobNotFoundError` or :class:`TaskNotFoundError`; in
        both cases nothing is written.
        """

        def _apply(job: Job) -> Job:
            return replace(job, tasks=complete(job.tasks, task_id))

        job = self.store.update(job_id, _apply)
        log.job_step(job_id, f"task {task_id} completed")
        return job
