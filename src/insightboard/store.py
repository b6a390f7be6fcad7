"""File-backed job store: one directory per job under the store root.

Layout::

    <root>/<job_id>/job.json
    <root>/<job_id>/job.lock     # present while an update is in flight

Each write replaces ``job.json`` atomically. Read-modify-write sequences go
through :meth:`JobStore.update`, which takes an in-process lock and then the
job's lock file (created with ``O_CREAT | O_EXCL``), so completions from
separate threads or separate ``insightboard`` processes are serialised.
"""

from __future__ import annotations

import hashlib
import json
import os
import threading
import time
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from insightboard import log
from insightboard.errors import JobLockedError, JobNotFoundError
from insightboard.io_utils import read_json, write_json
from insightboard.tasks.model import Job, JobStatus

JOB_FILE = "job.json"
LOCK_FILE = "job.lock"

DEFAULT_LOCK_TIMEOUT = 10.0
_LOCK_POLL = 0.05
# A lock file older than this is left over from a crashed writer.
_STALE_LOCK_AGE = 60.0


def transcript_hash(transcript: str) -> str:
    """Deduplication key: sha256 of the trimmed, lower-cased transcript."""
    return hashlib.sha256(transcript.strip().lower().encode("utf-8")).hexdigest()


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


class JobStore:
    def __init__(self, root: Path | str, *, lock_timeout: float = DEFAULT_LOCK_TIMEOUT) -> None:
        self.root = Path(root)
        self.lock_timeout = lock_timeout
        self._lock = threading.Lock()

    def _job_path(self, job_id: str) -> Path:
        # Job ids are uuid4 hex strings; anything else cannot name a job dir.
        if not job_id or any(c in job_id for c in "/\\.") or job_id != job_id.strip():
            raise JobNotFoundError(job_id)
        return self.root / job_id / JOB_FILE

    # ── reads ────────────────────────────────────────────────────

    def get(self, job_id: str) -> Job:
        path = self._job_path(job_id)
        if not path.is_file():
            raise JobNotFoundError(job_id)
        return Job.from_dict(read_json(path))

    def exists(self, job_id: str) -> bool:
        try:
            return self._job_path(job_id).is_file()
        except JobNotFoundError:
            return False

    def _iter_jobs(self) -> list[Job]:
        if not self.root.is_dir():
            return []
        jobs: list[Job] = []
        for path in self.root.glob(f"*/{JOB_FILE}"):
            try:
                jobs.append(Job.from_dict(read_json(path)))
            except (json.JSONDecodeError, KeyError, ValueError) as exc:
                log.warn(f"Skipping unreadable job file {path}: {exc}")
        return jobs

    def find_by_hash(self, digest: str) -> Job | None:
        """Return the oldest job for this transcript hash, if any."""
        matches = [j for j in self._iter_jobs() if j.transcript_hash == digest]
        if not matches:
            return None
        return min(matches, key=lambda j: j.created_at)

    def list_recent(self, limit: int = 20) -> list[Job]:
        jobs = sorted(self._iter_jobs(), key=lambda j: j.created_at, reverse=True)
        return jobs[:limit] if limit > 0 else jobs

    # ── writes ───────────────────────────────────────────────────

    def create(self, transcript: str) -> Job:
        job = Job(
            job_id=uuid.uuid4().hex,
            transcript=transcript,
            transcript_hash=transcript_hash(transcript),
            status=JobStatus.PROCESSING,
            created_at=utc_now(),
        )
        self.save(job)
        return job

    def save(self, job: Job) -> None:
        write_json(self._job_path(job.job_id), job.to_dict())

    def update(self, job_id: str, fn: Callable[[Job], Job]) -> Job:
        """Load *job_id*, apply *fn*, persist and return the result, under the job lock.

        Exceptions from *fn* propagate and nothing is written. Raises
        :class:`JobLockedError` when another writer holds the job longer than
        ``lock_timeout`` seconds.
        """
        with self._lock:
            if not self._job_path(job_id).is_file():
                raise JobNotFoundError(job_id)
            with self._job_lock(job_id):
                job = self.get(job_id)
                updated = fn(job)
                self.save(updated)
                return updated

    # ── cross-process locking ────────────────────────────────────

    @contextmanager
    def _job_lock(self, job_id: str) -> Iterator[None]:
        path = self._job_path(job_id).with_name(LOCK_FILE)
        deadline = time.monotonic() + self.lock_timeout
        while True:
            try:
                fd = os.open(str(path), os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o600)
            except FileExistsError:
                if self._break_stale_lock(path):
                    continue
                if time.monotonic() >= deadline:
                    raise JobLockedError(job_id) from None
                time.sleep(_LOCK_POLL)
                continue
            os.write(fd, str(os.getpid()).encode("ascii"))
            os.close(fd)
            break
        try:
            yield
        finally:
            path.unlink(missing_ok=True)

    @staticmethod
    def _break_stale_lock(path: Path) -> bool:
        try:
            age = time.time() - path.stat().st_mtime
        except FileNotFoundError:
            return True
        if age < _STALE_LOCK_AGE:
            return False
        log.warn(f"Removing stale lock {path} ({age:.0f}s old)")
        path.unlink(missing_ok=True)
        return True
