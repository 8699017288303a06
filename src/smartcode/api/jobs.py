"""
Background job tracking for long-running index runs.

At most one job of a given type is queued or running at a time. Admission
is decided atomically by :meth:`JobManager.create_if_idle`.
"""
from __future__ import annotations

import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional


JobStatus = Literal["queued", "running", "completed", "failed"]

INDEX_JOB = "index"
_OPEN_STATUSES = ("queued", "running")


@dataclass
class JobInfo:
    id: str
    type: str
    status: JobStatus = "queued"
    stage: Optional[str] = None
    progress: Dict[str, object] = field(default_factory=dict)
    result: Optional[Dict[str, object]] = None
    error: Optional[str] = None
    created_at: float = field(default_factory=time.time)
    updated_at: float = field(default_factory=time.time)

    @property
    def is_open(self) -> bool:
        return self.status in _OPEN_STATUSES

    def duration_ms(self) -> float:
        return (self.updated_at - self.created_at) * 1000.0


class JobManager:
    """Thread-safe in-memory job registry with one open job per type."""

    def __init__(self) -> None:
        self._jobs: Dict[str, JobInfo] = {}
        self._lock = threading.Lock()

    def _open_job(self, job_type: str) -> Optional[JobInfo]:
        # Caller holds the lock.
        for job in self._jobs.values():
            if job.type == job_type and job.is_open:
                return job
        return None

    def create_if_idle(
        self, job_type: str, metadata: Optional[Dict[str, object]] = None
    ) -> Optional[JobInfo]:
        """
        Register a queued job unless one of ``job_type`` is already open.

        Returns the new job, or None when another job of the same type is
        queued or running. The check and the insert share one lock.
        """
        with self._lock:
            if self._open_job(job_type) is not None:
                return None
            info = JobInfo(
                id=str(uuid.uuid4()), type=job_type, progress={"metadata": metadata or {}}
            )
            self._jobs[info.id] = info
        return info

    def active(self, job_type: str) -> Optional[JobInfo]:
        """Return the queued or running job of ``job_type``, if any."""
        with self._lock:
            return self._open_job(job_type)

    def list(self) -> List[JobInfo]:
        with self._lock:
            return sorted(self._jobs.values(), key=lambda job: job.created_at)

    def get(self, job_id: str) -> Optional[JobInfo]:
        with self._lock:
            return self._jobs.get(job_id)

    def set_status(self, job_id: str, status: JobStatus, stage: Optional[str] = None) -> None:
        with self._lock:
            job = self._jobs[job_id]
            job.status = status
            if stage:
                job.stage = stage
            job.updated_at = time.time()

    def update_stage(self, job_id: str, stage: str) -> None:
        with self._lock:
            job = self._jobs[job_id]
            job.stage = stage
            job.updated_at = time.time()

    def update_progress(self, job_id: str, **fields: object) -> None:
        with self._lock:
            job = self._jobs[job_id]
            job.progress.update(fields)
            job.updated_at = time.time()

    def complete(self, job_id: str, result: Optional[Dict[str, object]] = None) -> None:
        with self._lock:
            job = self._jobs[job_id]
            job.status = "completed"
            job.result = result
            job.updated_at = time.time()

    def fail(self, job_id: str, error: str) -> None:
        with self._lock:
            job = self._jobs[job_id]
            job.status = "failed"
            job.error = error
            job.updated_at = time.time()
