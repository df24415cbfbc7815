# modeforge/job_store.py

import threading
import time
from typing import Dict, Optional

from modeforge.entities import JobKind, JobState, JobStatus, utc_now_iso
from modeforge.errors import InvalidTransition, NotFoundError

# generating -> compiling -> completed|failed; failed is also reachable from generating
_ALLOWED_TRANSITIONS: Dict[str, tuple] = {
    "generating": ("compiling", "failed"),
    "compiling": ("completed", "failed"),
    "completed": (),
    "failed": (),
}


class JobStore:
    """
    Process-local map of job-id -> JobState.

    - No persistence: jobs are lost on restart.
    - Jobs are never deleted.
    - Thread-safe (mutated from worker threads, read from request handlers).
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._jobs: Dict[str, JobState] = {}
        self._last_id = 0

    def _next_id_unlocked(self) -> str:
        # time-derived (ms) but strictly increasing, so two requests in the same ms differ
        candidate = int(time.time() * 1000)
        if candidate <= self._last_id:
            candidate = self._last_id + 1
        self._last_id = candidate
        return str(candidate)

    def create(self, device_type: str, kind: JobKind = "generate", smart_name: Optional[str] = None) -> str:
        with self._lock:
            job_id = self._next_id_unlocked()
            self._jobs[job_id] = JobState(
                job_id=job_id,
                kind=kind,
                device_type=device_type or "",
                smart_name=smart_name,
            )
            return job_id

    def get(self, job_id: str) -> JobState:
        """
        Returns a COPY of the job state. Raises NotFoundError.
        """
        with self._lock:
            job = self._jobs.get(str(job_id))
            if job is None:
                raise NotFoundError(f"Job not found: {job_id}")
            return job.model_copy(deep=True)

    def transition(self, job_id: str, status: JobStatus, **fields) -> JobState:
        with self._lock:
            job = self._jobs.get(str(job_id))
            if job is None:
                raise NotFoundError(f"Job not found: {job_id}")
            if status not in _ALLOWED_TRANSITIONS[job.status]:
                raise InvalidTransition(f"Job {job_id}: {job.status} -> {status} is not allowed")
            job.status = status
            for key, value in fields.items():
                setattr(job, key, value)
            job.updated_at = utc_now_iso()
            return job.model_copy(deep=True)

    def snapshot(self) -> list:
        with self._lock:
            return [job.model_copy(deep=True) for job in self._jobs.values()]

    def annotate(self, job_id: str, **fields) -> JobState:
        """
        Attach details (smart name, paths) without changing the status.
        """
        with self._lock:
            job = self._jobs.get(str(job_id))
            if job is None:
                raise NotFoundError(f"Job not found: {job_id}")
            for key, value in fields.items():
                setattr(job, key, value)
            job.updated_at = utc_now_iso()
            return job.model_copy(deep=True)
