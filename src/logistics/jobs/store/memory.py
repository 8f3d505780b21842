"""In-memory job store for development and testing.

Finished jobs are kept for the TTL and then dropped. Expired records are
swept on every write, so the store stays bounded without a reader.
"""

import threading
import time

from logistics.jobs.job import JOB_TTL_SECONDS, JobRecord, JobStatus, now_ms
from logistics.jobs.store.port import JobStore


class InMemoryJobStore(JobStore):
    def __init__(self, ttl_seconds: int = JOB_TTL_SECONDS, clock=time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._records: dict[str, JobRecord] = {}
        self._expires_at: dict[str, float] = {}

    def _expire(self, job_id: str) -> None:
        deadline = self._expires_at.get(job_id)
        if deadline is not None and self._clock() >= deadline:
            self._records.pop(job_id, None)
            self._expires_at.pop(job_id, None)

    def _sweep(self) -> None:
        now = self._clock()
        for job_id in [j for j, deadline in self._expires_at.items() if now >= deadline]:
            self._records.pop(job_id, None)
            self._expires_at.pop(job_id, None)

    def _track_expiry(self, record: JobRecord) -> None:
        if record.status.is_terminal:
            self._expires_at[record.job_id] = self._clock() + self.ttl_seconds
        else:
            self._expires_at.pop(record.job_id, None)

    def save(self, record: JobRecord) -> None:
        with self._lock:
            self._sweep()
            self._records[record.job_id] = record.model_copy(deep=True)
            self._track_expiry(record)

    def update(self, job_id: str, **fields) -> JobRecord | None:
        with self._lock:
            self._sweep()
            current = self._records.get(job_id)
            if current is None:
                return None
            if "status" in fields:
                fields["status"] = JobStatus(fields["status"])
            updated = current.model_copy(update={**fields, "updated_at": now_ms()})
            self._records[job_id] = updated
            self._track_expiry(updated)
            return updated.model_copy(deep=True)

    def get(self, job_id: str) -> JobRecord | None:
        with self._lock:
            self._expire(job_id)
            record = self._records.get(job_id)
            return record.model_copy(deep=True) if record else None

    def __len__(self) -> int:
        with self._lock:
            self._sweep()
            return len(self._records)
