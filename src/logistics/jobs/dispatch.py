"""Job dispatch — records job status and hands jobs to the executor.

A job is recorded as ``queued`` before hand-off. If the executor refuses it,
the record becomes ``failed`` with the error and the hand-off error propagates
to the caller.
"""

import structlog

from logistics.jobs.executor.port import JobExecutor
from logistics.jobs.job import JobRecord, JobStatus, generate_job_id
from logistics.jobs.store.port import JobStore
from logistics.shared.errors import JobHandoffError
from logistics.shared.retry import with_retry

logger = structlog.get_logger(__name__)


class JobDispatcher:
    def __init__(
        self,
        store: JobStore,
        executor: JobExecutor,
        retry_attempts: int = 3,
        retry_delay: float = 1.0,
    ) -> None:
        self.store = store
        self.executor = executor
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay

    def _retrying(self, operation, *args, **kwargs):
        return with_retry(operation, *args, attempts=self.retry_attempts, delay=self.retry_delay, **kwargs)

    def is_available(self) -> bool:
        return self.executor.is_available()

    def enqueue(self, job_type: str, data: dict) -> str:
        job_id = generate_job_id()
        self._retrying(self.store.save, JobRecord(job_id=job_id, type=job_type, payload=data))

        try:
            self.executor.submit(job_id, job_type, {"job_id": job_id, "type": job_type, "data": data})
        except JobHandoffError as exc:
            self.mark_failed(job_id, str(exc) or "Job hand-off failed")
            logger.error("Job hand-off failed", job_id=job_id, job_type=job_type, error=str(exc))
            raise

        logger.info("Job enqueued", job_id=job_id, job_type=job_type)
        return job_id

    def status(self, job_id: str) -> JobRecord | None:
        return self._retrying(self.store.get, job_id)

    def mark_processing(self, job_id: str) -> JobRecord | None:
        return self._retrying(self.store.update, job_id, status=JobStatus.PROCESSING)

    def mark_completed(self, job_id: str, result=None) -> JobRecord | None:
        return self._retrying(self.store.update, job_id, status=JobStatus.COMPLETED, result=result)

    def mark_failed(self, job_id: str, error: str) -> JobRecord | None:
        return self._retrying(self.store.update, job_id, status=JobStatus.FAILED, error=error)
