"""Configurable fake job executor for development and testing.

Submitted jobs are kept in ``submitted`` until a test (or a developer) runs
them with ``drain()``, which calls the worker the way the real callback would.
"""

from logistics.jobs.executor.port import JobExecutor
from logistics.shared.errors import JobHandoffError


class FakeJobExecutor(JobExecutor):
    def __init__(self, available: bool = False) -> None:
        self.available = available
        self.should_accept: bool = True
        self.failure_reason: str = "Executor rejected the job"
        self.callback_signature: str = "test-signature"
        self.submitted: list[dict] = []

    def configure(
        self,
        available: bool | None = None,
        should_accept: bool | None = None,
        failure_reason: str | None = None,
        callback_signature: str | None = None,
    ) -> None:
        if available is not None:
            self.available = available
        if should_accept is not None:
            self.should_accept = should_accept
        if failure_reason is not None:
            self.failure_reason = failure_reason
        if callback_signature is not None:
            self.callback_signature = callback_signature

    def is_available(self) -> bool:
        return self.available

    def submit(self, job_id: str, job_type: str, body: dict) -> None:
        if not self.should_accept:
            raise JobHandoffError(self.failure_reason)
        self.submitted.append({"job_id": job_id, "type": job_type, "body": body})

    def verify_callback_signature(self, body: bytes, signature: str) -> bool:
        return bool(signature) and signature == self.callback_signature

    def drain(self, worker) -> list:
        """Process every submitted job with ``worker`` in submission order."""
        pending, self.submitted = self.submitted, []
        return [worker.process(job["body"]) for job in pending]
