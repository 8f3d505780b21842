"""Job executors.

``build_job_executor()`` picks the implementation named by settings:
- FakeJobExecutor for development and testing
- HttpJobExecutor for deployments with a public callback URL
"""

from logistics.jobs.executor.fake_adapter import FakeJobExecutor
from logistics.jobs.executor.http_adapter import HttpJobExecutor
from logistics.jobs.executor.port import JobExecutor


def build_job_executor(settings) -> JobExecutor:
    if settings.job_executor == "http":
        return HttpJobExecutor(
            token=settings.job_executor_token,
            public_app_url=settings.public_app_url,
            retries=settings.retry_attempts,
            signing_key=settings.job_signing_key,
            next_signing_key=settings.job_next_signing_key,
        )
    return FakeJobExecutor()
