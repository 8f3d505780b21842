"""Job status stores.

``build_job_store()`` picks the implementation named by settings:
- InMemoryJobStore for development and testing
- RedisJobStore for deployments with a Redis instance
"""

from logistics.jobs.store.memory import InMemoryJobStore
from logistics.jobs.store.port import JobStore


def build_job_store(settings) -> JobStore:
    if settings.job_store == "redis":
        from logistics.jobs.store.redis_store import RedisJobStore

        return RedisJobStore.from_url(settings.redis_url)
    return InMemoryJobStore()
