"""Runtime settings read from environment variables.

    JOB_STORE                   memory | redis          (default memory)
    REDIS_URL                   redis connection URL    (default redis://localhost:6379/0)
    JOB_EXECUTOR                fake | http             (default fake)
    JOB_EXECUTOR_TOKEN          bearer token for the HTTP executor
    PUBLIC_APP_URL              public base URL the executor calls back
    JOB_SIGNING_KEY             current key the relay signs worker callbacks with
    JOB_NEXT_SIGNING_KEY        next key, accepted while keys rotate
    REALTIME_KEEPALIVE_SECONDS  ping interval for live subscribers (default 30)
    REALTIME_QUEUE_SIZE         undelivered events before a subscriber is dropped (default 100)
    RETRY_ATTEMPTS              attempts for transient store failures (default 3)
    RETRY_DELAY_SECONDS         base delay between attempts (default 1.0)
"""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    job_store: str = "memory"
    redis_url: str = "redis://localhost:6379/0"
    job_executor: str = "fake"
    job_executor_token: str | None = None
    public_app_url: str | None = None
    job_signing_key: str | None = None
    job_next_signing_key: str | None = None
    realtime_keepalive_seconds: float = 30.0
    realtime_queue_size: int = 100
    retry_attempts: int = 3
    retry_delay_seconds: float = 1.0

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            job_store=env.get("JOB_STORE", "memory").lower(),
            redis_url=env.get("REDIS_URL", "redis://localhost:6379/0"),
            job_executor=env.get("JOB_EXECUTOR", "fake").lower(),
            job_executor_token=env.get("JOB_EXECUTOR_TOKEN") or None,
            public_app_url=env.get("PUBLIC_APP_URL") or None,
            job_signing_key=env.get("JOB_SIGNING_KEY") or None,
            job_next_signing_key=env.get("JOB_NEXT_SIGNING_KEY") or None,
            realtime_keepalive_seconds=float(env.get("REALTIME_KEEPALIVE_SECONDS", 30)),
            realtime_queue_size=int(env.get("REALTIME_QUEUE_SIZE", 100)),
            retry_attempts=int(env.get("RETRY_ATTEMPTS", 3)),
            retry_delay_seconds=float(env.get("RETRY_DELAY_SECONDS", 1.0)),
        )
