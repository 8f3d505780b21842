"""Redis-backed job store — one hash per job at ``job:<id>``.

Connection-class failures surface as ``TransientStoreError`` so callers can
retry them.
"""

import json

import redis
import structlog

from logistics.jobs.job import JOB_TTL_SECONDS, JobRecord, JobStatus, now_ms
from logistics.jobs.store.port import JobStore
from logistics.shared.errors import TransientStoreError

logger = structlog.get_logger(__name__)


def job_key(job_id: str) -> str:
    return f"job:{job_id}"


class RedisJobStore(JobStore):
    def __init__(self, client: redis.Redis, ttl_seconds: int = JOB_TTL_SECONDS) -> None:
        self.client = client
        self.ttl_seconds = ttl_seconds

    @classmethod
    def from_url(cls, url: str) -> "RedisJobStore":
        return cls(redis.Redis.from_url(url, decode_responses=True))

    @staticmethod
    def _encode(fields: dict) -> dict:
        encoded = {}
        for key, value in fields.items():
            if value is None:
                continue
            if key in ("payload", "result"):
                encoded[key] = json.dumps(value)
            elif isinstance(value, JobStatus):
                encoded[key] = value.value
            else:
                encoded[key] = str(value)
        return encoded

    @staticmethod
    def _decode(job_id: str, raw: dict) -> JobRecord:
        return JobRecord(
            job_id=job_id,
            type=raw.get("type", ""),
            status=JobStatus(raw.get("status") or JobStatus.QUEUED.value),
            payload=json.loads(raw["payload"]) if raw.get("payload") else {},
            result=json.loads(raw["result"]) if raw.get("result") else None,
            error=raw.get("error"),
            created_at=int(raw.get("created_at") or 0),
            updated_at=int(raw.get("updated_at") or 0),
        )

    def _write(self, job_id: str, fields: dict) -> None:
        key = job_key(job_id)
        try:
            pipe = self.client.pipeline()
            pipe.hset(key, mapping=self._encode(fields))
            status = fields.get("status")
            if status is not None and JobStatus(status).is_terminal:
                pipe.expire(key, self.ttl_seconds)
            pipe.execute()
        except (redis.ConnectionError, redis.TimeoutError) as exc:
            raise TransientStoreError(str(exc)) from exc

    def save(self, record: JobRecord) -> None:
        self._write(record.job_id, record.model_dump())

    def update(self, job_id: str, **fields) -> JobRecord | None:
        try:
            exists = self.client.exists(job_key(job_id))
        except (redis.ConnectionError, redis.TimeoutError) as exc:
            raise TransientStoreError(str(exc)) from exc
        if not exists:
            return None
        self._write(job_id, {**fields, "updated_at": now_ms()})
        return self.get(job_id)

    def get(self, job_id: str) -> JobRecord | None:
        try:
            raw = self.client.hgetall(job_key(job_id))
        except (redis.ConnectionError, redis.TimeoutError) as exc:
            raise TransientStoreError(str(exc)) from exc
        if not raw:
            return None
        return self._decode(job_id, raw)

    def close(self) -> None:
        self.client.close()
