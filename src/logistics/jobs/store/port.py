"""Job store port (abstract interface).

Stores job status records keyed by job id. Terminal records expire
``JOB_TTL_SECONDS`` after they become terminal.
"""

from abc import ABC, abstractmethod

from logistics.jobs.job import JobRecord


class JobStore(ABC):
    @abstractmethod
    def save(self, record: JobRecord) -> None:
        """Create the record or overwrite every field of an existing one."""
        ...

    @abstractmethod
    def update(self, job_id: str, **fields) -> JobRecord | None:
        """Merge ``fields`` into an existing record; ``None`` if it is unknown."""
        ...

    @abstractmethod
    def get(self, job_id: str) -> JobRecord | None: ...

    def close(self) -> None:
        return None
