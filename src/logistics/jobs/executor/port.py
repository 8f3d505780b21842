"""Job executor port (abstract interface).

An executor accepts a job for asynchronous delivery to the worker callback.
Swapping ``FakeJobExecutor`` (dev/test) for ``HttpJobExecutor`` (deployed)
changes nothing in the dispatcher or the shipment service.
"""

from abc import ABC, abstractmethod


class JobExecutor(ABC):
    @abstractmethod
    def is_available(self) -> bool:
        """Whether jobs can be handed off in this environment."""
        ...

    @abstractmethod
    def submit(self, job_id: str, job_type: str, body: dict) -> None:
        """Hand the job off; raise ``JobHandoffError`` if it was not accepted."""
        ...

    @abstractmethod
    def verify_callback_signature(self, body: bytes, signature: str) -> bool:
        """Whether a worker callback carrying ``body`` was signed by this executor's relay."""
        ...
