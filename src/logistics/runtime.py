"""Explicit runtime context for the logistics service.

Everything that would otherwise be a module-level singleton (event bus, job
dispatcher, entity locks) lives on one ``LogisticsRuntime`` built at process
start and passed to whoever needs it. Tests build their own.
"""

import structlog

from logistics.config import Settings
from logistics.fleet.simulation import FleetSimulator
from logistics.jobs.dispatch import JobDispatcher
from logistics.jobs.executor import build_job_executor
from logistics.jobs.executor.port import JobExecutor
from logistics.jobs.store import build_job_store
from logistics.jobs.store.port import JobStore
from logistics.jobs.worker import ShipmentJobWorker
from logistics.realtime.bus import EventBus
from logistics.realtime.stream import SubscriberConnection
from logistics.shared.locks import EntityLocks

logger = structlog.get_logger(__name__)


class LogisticsRuntime:
    def __init__(
        self,
        settings: Settings | None = None,
        job_store: JobStore | None = None,
        job_executor: JobExecutor | None = None,
        bus: EventBus | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.bus = bus or EventBus()
        self.locks = EntityLocks()

        store = job_store or build_job_store(self.settings)
        executor = job_executor or build_job_executor(self.settings)
        retry = {
            "retry_attempts": self.settings.retry_attempts,
            "retry_delay": self.settings.retry_delay_seconds,
        }
        self.dispatcher = JobDispatcher(store, executor, **retry)
        self.worker = ShipmentJobWorker(self.dispatcher, self.locks, self.bus, **retry)
        self.simulator = FleetSimulator(self.locks, self.bus, **retry)

    @classmethod
    def from_env(cls) -> "LogisticsRuntime":
        runtime = cls(Settings.from_env())
        logger.info(
            "Logistics runtime ready",
            job_store=runtime.settings.job_store,
            job_executor=runtime.settings.job_executor,
            async_jobs=runtime.dispatcher.is_available(),
        )
        return runtime

    def connect(self, channel: str = "all") -> SubscriberConnection:
        return SubscriberConnection(
            self.bus,
            channel=channel,
            keepalive_seconds=self.settings.realtime_keepalive_seconds,
            max_pending=self.settings.realtime_queue_size,
        )

    def close(self) -> None:
        self.dispatcher.store.close()
