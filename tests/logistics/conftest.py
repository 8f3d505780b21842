import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def logistics_bed():
    from logistics.domain import logistics

    bed = DomainFixture(logistics)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(logistics_bed):
    """Push the domain context for each test and clear every store afterwards."""
    with logistics_bed.domain_context():
        yield

        for _, provider in current_domain.providers.items():
            provider._data_reset()

        for _, broker in current_domain.brokers.items():
            broker._data_reset()

        current_domain.event_store.store._data_reset()


@pytest.fixture()
def settings():
    from logistics.config import Settings

    return Settings(retry_attempts=2, retry_delay_seconds=0, realtime_keepalive_seconds=0.05)


@pytest.fixture()
def executor():
    from logistics.jobs.executor.fake_adapter import FakeJobExecutor

    return FakeJobExecutor()


@pytest.fixture()
def runtime(settings, executor):
    from logistics.jobs.store.memory import InMemoryJobStore
    from logistics.runtime import LogisticsRuntime

    rt = LogisticsRuntime(settings=settings, job_store=InMemoryJobStore(), job_executor=executor)
    yield rt
    rt.close()


@pytest.fixture()
def captured(runtime):
    """Every real-time event published on the runtime's bus, in order."""
    events = []
    runtime.bus.subscribe("all", events.append)
    return events


@pytest.fixture()
def customer_id():
    from logistics.user.registration import RegisterUser

    return current_domain.process(
        RegisterUser(name="Ada Lovelace", email="ada@example.com", role="CUSTOMER"),
        asynchronous=False,
    )

