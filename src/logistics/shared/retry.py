"""Bounded retry for connection-class persistence failures."""

import structlog
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

from logistics.shared.errors import TransientStoreError

logger = structlog.get_logger(__name__)

# Everything outside this tuple propagates on the first failure.
TRANSIENT_ERRORS = (TransientStoreError, ConnectionError, TimeoutError)


def _log_retry(retry_state) -> None:
    logger.warning(
        "Transient persistence error, retrying",
        attempt=retry_state.attempt_number,
        error=str(retry_state.outcome.exception()),
    )


def with_retry(operation, *args, attempts: int = 3, delay: float = 1.0, **kwargs):
    """Run ``operation`` and retry transient failures.

    Waits ``delay``, ``2 * delay``, ... between attempts and re-raises the last
    error once ``attempts`` is exhausted.
    """
    retrying = Retrying(
        stop=stop_after_attempt(attempts),
        wait=wait_incrementing(start=delay, increment=delay),
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        before_sleep=_log_retry,
        reraise=True,
    )
    return retrying(operation, *args, **kwargs)
