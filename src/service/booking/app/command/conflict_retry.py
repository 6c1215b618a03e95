from typing import Awaitable, Callable, TypeVar

import anyio

from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.booking.domain.booking_errors import (
    BookingWriteConflictError,
    ConflictRetryExhaustedError,
)


_T = TypeVar('_T')


async def run_with_conflict_retry(
    attempt: Callable[[], Awaitable[_T]],
    *,
    operation: str,
    max_retries: int,
    base_delay: float,
    max_delay: float = 1.0,
) -> _T:
    """
    Run `attempt` (one complete unit of work), re-running it from scratch when
    it loses a write race. Only BookingWriteConflictError is retried; every
    other error propagates on the first occurrence.
    """
    max_attempts = max(1, max_retries + 1)
    for attempt_no in range(1, max_attempts + 1):
        try:
            return await attempt()
        except BookingWriteConflictError:
            metrics.record_write_conflict(operation=operation)
            Logger.base.warning(
                f'🔁 [{operation.upper()}] Write conflict, attempt {attempt_no}/{max_attempts}'
            )
            if attempt_no < max_attempts:
                await anyio.sleep(min(base_delay * 2 ** (attempt_no - 1), max_delay))

    raise ConflictRetryExhaustedError(attempts=max_attempts)
