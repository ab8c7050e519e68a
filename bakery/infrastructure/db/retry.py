"""
Retry helpers for write paths that can lose a race.

Two kinds of failure are retried: a capacity slot claimed by a concurrent
writer, and MySQL deadlocks / lock wait timeouts. Anything else is re-raised
immediately.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy.exc import DBAPIError, OperationalError

from bakery.domain.errors import CapacitySlotConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# MySQL error codes
MYSQL_DEADLOCK_ERROR = "1213"
MYSQL_LOCK_WAIT_TIMEOUT = "1205"


def is_deadlock_error(error: Exception) -> bool:
    if isinstance(error, (OperationalError, DBAPIError)):
        error_str = str(error)
        return MYSQL_DEADLOCK_ERROR in error_str or MYSQL_LOCK_WAIT_TIMEOUT in error_str
    return False


def is_retryable_error(error: Exception) -> bool:
    return isinstance(error, CapacitySlotConflictError) or is_deadlock_error(error)


async def retry_on_conflict(
    func: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay: float = 0.05,
) -> T:
    """
    Run ``func`` again when it loses a race.

    Uses exponential backoff: base_delay * (2 ** attempt). The last error is
    re-raised once ``max_attempts`` is reached.

    Example:
        async def claim():
            async with tx.start():
                ...

        await retry_on_conflict(claim)
    """
    for attempt in range(max_attempts):
        try:
            return await func()
        except Exception as e:
            if not is_retryable_error(e):
                raise

            if attempt >= max_attempts - 1:
                logger.error(
                    "Write conflict persists after max retries",
                    extra={"attempts": max_attempts, "error": str(e)},
                )
                raise

            delay = base_delay * (2 ** attempt)
            logger.warning(
                "Write conflict detected, retrying",
                extra={
                    "attempt": attempt + 1,
                    "max_attempts": max_attempts,
                    "retry_delay": delay,
                    "error": str(e),
                },
            )
            await asyncio.sleep(delay)
    raise RuntimeError("Unexpected state in retry_on_conflict")
