"""
Bounded-time polling of an async operation.

The deadline is measured from the first attempt; the interval between attempts
is constant. Attempt count is unbounded, only elapsed time ends the loop.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

from .exceptions import RemoteTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def retry(
    operation: Callable[[], Awaitable[T]],
    *,
    timeout_ms: float,
    wait_between_attempts: Callable[[], Awaitable[object]],
    error_label: str,
    clock: Callable[[], float] = time.monotonic,
) -> T:
    """
    Run ``operation`` until it returns without raising or ``timeout_ms`` elapses.

    Args:
        operation: Zero-argument coroutine function; raising marks the attempt as failed
        timeout_ms: Budget in milliseconds, counted from the first attempt
        wait_between_attempts: Delay primitive awaited between failed attempts
        error_label: Human description of what is being waited for
        clock: Monotonic clock in seconds (injectable for tests)

    Returns:
        The first successful result of ``operation``

    Raises:
        RemoteTimeoutError: "Timeout {timeout_ms}ms exceeded {error_label}. {last error}"
    """
    start = clock()
    attempt = 0

    while True:
        attempt += 1
        try:
            return await operation()
        except Exception as e:
            elapsed_ms = (clock() - start) * 1000
            if elapsed_ms >= timeout_ms:
                raise RemoteTimeoutError(
                    f"Timeout {_format_ms(timeout_ms)}ms exceeded {error_label}. {e}",
                    timeout_ms=timeout_ms,
                    label=error_label,
                    attempts=attempt,
                ) from e

            logger.debug(f"Attempt #{attempt} failed after {elapsed_ms:.0f}ms ({error_label}): {e}")
            await wait_between_attempts()


def _format_ms(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)
