"""
Token polling for the device and authorization-code flows.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, TypeVar

from ..types.errors import AuthorizationPendingError, FederationTimeoutError


logger = logging.getLogger(__name__)

T = TypeVar('T')

DEFAULT_POLL_INTERVAL = 1.0


async def poll_for_token(
    operation: Callable[[], Awaitable[T]],
    timeout: float,
    interval: Optional[float] = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
) -> T:
    """
    Call ``operation`` until it succeeds or ``timeout`` elapses.

    Only AuthorizationPendingError is retried; it waits ``interval``
    seconds (1 second when the server suggests none) before the next
    attempt. Every other error propagates immediately. The deadline is
    checked before each attempt.

    Raises:
        FederationTimeoutError: authorization still pending at the deadline
    """
    wait = interval if interval and interval > 0 else DEFAULT_POLL_INTERVAL
    deadline = clock() + timeout
    attempts = 0

    while clock() < deadline:
        attempts += 1
        try:
            return await operation()
        except AuthorizationPendingError:
            logger.debug(f"Authorization pending after {attempts} attempts, retrying in {wait}s")
        remaining = deadline - clock()
        if remaining <= 0:
            break
        await sleep(min(wait, remaining))

    raise FederationTimeoutError(
        f"Authorization was not completed within {timeout} seconds",
        timeout=timeout
    )
