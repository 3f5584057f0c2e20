"""
Retry policy for AI service calls.

Transient failures are retried in place with exponential backoff
(1s, 2s, 4s, ... with the default base delay). Fatal and validation errors
propagate on the first occurrence.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

from loguru import logger

from valkompass.core.errors import TransientServiceError

T = TypeVar("T")


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    attempts: int = 3,
    base_delay: float = 1.0,
    label: str = "AI call",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Run an async operation, retrying on TransientServiceError.

    Args:
        operation: Zero-argument coroutine factory; called once per attempt
        attempts: Total attempts including the first one
        base_delay: Wait before the second attempt, doubled for each later one
        label: Name used in log messages
        sleep: Awaitable sleep, replaceable in tests

    Returns:
        The operation's result

    Raises:
        TransientServiceError: When every attempt failed transiently
        ServiceError: Any non-transient failure, immediately
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    last_error: TransientServiceError | None = None

    for attempt in range(attempts):
        try:
            return await operation()
        except TransientServiceError as e:
            last_error = e
            if attempt == attempts - 1:
                break
            wait_time = base_delay * 2 ** attempt
            logger.warning(
                f"{label} failed on attempt {attempt + 1}/{attempts}: {e}. "
                f"Retrying in {wait_time:g}s..."
            )
            await sleep(wait_time)

    logger.error(f"{label} failed after {attempts} attempts: {last_error}")
    raise last_error
