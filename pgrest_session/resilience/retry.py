"""
Retry logic with exponential backoff for the session store.

This module retries idempotent endpoint reads that fail with a transient
error. Writes are never retried: a patch or insert that reached the
endpoint before the connection dropped must not be replayed blindly.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryConfig:
    """
    Configuration for retry behavior.

    Attributes:
        max_attempts: Maximum number of attempts, including the first call.
            Default is 1 (no retry).
        initial_delay: Delay before the first retry in seconds.
        exponential_base: Base for exponential backoff calculation.
            Default is 2.0 (delays: 0.5s, 1s, 2s with the default delay).
        max_delay: Maximum delay between retries in seconds.
            Default is None (no maximum).
        retryable_exceptions: Tuple of exception types that should
            trigger a retry.
    """
    max_attempts: int = 1
    initial_delay: float = 0.5
    exponential_base: float = 2.0
    max_delay: Optional[float] = None
    retryable_exceptions: Tuple[Type[Exception], ...] = field(
        default_factory=lambda: (Exception,)
    )


def calculate_delay(
    attempt: int,
    initial_delay: float,
    exponential_base: float,
    max_delay: Optional[float] = None
) -> float:
    """
    Calculate the delay for a given retry attempt using exponential backoff.

    The delay is calculated as: initial_delay * (exponential_base ^ attempt)

    Args:
        attempt: The current attempt number (0-indexed)
        initial_delay: The initial delay in seconds
        exponential_base: The base for exponential calculation
        max_delay: Optional maximum delay cap

    Returns:
        The calculated delay in seconds
    """
    delay = initial_delay * (exponential_base ** attempt)

    if max_delay is not None:
        delay = min(delay, max_delay)

    return delay


async def retry_async(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    config: Optional[RetryConfig] = None,
    operation_name: Optional[str] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    **kwargs: Any
) -> T:
    """
    Execute an async function with retry logic.

    When every attempt fails, the last exception is re-raised unchanged so
    callers see the same error type they would without retries.

    Example usage:
        row = await retry_async(
            self._get,
            params,
            config=RetryConfig(max_attempts=3),
            operation_name="read_one"
        )

    Args:
        func: The async function to execute
        *args: Positional arguments to pass to the function
        config: Optional RetryConfig object with retry settings
        operation_name: Optional name for logging purposes
        sleep: Awaitable used to wait between attempts
        **kwargs: Keyword arguments to pass to the function

    Returns:
        The result of the function call
    """
    effective_config = config or RetryConfig()
    op_name = operation_name or getattr(func, "__name__", "operation")
    attempts = max(1, effective_config.max_attempts)

    for attempt in range(attempts):
        try:
            return await func(*args, **kwargs)
        except effective_config.retryable_exceptions as e:
            if attempt == attempts - 1:
                if attempts > 1:
                    logger.error(
                        "Retry exhausted for operation '%s' after %d attempts. "
                        "Last error: %s",
                        op_name,
                        attempts,
                        str(e),
                        extra={
                            "extra_data": {
                                "operation": op_name,
                                "attempts": attempts,
                                "last_error": str(e),
                                "error_type": type(e).__name__
                            }
                        }
                    )
                raise

            delay = calculate_delay(
                attempt,
                effective_config.initial_delay,
                effective_config.exponential_base,
                effective_config.max_delay
            )

            logger.warning(
                "Retry attempt %d/%d for operation '%s' failed with %s: %s. "
                "Retrying in %.2f seconds...",
                attempt + 1,
                attempts,
                op_name,
                type(e).__name__,
                str(e),
                delay,
                extra={
                    "extra_data": {
                        "operation": op_name,
                        "attempt": attempt + 1,
                        "max_attempts": attempts,
                        "delay_seconds": delay,
                        "error_type": type(e).__name__
                    }
                }
            )

            await sleep(delay)

    # range(attempts) always returns or raises above
    raise AssertionError("unreachable")
