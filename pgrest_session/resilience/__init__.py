"""
Resilience patterns for the session store.

This package provides retry logic with exponential backoff for
idempotent reads against the remote session table.
"""

from pgrest_session.resilience.retry import (
    RetryConfig,
    calculate_delay,
    retry_async,
)

__all__ = [
    "RetryConfig",
    "calculate_delay",
    "retry_async",
]
