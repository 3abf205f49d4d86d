from __future__ import annotations

from webhttp.resilience.retry_policy import (
    DEFAULT_RETRYABLE_STATUS_CODES,
    IDEMPOTENT_METHODS,
    RetryExecutor,
    RetryPolicy,
    RetryStrategy,
)

__all__ = [
    "DEFAULT_RETRYABLE_STATUS_CODES",
    "IDEMPOTENT_METHODS",
    "RetryExecutor",
    "RetryPolicy",
    "RetryStrategy",
]
