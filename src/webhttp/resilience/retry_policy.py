"""Connection-level retry policy applied by the transport."""

from __future__ import annotations

import asyncio
import enum
import inspect
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

from webhttp.client.errors import TransportRequestError, TransportResponseError

logger = logging.getLogger(__name__)

T = TypeVar("T")
CallableResult = Callable[..., T | Awaitable[T]]

IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "PUT", "DELETE"})
DEFAULT_RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})


class RetryStrategy(str, enum.Enum):
    """Retry delay calculation strategies."""

    FIXED = "fixed"
    EXPONENTIAL = "exponential"
    LINEAR = "linear"


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Configuration for retrying failed transport attempts.

    Network failures are always retried; responses are retried only when
    their status is in ``retryable_status_codes`` and, with
    ``idempotent_only``, the method is idempotent.
    """

    max_attempts: int = 3
    strategy: RetryStrategy = RetryStrategy.EXPONENTIAL
    initial_delay_ms: int = 100
    max_delay_ms: int = 10000
    backoff_multiplier: float = 2.0
    jitter: float = 0.1
    retryable_status_codes: frozenset[int] = DEFAULT_RETRYABLE_STATUS_CODES
    idempotent_only: bool = True


class RetryExecutor:
    """Execute sync or async callables with a retry policy."""

    def __init__(self, policy: RetryPolicy) -> None:
        self._policy = policy
        self._max_attempts = max(1, int(policy.max_attempts))
        self._strategy = policy.strategy
        self._initial_delay_ms = max(0, int(policy.initial_delay_ms))
        self._max_delay_ms = max(self._initial_delay_ms, int(policy.max_delay_ms))
        self._backoff_multiplier = max(1.0, float(policy.backoff_multiplier))
        self._jitter = max(0.0, min(1.0, float(policy.jitter)))
        self._retryable_status_codes = frozenset(policy.retryable_status_codes)
        self._idempotent_only = bool(policy.idempotent_only)

    async def execute(self, func: CallableResult[T], *args: Any, **kwargs: Any) -> T:
        """Execute func with retries according to the policy."""

        if not callable(func):
            raise TypeError("func must be callable")

        last_exc: Exception | None = None
        for attempt in range(1, self._max_attempts + 1):
            try:
                result = func(*args, **kwargs)
                if inspect.isawaitable(result):
                    return await result
                return result
            except Exception as exc:  # noqa: BLE001
                last_exc = exc
                if not self._should_retry(attempt, exc):
                    raise
                delay_s = self._compute_delay(attempt)
                logger.debug(
                    "Retrying transport attempt %d/%d in %.3fs after %s",
                    attempt + 1,
                    self._max_attempts,
                    delay_s,
                    exc,
                )
                if delay_s > 0:
                    await asyncio.sleep(delay_s)

        assert last_exc is not None
        raise last_exc

    def _should_retry(self, attempt: int, error: Exception) -> bool:
        if attempt >= self._max_attempts:
            return False
        return self._is_retryable_error(error)

    def _compute_delay(self, attempt: int) -> float:
        base_ms = float(self._initial_delay_ms)
        if self._strategy == RetryStrategy.EXPONENTIAL:
            exponent = max(0, attempt - 1)
            base_ms = self._initial_delay_ms * (self._backoff_multiplier**exponent)
        elif self._strategy == RetryStrategy.LINEAR:
            base_ms = self._initial_delay_ms * attempt
        elif self._strategy == RetryStrategy.FIXED:
            base_ms = float(self._initial_delay_ms)

        base_ms = min(float(self._max_delay_ms), float(base_ms))
        if self._jitter > 0 and base_ms > 0:
            delta = (random.random() * 2 - 1) * (self._jitter * base_ms)
            base_ms = max(0.0, base_ms + delta)

        return base_ms / 1000.0

    def _is_retryable_error(self, error: Exception) -> bool:
        if isinstance(error, TransportRequestError):
            return True
        if isinstance(error, TransportResponseError):
            if error.status_code not in self._retryable_status_codes:
                return False
            if self._idempotent_only:
                return error.request.method.upper() in IDEMPOTENT_METHODS
            return True
        return False
