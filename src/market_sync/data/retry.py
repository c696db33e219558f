"""Error classification and retry with exponential backoff."""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from market_sync.errors import ErrorKind, SourceError, SyncError

logger = logging.getLogger(__name__)

T = TypeVar("T")

QUOTA_MESSAGE = "Upstream quota exhausted, please try again later."
CONFIG_MESSAGE = "Configuration error: a required API credential is missing."
OFFLINE_MESSAGE = "The network appears to be offline, please check your connection."

_USER_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.RATE_LIMITED: QUOTA_MESSAGE,
    ErrorKind.QUOTA_EXHAUSTED: QUOTA_MESSAGE,
    ErrorKind.SERVICE_UNAVAILABLE: QUOTA_MESSAGE,
    ErrorKind.AUTH_MISSING: CONFIG_MESSAGE,
    ErrorKind.OFFLINE: OFFLINE_MESSAGE,
}


def classify_error(error: BaseException, online: bool = True) -> ErrorKind:
    """
    Classify a failure into an ErrorKind.

    Missing credentials win over connectivity so configuration problems are
    reported as such even while offline. Anything that is not a SourceError
    is fatal.
    """
    kind = error.kind if isinstance(error, SourceError) else ErrorKind.FATAL
    if kind is ErrorKind.AUTH_MISSING:
        return kind
    if not online:
        return ErrorKind.OFFLINE
    return kind


def user_message(kind: ErrorKind) -> str | None:
    """User-readable message for a kind, or None for fatal errors."""
    return _USER_MESSAGES.get(kind)


@dataclass
class RetryAttempt:
    """Record of a single attempt."""

    attempt: int
    ok: bool
    error: str | None = None
    kind: ErrorKind | None = None
    backoff_s: float | None = None


@dataclass
class RetryResult:
    """Result of a retried operation with its attempt trace."""

    result: Any
    attempts: int
    total_backoff_seconds: float
    retry_trace: list[RetryAttempt]


class RetryPolicy:
    """
    Retry transient upstream failures with capped exponential backoff.

    The delay before retry n (0-based) is base_delay * multiplier**n, capped
    at max_delay. With the defaults three attempts sleep 1s then 2s.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        multiplier: float = 2.0,
        max_delay: float = 30.0,
        jitter: float = 0.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        is_online: Callable[[], bool] | None = None,
    ):
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.multiplier = multiplier
        self.max_delay = max_delay
        self.jitter = jitter
        self._sleep = sleep
        self._is_online = is_online or (lambda: True)

    def backoff(self, attempt: int) -> float:
        """Delay in seconds after the given 0-based failed attempt."""
        delay = self.base_delay * (self.multiplier**attempt)
        if self.jitter:
            delay += delay * self.jitter * (2 * random.random() - 1)
        return min(delay, self.max_delay)

    async def execute(
        self,
        operation_name: str,
        operation: Callable[[], Awaitable[T]],
        *,
        retry_if: Callable[[Exception], bool] | None = None,
    ) -> RetryResult:
        """
        Run operation, retrying retryable failures.

        retry_if narrows retries further: a retryable failure it rejects is
        raised as a SyncError straight away. Non-idempotent writes use it to
        avoid resending a request that may already have been applied.

        Raises:
            SyncError: With the mapped user message when the failure is not
                retryable (auth, offline) or attempts are exhausted
            Exception: Fatal errors are re-raised unchanged
        """
        total_backoff = 0.0
        trace: list[RetryAttempt] = []

        for attempt in range(self.max_attempts):
            try:
                result = await operation()
            except Exception as e:
                kind = classify_error(e, online=self._is_online())
                trace.append(
                    RetryAttempt(attempt=attempt + 1, ok=False, error=type(e).__name__, kind=kind)
                )

                if kind is ErrorKind.FATAL:
                    raise

                if not kind.retryable or (retry_if is not None and not retry_if(e)):
                    logger.warning(f"{operation_name}: {kind.value}, not retrying ({e})")
                    raise SyncError(
                        kind, user_message(kind), attempts=attempt + 1, last_error=e
                    ) from e

                if attempt + 1 >= self.max_attempts:
                    logger.warning(
                        f"{operation_name}: Failed after {attempt + 1} attempts. Last error: {e}"
                    )
                    raise SyncError(
                        kind, user_message(kind), attempts=attempt + 1, last_error=e
                    ) from e

                delay = self.backoff(attempt)
                total_backoff += delay
                trace[-1].backoff_s = round(delay, 2)
                logger.info(
                    f"{operation_name}: Attempt {attempt + 1} failed ({e}). "
                    f"Retrying in {delay:.1f}s..."
                )
                await self._sleep(delay)
                continue

            trace.append(RetryAttempt(attempt=attempt + 1, ok=True))
            return RetryResult(
                result=result,
                attempts=attempt + 1,
                total_backoff_seconds=round(total_backoff, 2),
                retry_trace=trace,
            )

        # Unreachable: the loop either returns or raises
        raise AssertionError("retry loop exited without a result")

    async def run(
        self,
        operation_name: str,
        operation: Callable[[], Awaitable[T]],
        *,
        retry_if: Callable[[Exception], bool] | None = None,
    ) -> T:
        """Same as execute() but returns only the operation's result."""
        retry_result = await self.execute(operation_name, operation, retry_if=retry_if)
        return retry_result.result
