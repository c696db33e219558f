"""Data layer: caching, retry and HTTP transport."""

from market_sync.data.cache import TTLCache
from market_sync.data.retry import (
    RetryAttempt,
    RetryPolicy,
    RetryResult,
    classify_error,
    user_message,
)
from market_sync.data.transport import HttpTransport, classify_response

__all__ = [
    # Cache
    "TTLCache",
    # Retry
    "RetryAttempt",
    "RetryPolicy",
    "RetryResult",
    "classify_error",
    "user_message",
    # Transport
    "HttpTransport",
    "classify_response",
]
