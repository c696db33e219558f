"""Error taxonomy shared by adapters, the retry policy and the services."""

from enum import Enum


class ErrorKind(str, Enum):
    """Classification of an upstream failure."""

    RATE_LIMITED = "rate_limited"
    QUOTA_EXHAUSTED = "quota_exhausted"
    SERVICE_UNAVAILABLE = "service_unavailable"
    AUTH_MISSING = "auth_missing"
    OFFLINE = "offline"
    FATAL = "fatal"

    @property
    def retryable(self) -> bool:
        return self in _RETRYABLE_KINDS


_RETRYABLE_KINDS = frozenset(
    {ErrorKind.RATE_LIMITED, ErrorKind.QUOTA_EXHAUSTED, ErrorKind.SERVICE_UNAVAILABLE}
)


class SourceError(Exception):
    """Raised by a source adapter when its upstream call fails."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.FATAL,
        *,
        source: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.source = source
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        return self.kind.retryable


class RecordRejectedError(SourceError):
    """Raised when the row store explicitly rejects a record (400/409/422)."""

    def __init__(self, message: str, *, source: str | None = None, status_code: int | None = None):
        super().__init__(message, ErrorKind.FATAL, source=source, status_code=status_code)


class SyncError(Exception):
    """User-facing error raised once retries are exhausted or not allowed."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        attempts: int = 1,
        last_error: Exception | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.attempts = attempts
        self.last_error = last_error


class ServiceClosedError(Exception):
    """Raised when a call is made after the services were shut down."""

    pass
