"""Async HTTP transport over requests with bounded concurrency."""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import requests

from market_sync.errors import ErrorKind, ServiceClosedError, SourceError

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
    "Accept": "application/json",
}

_TRANSIENT_STATUS = {502, 503, 504}
_QUOTA_MARKERS = ("quota", "resource_exhausted")


def _error_detail(response: requests.Response) -> str:
    try:
        text = response.text or ""
    except Exception:
        text = ""
    return text[:300]


def classify_response(source: str, response: requests.Response) -> SourceError | None:
    """
    Map a non-2xx response to a SourceError, or None if the call succeeded.

    Quota markers in the body take precedence over the status code because
    some providers report exhausted quota as 403 or 400.
    """
    status = response.status_code
    if status < 400:
        return None

    detail = _error_detail(response)
    message = f"{source}: HTTP {status} {detail}".strip()

    if any(marker in detail.lower() for marker in _QUOTA_MARKERS):
        kind = ErrorKind.QUOTA_EXHAUSTED
    elif status == 429:
        kind = ErrorKind.RATE_LIMITED
    elif status in _TRANSIENT_STATUS:
        kind = ErrorKind.SERVICE_UNAVAILABLE
    elif status == 401:
        kind = ErrorKind.AUTH_MISSING
    else:
        kind = ErrorKind.FATAL
    return SourceError(message, kind, source=source, status_code=status)


class HttpTransport:
    """
    Runs blocking requests calls on a bounded thread pool.

    This is the only place raw transport failures are turned into
    classified SourceErrors; adapters build URLs and parse payloads.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        max_workers: int = 4,
        timeout: float = 10.0,
    ):
        self._session = session if session is not None else requests.Session()
        self._executor = ThreadPoolExecutor(max_workers=max_workers)
        self._semaphore = asyncio.Semaphore(max_workers)
        self._timeout = timeout
        self._closed = False

    async def request_json(
        self,
        source: str,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        json_body: Any = None,
    ) -> Any:
        """
        Perform one HTTP request and decode its JSON body.

        Returns:
            Decoded JSON, or None for empty bodies (e.g. 204 No Content)

        Raises:
            SourceError: Classified transport, HTTP or decoding failure
            ServiceClosedError: If the transport was closed
        """
        if self._closed:
            raise ServiceClosedError("transport is closed")

        merged_headers = {**DEFAULT_HEADERS, **(headers or {})}

        def _call() -> Any:
            response = self._session.request(
                method,
                url,
                params=params,
                headers=merged_headers,
                json=json_body,
                timeout=self._timeout,
            )
            error = classify_response(source, response)
            if error is not None:
                raise error
            if response.status_code == 204 or not response.content:
                return None
            try:
                return response.json()
            except ValueError as e:
                raise SourceError(
                    f"{source}: invalid JSON payload", ErrorKind.FATAL, source=source
                ) from e

        async with self._semaphore:
            loop = asyncio.get_running_loop()
            try:
                return await loop.run_in_executor(self._executor, _call)
            except SourceError:
                raise
            except (requests.ConnectionError, requests.Timeout) as e:
                raise SourceError(
                    f"{source}: {type(e).__name__}: {e}",
                    ErrorKind.SERVICE_UNAVAILABLE,
                    source=source,
                ) from e
            except requests.RequestException as e:
                raise SourceError(
                    f"{source}: {type(e).__name__}: {e}", ErrorKind.FATAL, source=source
                ) from e

    async def probe(self, url: str) -> bool:
        """Cheap reachability check used by the connectivity monitor."""
        if self._closed:
            return False

        def _head() -> bool:
            response = self._session.head(url, timeout=self._timeout, allow_redirects=True)
            return response.status_code < 500

        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(self._executor, _head)
        except requests.RequestException as e:
            logger.debug(f"probe({url}) failed: {e}")
            return False

    def close(self) -> None:
        """Cleanup on shutdown. In-flight calls are left to finish."""
        if self._closed:
            return
        self._closed = True
        self._executor.shutdown(wait=False, cancel_futures=True)
        self._session.close()
