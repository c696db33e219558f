"""Tests for the HTTP transport and response classification."""

import asyncio

import pytest
import requests

from market_sync.data.transport import HttpTransport, classify_response
from market_sync.errors import ErrorKind, ServiceClosedError, SourceError


class TestClassifyResponse:
    """Tests for status/body to ErrorKind mapping."""

    @pytest.mark.parametrize(
        "status,body,kind",
        [
            (429, "Too Many Requests", ErrorKind.RATE_LIMITED),
            (503, "Service Unavailable", ErrorKind.SERVICE_UNAVAILABLE),
            (502, "Bad Gateway", ErrorKind.SERVICE_UNAVAILABLE),
            (429, '{"error": {"status": "RESOURCE_EXHAUSTED"}}', ErrorKind.QUOTA_EXHAUSTED),
            (403, "Daily quota exceeded", ErrorKind.QUOTA_EXHAUSTED),
            (401, "Invalid API key", ErrorKind.AUTH_MISSING),
            (404, "Not Found", ErrorKind.FATAL),
            (500, "Internal Server Error", ErrorKind.FATAL),
        ],
    )
    def test_status_mapping(self, response_factory, status, body, kind) -> None:
        error = classify_response("src", response_factory(status, text=body))
        assert error is not None
        assert error.kind is kind
        assert error.status_code == status
        assert error.source == "src"

    def test_success_is_not_an_error(self, response_factory) -> None:
        assert classify_response("src", response_factory(200, {"ok": True})) is None


class TestHttpTransport:
    """Tests for request_json."""

    def test_decodes_json(self, transport: HttpTransport, session, response_factory) -> None:
        session.request.return_value = response_factory(200, {"data": [1, 2]})
        result = asyncio.run(transport.request_json("src", "GET", "https://x.test/a", params={"q": 1}))

        assert result == {"data": [1, 2]}
        args, kwargs = session.request.call_args
        assert args == ("GET", "https://x.test/a")
        assert kwargs["params"] == {"q": 1}
        assert kwargs["timeout"] == 1.0
        assert kwargs["headers"]["Accept"] == "application/json"

    def test_merges_headers(self, transport: HttpTransport, session, response_factory) -> None:
        session.request.return_value = response_factory(200, {})
        asyncio.run(transport.request_json("src", "POST", "https://x.test", headers={"apikey": "k"}))
        headers = session.request.call_args.kwargs["headers"]
        assert headers["apikey"] == "k"
        assert "User-Agent" in headers

    def test_empty_body_returns_none(self, transport: HttpTransport, session, response_factory) -> None:
        session.request.return_value = response_factory(204)
        assert asyncio.run(transport.request_json("src", "DELETE", "https://x.test")) is None

    def test_http_error_raises_source_error(self, transport: HttpTransport, session, response_factory) -> None:
        session.request.return_value = response_factory(429, text="slow down")
        with pytest.raises(SourceError) as exc_info:
            asyncio.run(transport.request_json("src", "GET", "https://x.test"))
        assert exc_info.value.kind is ErrorKind.RATE_LIMITED

    def test_invalid_json_is_fatal(self, transport: HttpTransport, session, response_factory) -> None:
        session.request.return_value = response_factory(200, text="<html>")
        with pytest.raises(SourceError) as exc_info:
            asyncio.run(transport.request_json("src", "GET", "https://x.test"))
        assert exc_info.value.kind is ErrorKind.FATAL

    def test_connection_error_is_transient(self, transport: HttpTransport, session) -> None:
        session.request.side_effect = requests.ConnectionError("refused")
        with pytest.raises(SourceError) as exc_info:
            asyncio.run(transport.request_json("src", "GET", "https://x.test"))
        assert exc_info.value.kind is ErrorKind.SERVICE_UNAVAILABLE

    def test_timeout_is_transient(self, transport: HttpTransport, session) -> None:
        session.request.side_effect = requests.Timeout("slow")
        with pytest.raises(SourceError) as exc_info:
            asyncio.run(transport.request_json("src", "GET", "https://x.test"))
        assert exc_info.value.kind is ErrorKind.SERVICE_UNAVAILABLE

    def test_other_request_errors_are_fatal(self, transport: HttpTransport, session) -> None:
        session.request.side_effect = requests.exceptions.InvalidURL("bad url")
        with pytest.raises(SourceError) as exc_info:
            asyncio.run(transport.request_json("src", "GET", "not a url"))
        assert exc_info.value.kind is ErrorKind.FATAL

    def test_closed_transport_rejects_calls(self, session) -> None:
        transport = HttpTransport(session=session)
        transport.close()
        with pytest.raises(ServiceClosedError):
            asyncio.run(transport.request_json("src", "GET", "https://x.test"))
        session.close.assert_called_once()

    def test_probe(self, transport: HttpTransport, session, response_factory) -> None:
        session.head.return_value = response_factory(200)
        assert asyncio.run(transport.probe("https://probe.test")) is True
        session.head.side_effect = requests.ConnectionError("down")
        assert asyncio.run(transport.probe("https://probe.test")) is False
