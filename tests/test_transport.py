"""Tests for HttpxTransport.

Tests cover:
- Request method, URL, body and headers reach httpx unchanged
- Status and raw body are returned for any status code
- httpx failures are translated into TransportError
- Client ownership on close()
"""

from unittest.mock import MagicMock

import httpx
import pytest

from books_api.errors import TransportError
from books_api.transport import HttpxTransport


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


class TestSend:
    def test_request_forwarded(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=b'{"code": 0}')

        with HttpxTransport(_client(handler)) as transport:
            status, body = transport.send(
                "PUT",
                "https://books.example.com/api/v3/contacts/1?authtoken=t",
                b"JSONString=%7B%7D",
                {"Accept": "application/json"},
                10.0,
            )

        assert (status, body) == (200, b'{"code": 0}')
        request = seen[0]
        assert request.method == "PUT"
        assert request.url.path == "/api/v3/contacts/1"
        assert request.url.params["authtoken"] == "t"
        assert request.content == b"JSONString=%7B%7D"
        assert request.headers["accept"] == "application/json"

    def test_error_status_returned_not_raised(self):
        with HttpxTransport(_client(lambda r: httpx.Response(503, content=b"busy"))) as transport:
            assert transport.send("GET", "https://x.test/a", None, {}, 1.0) == (503, b"busy")

    @pytest.mark.parametrize(
        "exc",
        [
            httpx.ReadTimeout("timed out"),
            httpx.ConnectError("refused"),
            httpx.RemoteProtocolError("bad response"),
        ],
    )
    def test_httpx_errors_translated(self, exc):
        def handler(request: httpx.Request) -> httpx.Response:
            raise exc

        with HttpxTransport(_client(handler)) as transport:
            with pytest.raises(TransportError) as exc_info:
                transport.send("GET", "https://x.test/a", None, {}, 1.0)
        assert exc_info.value.__cause__ is exc


class TestClose:
    def test_injected_client_not_closed(self):
        client = MagicMock()
        HttpxTransport(client).close()
        client.close.assert_not_called()

    def test_owned_client_closed(self):
        transport = HttpxTransport()
        transport.close()
        assert transport._client.is_closed
