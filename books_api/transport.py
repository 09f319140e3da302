"""Transport - The HTTP capability the executor sends requests through.

The executor only needs send(method, url, body, headers, timeout) returning
(status, body bytes). HttpxTransport is the production implementation;
tests substitute a stub.
"""

from __future__ import annotations

from typing import Any, Protocol

import httpx

from books_api.errors import TransportError


class Transport(Protocol):
    def send(
        self,
        method: str,
        url: str,
        body: bytes | None,
        headers: dict[str, str],
        timeout: float,
    ) -> tuple[int, bytes]:
        ...


class HttpxTransport:
    """Transport backed by a single httpx.Client.

    Usage:
        with HttpxTransport() as transport:
            status, body = transport.send("GET", url, None, {}, 30.0)
    """

    def __init__(self, client: httpx.Client | None = None) -> None:
        """Initialize the transport.

        Args:
            client: Client to send through. A default client is created (and
                    owned, i.e. closed by close()) when omitted.
        """
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client()

    def __enter__(self) -> "HttpxTransport":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            self._client.close()

    def send(
        self,
        method: str,
        url: str,
        body: bytes | None,
        headers: dict[str, str],
        timeout: float,
    ) -> tuple[int, bytes]:
        """Send one request and return (status, raw body).

        Raises:
            TransportError: If no response was obtained.
        """
        try:
            response = self._client.request(
                method=method,
                url=url,
                content=body,
                headers=headers,
                timeout=timeout,
            )
        except httpx.TimeoutException as e:
            raise TransportError(f"request timed out: {e}") from e
        except httpx.ConnectError as e:
            raise TransportError(f"connection error: {e}") from e
        except httpx.RequestError as e:
            raise TransportError(f"request error: {e}") from e

        return response.status_code, response.content
