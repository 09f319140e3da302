"""Exception hierarchy for books-api.

Dispatch errors are raised before any network traffic. Request errors are
raised by the executor, in pipeline order: transport, HTTP status, JSON
decoding, provider envelope code.
"""

from __future__ import annotations


class BooksApiError(Exception):
    """Base class for all books-api errors."""


class ConfigError(BooksApiError):
    """Raised when configuration loading fails."""


# =============================================================================
# Caller misuse
# =============================================================================


class DispatchError(BooksApiError):
    """Base class for errors detected while resolving and binding a call."""


class UnknownOperation(DispatchError):
    """Raised when a call name does not match any registered operation.

    Also raised when a ListAll name is executed as a single request.
    """

    def __init__(self, name: str, reason: str = "does not exist") -> None:
        super().__init__(f"requested operation '{name}' {reason}")
        self.name = name


class ArityError(DispatchError):
    """Raised when the argument count does not fit the URL template."""

    def __init__(self, name: str, placeholders: int, received: int) -> None:
        super().__init__(
            f"operation '{name}' requires {placeholders} or {placeholders + 1} "
            f"arguments, {received} received"
        )
        self.name = name
        self.placeholders = placeholders
        self.received = received


class ParameterTypeError(DispatchError, TypeError):
    """Raised when the trailing parameter argument is not a mapping."""


# =============================================================================
# Request pipeline
# =============================================================================


class RequestError(BooksApiError):
    """Base class for errors raised while executing a request."""


class TransportError(RequestError):
    """Raised when no response was obtained (connection error, timeout, etc.)."""


class ProtocolError(RequestError):
    """Raised when the HTTP status is outside the 2xx range."""

    def __init__(self, status: int) -> None:
        super().__init__(f"HTTP status {status}, expected 2xx")
        self.status = status


class DecodeError(RequestError):
    """Raised when the response body is not a JSON envelope."""


class ProviderError(RequestError):
    """Raised when the envelope reports a non-zero provider code."""

    def __init__(self, code: int, message: str | None) -> None:
        super().__init__(f"provider returned code #{code} \"{message}\"")
        self.code = code
        self.message = message


class UnexpectedPayloadError(RequestError):
    """Raised when a ListAll page payload is not a list of items."""
