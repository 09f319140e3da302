"""BooksClient - Wires configuration into the request pipeline.

Usage:
    with BooksClient.from_config_file(Path("books.yaml")) as client:
        invoice = client.call("GetInvoice", "460000000026049")
        contacts = client.call("ListAllContacts", {"contact_type": "customer"})
"""

from __future__ import annotations

from functools import partial
from pathlib import Path
from typing import Any

from books_api.config_loader import load_client_config
from books_api.dispatcher import Dispatcher
from books_api.executor import Executor
from books_api.models import ClientConfig, RequestOutcome
from books_api.paginator import Paginator
from books_api.rate_limiter import FixedWindowRateLimiter
from books_api.registry import EndpointRegistry
from books_api.transport import HttpxTransport, Transport


class BooksClient:
    """Entry point for calling the accounting API by operation name.

    Not safe for concurrent use from several threads: calls are synchronous
    and share one rate-limit window.
    """

    def __init__(self, config: ClientConfig, transport: Transport | None = None) -> None:
        """Initialize the client.

        Args:
            config: Credentials, limits and operation overrides.
            transport: Transport to send through. An HttpxTransport is created
                       (and closed by close()) when omitted.
        """
        self._config = config
        self._owned_transport = HttpxTransport() if transport is None else None
        self._transport: Transport = transport if transport is not None else self._owned_transport

        overrides = {name: override.to_spec() for name, override in config.operations.items()}
        self._registry = EndpointRegistry(objects=config.objects, overrides=overrides)
        self._rate_limiter = FixedWindowRateLimiter(config.requests_per_minute)
        self._executor = Executor(
            self._transport,
            auth_token=config.auth_token,
            organization_id=config.organization_id,
            rate_limiter=self._rate_limiter,
            base_url=config.base_url,
            timeout=config.timeout,
        )
        self._dispatcher = Dispatcher(
            self._registry,
            self._executor,
            paginator_factory=partial(Paginator, max_pages=config.max_pages),
        )

    @classmethod
    def from_config_file(cls, config_path: Path, transport: Transport | None = None) -> "BooksClient":
        return cls(load_client_config(config_path), transport=transport)

    def __enter__(self) -> "BooksClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        self.close()

    def close(self) -> None:
        if self._owned_transport is not None:
            self._owned_transport.close()

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def registry(self) -> EndpointRegistry:
        return self._registry

    @property
    def rate_limiter(self) -> FixedWindowRateLimiter:
        return self._rate_limiter

    def call(self, name: str, *args: Any) -> Any:
        """Run an operation by name and return its normalized payload."""
        return self._dispatcher.call(name, *args)

    def execute(self, name: str, *args: Any) -> RequestOutcome:
        """Run a single-page operation and return the full outcome."""
        return self._dispatcher.execute(name, *args)

    def call_list_all(self, name: str, *args: Any) -> list[Any]:
        """Fetch every page of a List (or ListAll) operation."""
        return self._dispatcher.call_list_all(name, *args)
