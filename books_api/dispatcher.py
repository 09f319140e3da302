"""Dispatcher - Resolves call names and binds positional arguments.

A call is a name plus positional arguments: resource ids first, then an
optional parameter mapping.

    dispatcher.call("GetInvoice", "460000000026049")
    dispatcher.call("CreateContact", {"contact_name": "Bowman & Co"})
    dispatcher.call("ListAllInvoices", {"status": "overdue"})
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable
from urllib.parse import quote

from books_api.errors import ArityError, ParameterTypeError, UnknownOperation
from books_api.executor import Executor
from books_api.models import OperationSpec, RequestOutcome
from books_api.paginator import Paginator
from books_api.registry import LIST_ALL_ACTION, EndpointRegistry


class Dispatcher:
    """Maps call names to registry entries and runs them through the executor."""

    def __init__(
        self,
        registry: EndpointRegistry,
        executor: Executor,
        paginator_factory: Callable[["Dispatcher"], Paginator] = Paginator,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            registry: Operation lookup table.
            executor: Executes bound requests.
            paginator_factory: Builds the Paginator used for ListAll calls,
                               e.g. functools.partial(Paginator, max_pages=50).
        """
        self._registry = registry
        self._executor = executor
        self._paginator = paginator_factory(self)

    @property
    def registry(self) -> EndpointRegistry:
        return self._registry

    def is_list_all(self, name: str) -> bool:
        """Whether a call name is routed to the paginator.

        Raises:
            UnknownOperation: If the name is not registered.
        """
        return self._registry.action_of(name) == LIST_ALL_ACTION

    def bind(
        self, name: str, args: tuple[Any, ...]
    ) -> tuple[OperationSpec, str, dict[str, Any]]:
        """Resolve a call and bind its arguments.

        Returns:
            Tuple of (spec, url_path, params).

        Raises:
            UnknownOperation: If the name is not registered.
            ArityError: If len(args) is not placeholders or placeholders + 1.
            ParameterTypeError: If the trailing argument is not a mapping.
        """
        spec = self._registry.resolve(name)
        placeholders = spec.placeholder_count

        if len(args) not in (placeholders, placeholders + 1):
            raise ArityError(name, placeholders, len(args))

        resource_ids = [quote(str(arg), safe="") for arg in args[:placeholders]]
        url_path = spec.render_url(resource_ids)

        params: Any = args[placeholders] if len(args) > placeholders else {}
        if not isinstance(params, Mapping):
            raise ParameterTypeError(
                f"query data should be a mapping, {type(params).__name__} received"
            )

        return spec, url_path, dict(params)

    def execute(self, name: str, *args: Any) -> RequestOutcome:
        """Execute a single-page call and return the full outcome.

        Raises:
            UnknownOperation: For ListAll names, which span several requests
                              and are only available through call().
        """
        if self.is_list_all(name):
            raise UnknownOperation(name, "fetches every page; use call() instead")
        spec, url_path, params = self.bind(name, args)
        return self._executor.execute(url_path, spec.http_verb, params, spec.raw_mode)

    def call(self, name: str, *args: Any) -> Any:
        """Execute a call and return its normalized payload.

        ListAll names fetch every page of the matching List operation and
        return the concatenated items.
        """
        if self.is_list_all(name):
            return self.call_list_all(name, *args)
        return self.execute(name, *args).normalized_payload

    def call_list_all(self, name: str, *args: Any) -> list[Any]:
        """Fetch every page for a ListAll name, or for a List name directly."""
        if self.is_list_all(name):
            list_name = self._registry.list_counterpart(name)
        else:
            list_name = self._registry.canonical_name(name)
        return self._paginator.list_all(list_name, *args)
