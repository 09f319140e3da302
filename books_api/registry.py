"""Endpoint Registry - Maps operation names to URL templates and verbs.

Operations are generated once from the cross product of object names and
actions. Canonical names are object + action ("InvoicesGet"); every
generated operation is also reachable under its action-first aliases
("GetInvoices", "GetInvoice").
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from books_api.errors import UnknownOperation
from books_api.models import HttpVerb, OperationSpec

logger = logging.getLogger(__name__)


DEFAULT_OBJECTS: tuple[str, ...] = (
    "Contacts",
    "Estimates",
    "SalesOrders",
    "Invoices",
    "RecurringInvoices",
    "CreditNotes",
    "CustomerPayments",
    "Expenses",
    "RecurringExpenses",
    "PurchaseOrders",
    "Bills",
    "VendorCredits",
    "VendorPayments",
    "BankAccounts",
    "BankTransactions",
    "ChartOfAccounts",
    "Journals",
    "Projects",
)

DEFAULT_ACTIONS: dict[str, HttpVerb] = {
    "List": HttpVerb.GET,
    "ListAll": HttpVerb.GET,
    "Get": HttpVerb.GET,
    "Create": HttpVerb.POST,
    "Update": HttpVerb.PUT,
    "Delete": HttpVerb.DELETE,
}

# Actions addressing a single resource take its id as a URL placeholder.
ID_ACTIONS = frozenset({"Get", "Update", "Delete"})

LIST_ALL_ACTION = "ListAll"
LIST_ACTION = "List"


def singularize(object_name: str) -> str:
    """Drop one trailing 's' ("Invoices" -> "Invoice")."""
    if object_name.endswith("s") and len(object_name) > 1:
        return object_name[:-1]
    return object_name


def build_operations(
    objects: Iterable[str],
    actions: Mapping[str, HttpVerb],
) -> dict[str, OperationSpec]:
    """Generate one OperationSpec per object x action pair."""
    operations: dict[str, OperationSpec] = {}
    for object_name in objects:
        for action, verb in actions.items():
            url = object_name.lower()
            if action in ID_ACTIONS:
                url += "/{}"
            operations[object_name + action] = OperationSpec(url_template=url, http_verb=verb)
    return operations


class EndpointRegistry:
    """Immutable mapping from operation name to OperationSpec.

    Usage:
        registry = EndpointRegistry()
        spec = registry.resolve("GetInvoice")
        spec.url_template  # "invoices/{}"
    """

    def __init__(
        self,
        objects: Iterable[str] | None = None,
        actions: Mapping[str, HttpVerb] | None = None,
        overrides: Mapping[str, OperationSpec] | None = None,
    ) -> None:
        """Build the registry.

        Args:
            objects: Object names (plural, CamelCase). Defaults to DEFAULT_OBJECTS.
            actions: Ordered action -> verb map. Defaults to DEFAULT_ACTIONS.
            overrides: Manually registered operations. These win over
                       generated entries and over aliases of the same name.
        """
        objects = tuple(objects) if objects is not None else DEFAULT_OBJECTS
        actions = dict(actions) if actions is not None else dict(DEFAULT_ACTIONS)

        operations = build_operations(objects, actions)
        operations.update(overrides or {})

        # Alias -> (canonical name, action)
        aliases: dict[str, tuple[str, str | None]] = {}
        for object_name in objects:
            for action in actions:
                canonical = object_name + action
                aliases[canonical] = (canonical, action)
                for alias in (action + object_name, action + singularize(object_name)):
                    if alias in operations:
                        continue
                    aliases.setdefault(alias, (canonical, action))

        # Manual names resolve to themselves; the action is recovered from
        # the name suffix so "ItemsListAll"-style overrides still paginate.
        for name in overrides or {}:
            aliases[name] = (name, _action_suffix(name, actions))

        self._operations = MappingProxyType(operations)
        self._aliases = MappingProxyType(aliases)
        self._actions = MappingProxyType(actions)
        logger.debug(
            "Registered %d operations (%d call names)", len(operations), len(aliases)
        )

    @property
    def operations(self) -> Mapping[str, OperationSpec]:
        """Read-only view of canonical and manual operations."""
        return self._operations

    @property
    def actions(self) -> Mapping[str, HttpVerb]:
        return self._actions

    def names(self) -> list[str]:
        """Canonical and manual operation names, sorted."""
        return sorted(self._operations)

    def __contains__(self, name: object) -> bool:
        return name in self._aliases

    def __len__(self) -> int:
        return len(self._operations)

    def canonical_name(self, name: str) -> str:
        """Map any accepted call name to its registry key.

        Raises:
            UnknownOperation: If the name is not registered.
        """
        try:
            return self._aliases[name][0]
        except KeyError:
            raise UnknownOperation(name) from None

    def action_of(self, name: str) -> str | None:
        """Action of a call name ("ListAll" for "ListAllContacts"), or None."""
        entry = self._aliases.get(name)
        if entry is None:
            raise UnknownOperation(name)
        return entry[1]

    def resolve(self, name: str) -> OperationSpec:
        """Look up the OperationSpec for any accepted call name.

        Raises:
            UnknownOperation: If the name is not registered.
        """
        return self._operations[self.canonical_name(name)]

    def list_counterpart(self, name: str) -> str:
        """Registry key of the List operation paired with a ListAll name.

        Raises:
            UnknownOperation: If there is no matching List operation.
        """
        canonical = self.canonical_name(name)
        if not canonical.endswith(LIST_ALL_ACTION):
            raise UnknownOperation(name)
        list_name = canonical[: -len(LIST_ALL_ACTION)] + LIST_ACTION
        if list_name not in self._operations:
            raise UnknownOperation(list_name)
        return list_name


def _action_suffix(name: str, actions: Mapping[str, HttpVerb]) -> str | None:
    """Longest action name that ends the operation name."""
    matches = [action for action in actions if name.endswith(action)]
    if not matches:
        return None
    return max(matches, key=len)
