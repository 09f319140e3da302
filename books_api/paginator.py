"""Paginator - Builds ListAll calls out of repeated single-page List calls."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from books_api.errors import UnexpectedPayloadError

if TYPE_CHECKING:
    from books_api.dispatcher import Dispatcher

logger = logging.getLogger(__name__)

PAGE_PARAM = "page"


class Paginator:
    """Fetches pages 1, 2, ... of a List operation and concatenates the items.

    The loop ends when a page's outcome has no paging metadata or reports
    has_more_page = false. Without max_pages there is no other bound: a
    server that always reports more pages keeps the loop running.

    Any error aborts the whole fetch and the pages fetched so far are lost.
    """

    def __init__(self, dispatcher: "Dispatcher", max_pages: int | None = None) -> None:
        """Initialize the paginator.

        Args:
            dispatcher: Dispatcher used to execute each page.
            max_pages: Stop after this many pages even if more are reported.
                       None (the default) never stops early.
        """
        if max_pages is not None and max_pages < 1:
            raise ValueError(f"max_pages must be at least 1, got {max_pages}")
        self._dispatcher = dispatcher
        self._max_pages = max_pages

    @property
    def max_pages(self) -> int | None:
        return self._max_pages

    def list_all(self, list_name: str, *args: Any) -> list[Any]:
        """Return the items of every page of a List operation.

        Args:
            list_name: List operation name (any accepted call name).
            *args: Same arguments the List operation takes. The trailing
                   parameter mapping is copied; its 'page' key is overwritten.
        """
        # Validates arity and the parameter type before the first request.
        spec, _, base_params = self._dispatcher.bind(list_name, args)
        resource_ids = args[: spec.placeholder_count]

        rows: list[Any] = []
        page = 1
        while True:
            params = dict(base_params)
            params[PAGE_PARAM] = page

            outcome = self._dispatcher.execute(list_name, *resource_ids, params)
            payload = outcome.normalized_payload
            if not isinstance(payload, list):
                raise UnexpectedPayloadError(
                    f"page {page} of '{list_name}' returned {type(payload).__name__}, expected a list"
                )
            rows.extend(payload)
            logger.info("%s page %d: %d items", list_name, page, len(payload))

            if not outcome.has_more_pages:
                break
            if self._max_pages is not None and page >= self._max_pages:
                logger.warning(
                    "%s stopped after %d pages (max_pages) with more pages reported",
                    list_name,
                    page,
                )
                break
            page += 1

        return rows
