"""Executor - Builds requests, sends them, and normalizes the envelope.

Every response from the provider is wrapped in an envelope:

    {"code": 0, "message": "success", "page_context": {...}, "invoice": {...}}

The executor checks the HTTP status and the envelope code, extracts paging
metadata, and unwraps the remaining keys into a normalized payload.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlencode

from pydantic import ValidationError

from books_api.errors import DecodeError, ProtocolError, ProviderError
from books_api.models import (
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT,
    HttpVerb,
    PagingInfo,
    RequestOutcome,
)
from books_api.rate_limiter import FixedWindowRateLimiter
from books_api.transport import Transport

logger = logging.getLogger(__name__)

PAGING_KEY = "page_context"
ENVELOPE_KEYS = frozenset({"code", "message", PAGING_KEY})

# Non-GET parameters travel as one form field holding the JSON document.
BODY_FIELD = "JSONString"


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _flatten(key: str, value: Any, pairs: list[tuple[str, str]]) -> None:
    if value is None:
        return
    if isinstance(value, Mapping):
        for sub_key, sub_value in value.items():
            _flatten(f"{key}[{sub_key}]", sub_value, pairs)
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            _flatten(f"{key}[{index}]", item, pairs)
    else:
        pairs.append((key, _query_value(value)))


def encode_query(params: Mapping[str, Any]) -> str:
    """Encode a parameter mapping as a query string.

    Nested values use bracketed keys, as PHP-style backends parse them:
    ``{"id": [1, 2]}`` becomes ``id[0]=1&id[1]=2`` and ``{"f": {"a": 1}}``
    becomes ``f[a]=1``. None values are dropped at any depth and booleans
    are sent as ``true``/``false``.
    """
    pairs: list[tuple[str, str]] = []
    for key, value in params.items():
        _flatten(str(key), value, pairs)
    return urlencode(pairs)


def normalize_payload(envelope: dict[str, Any], code: Any) -> Any:
    """Unwrap the envelope once bookkeeping keys are removed.

    No keys left: the code itself. One key: that key's value. More: the
    remaining object. The first case makes "no payload" indistinguishable
    from a scalar result equal to the code; callers rely on this.
    """
    remaining = {k: v for k, v in envelope.items() if k not in ENVELOPE_KEYS}
    if not remaining:
        return code
    if len(remaining) == 1:
        return next(iter(remaining.values()))
    return remaining


class Executor:
    """Executes single API requests against the provider.

    Usage:
        executor = Executor(transport, auth_token, organization_id, limiter)
        outcome = executor.execute("invoices/123", HttpVerb.GET, {})
        outcome.normalized_payload  # {"invoice_id": "123", ...}
    """

    def __init__(
        self,
        transport: Transport,
        auth_token: str,
        organization_id: str,
        rate_limiter: FixedWindowRateLimiter | None = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the executor.

        Args:
            transport: Capability used to send requests.
            auth_token: Static token attached to every request.
            organization_id: Organization attached to every request.
            rate_limiter: Limiter consulted before each request. None disables limiting.
            base_url: API root; url paths are appended to it.
            timeout: Timeout in seconds passed to the transport.
        """
        self._transport = transport
        self._credentials = {"authtoken": auth_token, "organization_id": organization_id}
        self._rate_limiter = rate_limiter or FixedWindowRateLimiter(0)
        self._base_url = base_url if base_url.endswith("/") else base_url + "/"
        self._timeout = timeout

    def build_request(
        self,
        url_path: str,
        verb: HttpVerb,
        params: Mapping[str, Any],
    ) -> tuple[str, bytes | None, dict[str, str]]:
        """Build (url, body, headers) for a request.

        GET sends credentials and params in the query string. Other verbs
        keep credentials in the query string and send params as a urlencoded
        JSONString form field.
        """
        url = self._base_url + url_path.lstrip("/") + "?" + urlencode(self._credentials)
        headers = {"Accept": "application/json"}
        body: bytes | None = None

        if verb == HttpVerb.GET:
            query = encode_query(params)
            if query:
                url += "&" + query
        else:
            body = urlencode({BODY_FIELD: json.dumps(dict(params))}).encode("ascii")
            headers["Content-Type"] = "application/x-www-form-urlencoded"

        return url, body, headers

    def execute(
        self,
        url_path: str,
        verb: HttpVerb | str,
        params: Mapping[str, Any] | None = None,
        raw_mode: bool = False,
    ) -> RequestOutcome:
        """Execute one request and normalize its response.

        Args:
            url_path: URL relative to the API root, ids already bound.
            verb: HTTP verb.
            params: Query (GET) or body (other verbs) parameters.
            raw_mode: Skip JSON decoding; the payload is the raw body.

        Returns:
            RequestOutcome for this request.

        Raises:
            TransportError: If no response was obtained.
            ProtocolError: If the HTTP status is not 2xx.
            DecodeError: If the body is not a JSON object (raw_mode off).
            ProviderError: If the envelope code is non-zero.
        """
        verb = HttpVerb(verb.upper() if isinstance(verb, str) else verb)
        url, body, headers = self.build_request(url_path, verb, params or {})

        self._rate_limiter.acquire()

        logger.debug("%s %s", verb.value, url_path)
        status, raw_body = self._transport.send(verb.value, url, body, headers, self._timeout)
        logger.debug("%s %s -> %d (%d bytes)", verb.value, url_path, status, len(raw_body))

        if not 200 <= status < 300:
            raise ProtocolError(status)

        if raw_mode:
            return RequestOutcome(
                http_status=status,
                raw_body=raw_body,
                normalized_payload=raw_body,
            )

        return self._decode_envelope(status, raw_body)

    def _decode_envelope(self, status: int, raw_body: bytes) -> RequestOutcome:
        try:
            envelope = json.loads(raw_body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DecodeError(f"can not decode JSON from response: {e}") from e

        if not isinstance(envelope, dict):
            raise DecodeError(
                f"expected a JSON object envelope, got {type(envelope).__name__}"
            )

        code = envelope.get("code", 0)
        message = envelope.get("message")
        try:
            code = int(code)
        except (TypeError, ValueError) as e:
            raise DecodeError(f"envelope code is not an integer: {code!r}") from e

        if code != 0:
            raise ProviderError(code, message)

        paging: PagingInfo | None = None
        page_context = envelope.get(PAGING_KEY)
        if isinstance(page_context, dict):
            try:
                paging = PagingInfo.model_validate(page_context)
            except ValidationError as e:
                raise DecodeError(f"invalid page_context: {e}") from e

        return RequestOutcome(
            http_status=status,
            raw_body=raw_body,
            decoded_body=envelope,
            provider_error_code=code,
            provider_error_message=None if message is None else str(message),
            paging=paging,
            normalized_payload=normalize_payload(envelope, code),
        )
