"""Internal data models for books-api.

All models use Pydantic v2. OperationSpec and RequestOutcome are frozen:
registry entries are never mutated after construction and every request
produces a fresh outcome.
"""

from __future__ import annotations

from enum import Enum
from string import Formatter
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_BASE_URL = "https://books.zoho.com/api/v3/"
DEFAULT_TIMEOUT = 30.0
DEFAULT_REQUESTS_PER_MINUTE = 150


# =============================================================================
# Endpoint Models
# =============================================================================


class HttpVerb(str, Enum):
    """HTTP methods accepted by the provider."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


class OperationSpec(BaseModel):
    """One logical operation: URL template, HTTP verb and raw mode.

    Positional placeholders in url_template are empty format fields, e.g.
    "invoices/{}" takes one resource id.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    url_template: str = Field(description="Relative URL, e.g. 'invoices/{}'")
    http_verb: HttpVerb = Field(description="HTTP verb used for the call")
    raw_mode: bool = Field(
        default=False, description="Return the raw body without JSON decoding"
    )

    @field_validator("http_verb", mode="before")
    @classmethod
    def normalize_verb(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("url_template")
    @classmethod
    def check_placeholders(cls, v: str) -> str:
        for _, field_name, _, _ in Formatter().parse(v):
            if field_name is not None and field_name != "":
                raise ValueError(
                    f"url_template placeholders must be positional '{{}}', got '{{{field_name}}}'"
                )
        return v

    @property
    def placeholder_count(self) -> int:
        """Number of resource ids the URL template expects."""
        return sum(
            1 for _, field_name, _, _ in Formatter().parse(self.url_template)
            if field_name is not None
        )

    def render_url(self, resource_ids: list[str]) -> str:
        """Fill the placeholders, in order, with already-encoded ids."""
        return self.url_template.format(*resource_ids)


# =============================================================================
# Response Models
# =============================================================================


class PagingInfo(BaseModel):
    """The envelope's page_context.

    Only has_more_page is interpreted; page, per_page, sort_column and any
    other provider fields are kept as extras.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    has_more_page: bool = Field(default=False, description="More pages follow")

    @field_validator("has_more_page", mode="before")
    @classmethod
    def null_means_last_page(cls, v: Any) -> Any:
        return False if v is None else v

    @property
    def has_more_pages(self) -> bool:
        return self.has_more_page


class RequestOutcome(BaseModel):
    """Everything captured from one executed request."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    http_status: int = Field(description="HTTP status code")
    raw_body: bytes = Field(description="Undecoded response body")
    decoded_body: Any = Field(default=None, description="Parsed JSON envelope")
    provider_error_code: int | None = Field(default=None, description="Envelope 'code'")
    provider_error_message: str | None = Field(
        default=None, description="Envelope 'message'"
    )
    paging: PagingInfo | None = Field(default=None, description="Envelope 'page_context'")
    normalized_payload: Any = Field(
        default=None, description="Envelope with bookkeeping keys unwrapped"
    )

    @property
    def has_more_pages(self) -> bool:
        return self.paging is not None and self.paging.has_more_pages


class RateWindow(BaseModel):
    """Fixed-window accounting state owned by the rate limiter."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    window_start: float | None = Field(
        default=None, description="Monotonic time the window opened (None before first call)"
    )
    requests_in_window: int = Field(default=0, description="Requests counted in the window")
    limit: int = Field(description="Requests per window, <= 0 disables limiting")


# =============================================================================
# Configuration Models
# =============================================================================


class OperationOverride(OperationSpec):
    """Manually registered operation from configuration.

    Same fields as OperationSpec; kept as a separate type so config files
    validate against their own name in error messages.
    """

    def to_spec(self) -> OperationSpec:
        return OperationSpec(
            url_template=self.url_template,
            http_verb=self.http_verb,
            raw_mode=self.raw_mode,
        )


class ClientConfig(BaseModel):
    """Top-level client configuration file structure."""

    model_config = ConfigDict(extra="forbid")

    auth_token: str = Field(description="Static API auth token")
    organization_id: str = Field(description="Organization the calls act on")
    base_url: str = Field(default=DEFAULT_BASE_URL, description="API root URL")
    requests_per_minute: int = Field(
        default=DEFAULT_REQUESTS_PER_MINUTE,
        description="Fixed-window request budget per minute, 0 disables limiting",
    )
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0, description="Per-request timeout in seconds")
    max_pages: int | None = Field(
        default=None, ge=1, description="Safety cap on pages fetched by ListAll calls"
    )
    objects: list[str] | None = Field(
        default=None, description="Object names to generate operations for (default: built-in list)"
    )
    operations: dict[str, OperationOverride] = Field(
        default_factory=dict, description="Manually registered operations, name -> spec"
    )

    @field_validator("organization_id", mode="before")
    @classmethod
    def coerce_organization_id(cls, v: Any) -> Any:
        # YAML reads unquoted ids as integers
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("base_url")
    @classmethod
    def ensure_trailing_slash(cls, v: str) -> str:
        return v if v.endswith("/") else v + "/"
