"""Shared test fixtures and helpers for books-api tests."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import parse_qs, urlsplit

import pytest

from books_api.dispatcher import Dispatcher
from books_api.executor import Executor
from books_api.registry import EndpointRegistry


def make_envelope(code: int = 0, message: str = "success", **payload: Any) -> bytes:
    """Build an encoded provider envelope."""
    return json.dumps({"code": code, "message": message, **payload}).encode("utf-8")


@dataclass
class SentRequest:
    """One request recorded by StubTransport."""

    method: str
    url: str
    body: bytes | None
    headers: dict[str, str]
    timeout: float

    @property
    def path(self) -> str:
        return urlsplit(self.url).path

    @property
    def query(self) -> dict[str, list[str]]:
        return parse_qs(urlsplit(self.url).query)

    @property
    def form(self) -> dict[str, list[str]]:
        return parse_qs(self.body.decode("ascii")) if self.body else {}

    @property
    def json_string(self) -> Any:
        """Decoded JSONString form field."""
        return json.loads(self.form["JSONString"][0])


class StubTransport:
    """Transport that replays queued responses and records requests.

    Queue (status, body) tuples, or exceptions to raise.
    """

    def __init__(self, *responses: tuple[int, bytes] | Exception) -> None:
        self.responses: list[tuple[int, bytes] | Exception] = list(responses)
        self.sent: list[SentRequest] = []
        self.closed = False

    def close(self) -> None:
        self.closed = True

    def queue(self, status: int, body: bytes) -> None:
        self.responses.append((status, body))

    def send(
        self,
        method: str,
        url: str,
        body: bytes | None,
        headers: dict[str, str],
        timeout: float,
    ) -> tuple[int, bytes]:
        self.sent.append(SentRequest(method, url, body, dict(headers), timeout))
        if not self.responses:
            raise AssertionError(f"Unexpected request: {method} {url}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def transport() -> StubTransport:
    return StubTransport()


@pytest.fixture
def registry() -> EndpointRegistry:
    return EndpointRegistry()


@pytest.fixture
def executor(transport: StubTransport) -> Executor:
    return Executor(
        transport,
        auth_token="test-token",
        organization_id="10234695",
        base_url="https://books.example.com/api/v3/",
    )


@pytest.fixture
def dispatcher(registry: EndpointRegistry, executor: Executor) -> Dispatcher:
    return Dispatcher(registry, executor)


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Minimal valid client config on disk."""
    path = tmp_path / "books.yaml"
    path.write_text(
        "auth_token: test-token\n"
        "organization_id: 10234695\n"
        "base_url: https://books.example.com/api/v3\n"
        "requests_per_minute: 0\n",
        encoding="utf-8",
    )
    return path


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Automatically apply markers based on test location.

    Enables running subsets via:
        pytest -m integration  # only integration tests
        pytest -m unit         # only unit tests
    """
    for item in items:
        test_path = Path(item.fspath)
        if "integration" in test_path.parts:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
