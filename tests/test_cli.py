"""Tests for books_api.cli.

Tests cover:
- Argument parsing for operations and call subcommands
- JSON parameter validation
- operations and call modes end to end with a stubbed client transport
"""

import argparse
import json
from pathlib import Path
from unittest.mock import patch

import pytest

from books_api.cli import (
    CallArgs,
    OperationsArgs,
    json_object,
    main,
    parse_args,
    run_call,
    run_operations,
)
from tests.conftest import StubTransport, make_envelope


# =============================================================================
# Argument parsing
# =============================================================================


class TestParseArgs:
    def test_operations_without_config(self):
        args = parse_args(["operations"])
        assert isinstance(args, OperationsArgs)
        assert args.config is None

    def test_call_with_ids_and_params(self):
        args = parse_args([
            "call", "UpdateContact", "42",
            "--config", "books.yaml",
            "--params", '{"contact_name": "Acme"}',
        ])

        assert isinstance(args, CallArgs)
        assert args.operation == "UpdateContact"
        assert args.ids == ["42"]
        assert args.params == {"contact_name": "Acme"}
        assert args.config == Path("books.yaml")
        assert args.out is None
        assert args.verbose is False

    def test_call_requires_config(self):
        with pytest.raises(SystemExit) as exc_info:
            parse_args(["call", "ListContacts"])
        assert exc_info.value.code == 2

    def test_missing_subcommand(self):
        with pytest.raises(SystemExit) as exc_info:
            parse_args([])
        assert exc_info.value.code == 2


class TestJsonObject:
    def test_valid_object(self):
        assert json_object('{"page": 2}') == {"page": 2}

    @pytest.mark.parametrize("value", ["[1, 2]", '"text"', "{not json"])
    def test_rejects_non_objects(self, value):
        with pytest.raises(argparse.ArgumentTypeError):
            json_object(value)


# =============================================================================
# Modes
# =============================================================================


class TestRunOperations:
    def test_lists_default_operations(self, capsys):
        assert run_operations(OperationsArgs(config=None)) == 0

        out = capsys.readouterr().out
        assert "InvoicesGet\n  GET invoices/{}\n" in out
        assert "ContactsCreate\n  POST contacts\n" in out
        assert "Total: 108 operations" in out

    def test_includes_manual_operations(self, tmp_path, capsys):
        path = tmp_path / "books.yaml"
        path.write_text(
            "auth_token: a\n"
            "organization_id: '1'\n"
            "objects: [Items]\n"
            "operations:\n"
            "  InvoicesPdf: {url_template: 'invoices/{}', http_verb: GET, raw_mode: true}\n",
            encoding="utf-8",
        )

        assert run_operations(OperationsArgs(config=path)) == 0

        out = capsys.readouterr().out
        assert "InvoicesPdf\n  GET invoices/{} (raw)\n" in out
        assert "Total: 7 operations" in out

    def test_bad_config(self, tmp_path, capsys):
        assert run_operations(OperationsArgs(config=tmp_path / "missing.yaml")) == 1
        assert "Error loading config" in capsys.readouterr().err


def _call_args(config: Path, operation: str, *ids: str, params=None, out=None) -> CallArgs:
    return CallArgs(
        config=config, operation=operation, ids=list(ids), params=params, out=out, verbose=False
    )


class TestRunCall:
    def test_prints_payload_as_json(self, config_file, capsys):
        transport = StubTransport((200, make_envelope(invoice={"invoice_id": "123"})))

        with patch("books_api.client.HttpxTransport", return_value=transport):
            code = run_call(_call_args(config_file, "GetInvoice", "123"))

        assert code == 0
        assert json.loads(capsys.readouterr().out) == {"invoice_id": "123"}
        assert transport.sent[0].path == "/api/v3/invoices/123"

    def test_params_forwarded(self, config_file, capsys):
        transport = StubTransport((200, make_envelope(contacts=[])))

        with patch("books_api.client.HttpxTransport", return_value=transport):
            code = run_call(_call_args(config_file, "ListContacts", params={"page": 3}))

        assert code == 0
        assert transport.sent[0].query["page"] == ["3"]

    def test_provider_error_exit_code(self, config_file, capsys):
        transport = StubTransport((200, make_envelope(code=14, message="no such entity")))

        with patch("books_api.client.HttpxTransport", return_value=transport):
            code = run_call(_call_args(config_file, "GetInvoice", "1"))

        assert code == 1
        assert "no such entity" in capsys.readouterr().err

    def test_arity_error_exit_code(self, config_file, capsys):
        transport = StubTransport()

        with patch("books_api.client.HttpxTransport", return_value=transport):
            code = run_call(_call_args(config_file, "DeleteInvoice"))

        assert code == 1
        assert "requires 1 or 2 arguments" in capsys.readouterr().err
        assert transport.sent == []

    def test_raw_payload_written_to_file(self, tmp_path, capsys):
        config = tmp_path / "books.yaml"
        config.write_text(
            "auth_token: a\n"
            "organization_id: '1'\n"
            "requests_per_minute: 0\n"
            "operations:\n"
            "  InvoicesPdf: {url_template: 'invoices/{}', http_verb: GET, raw_mode: true}\n",
            encoding="utf-8",
        )
        out = tmp_path / "invoice.pdf"
        transport = StubTransport((200, b"%PDF-1.4"))

        with patch("books_api.client.HttpxTransport", return_value=transport):
            code = run_call(_call_args(config, "InvoicesPdf", "1", out=out))

        assert code == 0
        assert out.read_bytes() == b"%PDF-1.4"

    def test_missing_config(self, tmp_path, capsys):
        assert run_call(_call_args(tmp_path / "nope.yaml", "ListContacts")) == 1
        assert "Error loading config" in capsys.readouterr().err


class TestMain:
    def test_main_dispatches_operations(self, capsys):
        assert main(["operations"]) == 0
        assert "Total:" in capsys.readouterr().out
