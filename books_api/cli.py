"""CLI entry point for books-api.

Handles argument parsing and dispatches to operations or call mode.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from books_api.errors import BooksApiError, ConfigError
from books_api.registry import EndpointRegistry


@dataclass
class OperationsArgs:
    """Parsed arguments for operations mode."""

    config: Path | None


@dataclass
class CallArgs:
    """Parsed arguments for call mode."""

    config: Path
    operation: str
    ids: list[str]
    params: dict[str, Any] | None
    out: Path | None
    verbose: bool


def json_object(value: str) -> dict[str, Any]:
    """Parse and validate a JSON object argument.

    Raises:
        argparse.ArgumentTypeError: If value is not a JSON object.
    """
    try:
        result = json.loads(value)
    except json.JSONDecodeError as e:
        raise argparse.ArgumentTypeError(f"Invalid JSON: {e}")
    if not isinstance(result, dict):
        raise argparse.ArgumentTypeError(
            f"Parameters must be a JSON object, got {type(result).__name__}."
        )
    return result


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with operations and call subcommands."""
    parser = argparse.ArgumentParser(
        prog="books-api",
        description="Call accounting API operations by name (e.g. GetInvoice, ListAllContacts).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True, help="Execution mode")

    # Operations subcommand
    operations_parser = subparsers.add_parser(
        "operations",
        help="List registered operations with their HTTP verb and URL template",
    )
    operations_parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Client config YAML; adds its objects and manual operations to the listing",
    )

    # Call subcommand
    call_parser = subparsers.add_parser(
        "call",
        help="Run one operation and print its payload as JSON",
    )
    call_parser.add_argument(
        "operation",
        help="Operation name, e.g. GetInvoice or ListAllContacts",
    )
    call_parser.add_argument(
        "ids",
        nargs="*",
        metavar="ID",
        help="Resource ids for the operation's URL placeholders",
    )
    call_parser.add_argument(
        "--config",
        type=Path,
        required=True,
        help="Client config YAML (supports ${ENV_VAR} substitution)",
    )
    call_parser.add_argument(
        "--params",
        type=json_object,
        default=None,
        metavar="JSON",
        help="Query or body parameters as a JSON object",
    )
    call_parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Write the payload to this file instead of stdout",
    )
    call_parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log requests and rate limiting to stderr",
    )

    return parser


def parse_args(args: list[str] | None = None) -> OperationsArgs | CallArgs:
    """Parse command-line arguments and return typed args dataclass.

    Args:
        args: Command-line arguments to parse. If None, uses sys.argv[1:].

    Raises:
        SystemExit: If arguments are invalid (argparse behavior).
    """
    parser = build_parser()
    namespace = parser.parse_args(args)

    if namespace.command == "operations":
        return OperationsArgs(config=namespace.config)
    return CallArgs(
        config=namespace.config,
        operation=namespace.operation,
        ids=list(namespace.ids),
        params=namespace.params,
        out=namespace.out,
        verbose=namespace.verbose,
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    try:
        parsed = parse_args(argv)

        if isinstance(parsed, OperationsArgs):
            return run_operations(parsed)
        return run_call(parsed)

    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 1


def run_operations(args: OperationsArgs) -> int:
    """Run operations mode."""
    from books_api.config_loader import load_client_config

    registry = EndpointRegistry()
    if args.config is not None:
        try:
            config = load_client_config(args.config)
        except ConfigError as e:
            print(f"Error loading config: {e}", file=sys.stderr)
            return 1
        overrides = {name: override.to_spec() for name, override in config.operations.items()}
        registry = EndpointRegistry(objects=config.objects, overrides=overrides)

    for name in registry.names():
        spec = registry.operations[name]
        suffix = " (raw)" if spec.raw_mode else ""
        print(f"{name}")
        print(f"  {spec.http_verb.value} {spec.url_template}{suffix}")

    print(f"Total: {len(registry)} operations")
    return 0


def run_call(args: CallArgs) -> int:
    """Run call mode."""
    from books_api.client import BooksClient

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )

    try:
        client = BooksClient.from_config_file(args.config)
    except ConfigError as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1

    call_args: list[Any] = list(args.ids)
    if args.params is not None:
        call_args.append(args.params)

    with client:
        try:
            payload = client.call(args.operation, *call_args)
        except BooksApiError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    _write_payload(payload, args.out)
    return 0


def _write_payload(payload: Any, out: Path | None) -> None:
    """Write a payload as JSON, or as-is when it is raw bytes."""
    if isinstance(payload, bytes):
        if out is not None:
            out.write_bytes(payload)
        else:
            sys.stdout.buffer.write(payload)
            sys.stdout.flush()
        return

    text = json.dumps(payload, indent=2, ensure_ascii=False)
    if out is not None:
        out.write_text(text + "\n", encoding="utf-8")
    else:
        print(text)


if __name__ == "__main__":
    sys.exit(main())
