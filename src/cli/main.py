"""Tagstore CLI entry points.
This module exposes record commands over a configured store.
It maps argparse commands onto DataStore calls.
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Sequence

from core.config import StoreConfig
from core.errors import TagStoreError, TagStoreValidationError
from core.logging_config import configure_logging
from core.types import Record
from store.data_store import DataStore


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="tagstore", description="Tagged record store CLI")
    parser.add_argument("--locator", help="Override TAGSTORE_LOCATOR for this command")
    parser.add_argument("--config", help="YAML config file with locator/codec/source/log_level")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_add_command(subparsers)
    _add_get_command(subparsers)
    _add_update_command(subparsers)
    _add_delete_command(subparsers)
    subparsers.add_parser("tags", help="List tags that hold records")
    for name, help_text in (
        ("search", "Print records matching rules"),
        ("count", "Count records matching rules"),
        ("purge", "Delete records matching rules"),
    ):
        _add_rule_command(subparsers, name, help_text)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the tagstore CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        store = _build_store(args.locator, args.config)
        return _dispatch(store, args)
    except TagStoreError as error:
        print(f"error={error}", file=sys.stderr)
        return 1


def _build_store(locator: str | None, config_path: str | None) -> DataStore:
    """Build a store with optional config file and locator override.

    Args:
        locator: Optional locator override.
        config_path: Optional YAML config path.

    Returns:
        Configured store.
    """
    config = StoreConfig.from_yaml(config_path) if config_path else StoreConfig.from_env()
    configure_logging(config.log_level)
    return DataStore(locator=locator, config=config)


def _dispatch(store: DataStore, args: argparse.Namespace) -> int:
    if args.command == "add":
        return _run_add_command(store, args)
    if args.command == "get":
        return _run_get_command(store, args)
    if args.command == "update":
        return _run_update_command(store, args)
    if args.command == "delete":
        return _run_delete_command(store, args)
    if args.command == "tags":
        for tag in sorted(store.taglist()):
            print(tag)
        return 0
    ruleset = _build_ruleset(args.rule)
    if args.command == "search":
        for record in store.search(ruleset):
            _print_record(record)
        return 0
    if args.command == "count":
        print(store.count(ruleset or None))
        return 0
    if args.command == "purge":
        if not ruleset:
            raise TagStoreValidationError("purge requires at least one --rule.")
        print(store.purge(ruleset))
        return 0
    raise TagStoreValidationError(f"Unsupported command: {args.command}")


def _run_add_command(store: DataStore, args: argparse.Namespace) -> int:
    """Handle add command.

    Args:
        store: Configured store.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    record = _load_json_object(args.json) if args.json else {}
    record.update(_parse_fields(args.field))
    record_id = store.add(args.tag, record)
    print(record_id)
    return 0 if record_id else 1


def _run_get_command(store: DataStore, args: argparse.Namespace) -> int:
    record = store.data(args.record_id)
    if record is None:
        print(f"not_found={args.record_id}", file=sys.stderr)
        return 1
    _print_record(record)
    return 0


def _run_update_command(store: DataStore, args: argparse.Namespace) -> int:
    """Handle update command; prints the resulting id."""
    record_id = store.update(_load_json_object(args.json))
    if record_id is None:
        print("update_failed", file=sys.stderr)
        return 1
    print(record_id)
    return 0


def _run_delete_command(store: DataStore, args: argparse.Namespace) -> int:
    if not store.delete(args.record_id):
        print(f"not_found={args.record_id}", file=sys.stderr)
        return 1
    print(f"deleted={args.record_id}")
    return 0


def _parse_fields(pairs: Sequence[str] | None) -> Record:
    """Parse ``key=value`` pairs; values are read as JSON when possible."""
    fields: Record = {}
    for pair in pairs or ():
        if "=" not in pair:
            raise TagStoreValidationError(f"Invalid --field '{pair}': expected key=value.")
        key, raw_value = pair.split("=", 1)
        fields[key.strip()] = _parse_value(raw_value)
    return fields


def _parse_value(raw_value: str) -> Any:
    try:
        return json.loads(raw_value)
    except json.JSONDecodeError:
        return raw_value


def _build_ruleset(rules: Sequence[Sequence[str]] | None) -> dict[str, dict[str, str]]:
    """Group ``FIELD OP VALUE`` triples into a ruleset."""
    ruleset: dict[str, dict[str, str]] = {}
    for field_name, token, operand in rules or ():
        ruleset.setdefault(field_name, {})[token] = operand
    return ruleset


def _load_json_object(raw_json: str) -> Record:
    try:
        payload = json.loads(raw_json)
    except json.JSONDecodeError as error:
        raise TagStoreValidationError(f"Invalid --json payload: {error.msg}.") from error
    if not isinstance(payload, dict):
        raise TagStoreValidationError("--json payload must be a JSON object.")
    return payload


def _print_record(record: Record) -> None:
    print(json.dumps(record, sort_keys=True, default=str))


def _add_add_command(subparsers: Any) -> None:
    """Register add subcommand."""
    parser = subparsers.add_parser("add", help="Add a record under a tag")
    parser.add_argument("tag", help="Tag to file the record under")
    parser.add_argument(
        "--field",
        action="append",
        metavar="KEY=VALUE",
        help="Record field; value parsed as JSON when possible (repeatable)",
    )
    parser.add_argument("--json", help="Record fields as a JSON object")


def _add_get_command(subparsers: Any) -> None:
    """Register get subcommand."""
    parser = subparsers.add_parser("get", help="Print one record by id")
    parser.add_argument("record_id", type=int, help="Record id")


def _add_update_command(subparsers: Any) -> None:
    """Register update subcommand."""
    parser = subparsers.add_parser("update", help="Replace a record or re-add a stale copy")
    parser.add_argument("--json", required=True, help="Full record as a JSON object")


def _add_delete_command(subparsers: Any) -> None:
    """Register delete subcommand."""
    parser = subparsers.add_parser("delete", help="Delete one record by id")
    parser.add_argument("record_id", type=int, help="Record id")


def _add_rule_command(subparsers: Any, name: str, help_text: str) -> None:
    """Register a subcommand that takes --rule triples."""
    parser = subparsers.add_parser(name, help=help_text)
    parser.add_argument(
        "--rule",
        action="append",
        nargs=3,
        metavar=("FIELD", "OP", "VALUE"),
        help="Comparison such as '_tag eq bill' or 'counter >= 100' (repeatable)",
    )
