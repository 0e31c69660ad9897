"""Command line inspector for file-backed carriers.

Values on the command line are JSON documents (`'"text"'`, `'42'`,
`'{"k": 1}'`). Query commands print their result as JSON; mutating commands
print nothing.
"""

from __future__ import annotations

import argparse
import logging

import logfire
from pydantic import JsonValue
from rich import print_json

from carrier import codec
from carrier.backend import FileBackend
from carrier.config import CarrierSettings
from carrier.ordered import OrderedCarrier

logger = logging.getLogger(__name__)

_QUERY_COMMANDS = frozenset({"keys", "get", "pop", "shift", "dump"})


def _parse_cli_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="carrier",
        description="Inspect and edit an ordered carrier stored as <dir>/<name>.json.",
    )
    parser.add_argument(
        "--dir",
        default=None,
        help="Storage directory (default: CARRIER_STORAGE_DIR or ~/.carrier).",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum entry count; 0 means unlimited (default: CARRIER_LIMIT or 0).",
    )
    parser.add_argument(
        "--seconds",
        action="store_true",
        help="Generate timestamp keys in seconds instead of milliseconds.",
    )
    parser.add_argument("name", help="Carrier name.")

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("keys", help="Print keys in enumeration order.")
    commands.add_parser("dump", help="Print the whole carrier.")
    commands.add_parser("pop", help="Remove and print the last entry.")
    commands.add_parser("shift", help="Remove and print the first entry.")
    commands.add_parser("clear", help="Remove every entry.")

    get = commands.add_parser("get", help="Print the entry at KEY.")
    get.add_argument("key")

    for command, help_text in (
        ("set", "Insert or overwrite KEY with a JSON value."),
        ("push", "Move KEY to the end with a JSON value."),
        ("unshift", "Re-insert KEY with a JSON value, aiming for the front."),
    ):
        sub = commands.add_parser(command, help=help_text)
        sub.add_argument("key")
        sub.add_argument("value", help="JSON document.")

    remove = commands.add_parser("remove", help="Remove one or more keys.")
    remove.add_argument("keys", nargs="+")

    return parser.parse_args(argv)


def _settings_from_args(args: argparse.Namespace) -> CarrierSettings:
    overrides: dict[str, object] = {}
    if args.dir is not None:
        overrides["storage_dir"] = args.dir
    if args.limit is not None:
        overrides["limit"] = args.limit
    if args.seconds:
        overrides["based_on_second"] = True
    return CarrierSettings(**overrides)  # type: ignore[arg-type]


def run_command(carrier: OrderedCarrier, args: argparse.Namespace) -> JsonValue:
    """Apply the parsed command to `carrier` and return its result (or `None`)."""

    match args.command:
        case "keys":
            return carrier.keys()
        case "dump":
            return carrier.value().to_dict()
        case "get":
            return carrier.get(args.key)
        case "pop":
            return carrier.pop()
        case "shift":
            return carrier.shift()
        case "clear":
            carrier.clear()
        case "set":
            carrier.set(args.key, codec.decode(args.value))
        case "push":
            carrier.push(args.key, codec.decode(args.value))
        case "unshift":
            carrier.unshift(args.key, codec.decode(args.value))
        case "remove":
            carrier.remove(list(args.keys))
        case _:
            raise ValueError(f"Unknown command: {args.command!r}")
    return None


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint."""

    logfire.configure()
    logging.basicConfig(level=logging.INFO, handlers=[logfire.LogfireLoggingHandler()])

    args = _parse_cli_args(argv)
    settings = _settings_from_args(args)
    carrier = OrderedCarrier(
        args.name,
        FileBackend.from_settings(settings),
        limit=settings.limit,
        based_on_second=settings.based_on_second,
    )
    logger.info(f"Opened carrier {args.name!r} under {settings.storage_dir}")

    result = run_command(carrier, args)
    if args.command in _QUERY_COMMANDS:
        print_json(data=result)
