"""Command-line interface for listing and invoking registered tools."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Sequence

from .container import build_container, shutdown, startup
from .env import load_dotenv_if_present
from .main import configure_logging
from .schema import InvocationRequest


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Inspect and invoke agent tools.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("tools", help="Print the registered tool definitions as JSON.")

    invoke = commands.add_parser("invoke", help="Invoke one tool and print its result.")
    invoke.add_argument("tool", help="Registered tool name.")
    invoke.add_argument(
        "arguments",
        nargs="?",
        default="{}",
        help="Tool arguments as a JSON object (default: {}).",
    )
    invoke.add_argument("--caller", default="cli", help="Caller identity for introspection.")
    invoke.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Cancel the call after this many seconds.",
    )
    return parser.parse_args(list(argv) if argv is not None else None)


async def _invoke(args: argparse.Namespace) -> int:
    container = build_container()
    startup(container)
    request = InvocationRequest(
        tool_name=args.tool, arguments=args.arguments, caller_id=args.caller
    )
    try:
        result = await container.dispatcher.invoke(request, timeout=args.timeout)
    finally:
        shutdown(container)
    for event in container.sink.events():
        print(f"[{event.caller_id}] {event.text}", file=sys.stderr)
    print(result.render())
    return 0 if result.ok else 1


async def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    configure_logging()
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    load_dotenv_if_present()
    try:
        if args.command == "tools":
            container = build_container()
            startup(container)
            print(json.dumps(container.registry.definitions(), indent=2))
            return 0
        return await _invoke(args)
    except KeyboardInterrupt:
        print("Invocation interrupted.", file=sys.stderr)
        return 1
    except Exception as exc:
        print(f"Invocation failed: {exc}", file=sys.stderr)
        return 1


def entrypoint() -> None:
    """Synchronously run the async CLI for convenience."""
    raise SystemExit(asyncio.run(main()))


if __name__ == "__main__":  # pragma: no cover
    entrypoint()
