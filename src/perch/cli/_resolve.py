"""``perch resolve`` and ``perch activate``: route resolution from the shell."""

import argparse
import json
import sys

from perch.cli._project import build_resolver


def parse_params(pairs: list[str]) -> dict[str, str]:
    """Parse ``KEY=VALUE`` strings into a dict.

    Raises:
        ValueError: If a pair has no ``=``.
    """
    params: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            msg = f"Expected KEY=VALUE, got {pair!r}"
            raise ValueError(msg)
        params[key] = value
    return params


def run_resolve(args: argparse.Namespace) -> None:
    """Resolve a route against the cached handlers and print the result.

    Exits with code 1 when nothing matches.
    """
    try:
        params = parse_params(args.param)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    resolver = build_resolver(args)
    resolved = resolver.resolve_by_route(args.route, params)
    if resolved is None:
        print(f"No handle module matches {args.route!r}", file=sys.stderr)
        raise SystemExit(1)

    print(f"handler: {resolved.handler.name}")
    print(f"module:  {resolved.module.name}")
    print(f"path:    {resolved.full_path}")
    print(f"params:  {json.dumps(resolved.params, ensure_ascii=False, sort_keys=True)}")


def run_activate(args: argparse.Namespace) -> None:
    """Set the active module of a cached handler."""
    resolver = build_resolver(args)
    handler = resolver.get_handler(args.name)
    if handler is None:
        print(f"Error: no cached handler named {args.name!r}", file=sys.stderr)
        raise SystemExit(1)
    if handler.get_module(args.module) is None:
        available = ", ".join(handler.module_names)
        print(f"Error: {args.name} has no module {args.module!r} (available: {available})", file=sys.stderr)
        raise SystemExit(1)

    updated = resolver.update_handler(args.name, {"active_module": args.module})
    print(f"{args.name}: active module is now {updated.active_module if updated else args.module}")
