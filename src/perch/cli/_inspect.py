"""``perch scan``, ``perch list``, ``perch show``: handler inspection."""

import argparse
import sys

from perch.cli._project import build_resolver, print_table
from perch.errors import ConfigurationError, StoreError
from perch.handlers.resolver import ResolverState
from perch.handlers.types import Handler


def _handler_rows(handlers: list[Handler]) -> list[tuple[str, ...]]:
    return [
        (
            h.name,
            h.route or "-",
            h.active_module or "-",
            str(len(h.modules)),
            "yes" if h.disable else "",
        )
        for h in handlers
    ]


def run_scan(args: argparse.Namespace) -> None:
    """Rediscover handlers and rewrite the cache snapshot."""
    resolver = build_resolver(args)
    try:
        handlers = resolver.parse_and_save()
    except (ConfigurationError, StoreError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    print(f"Scanned {len(handlers)} handler(s) into {resolver.store.path}")
    if handlers:
        print_table(("NAME", "ROUTE", "ACTIVE", "MODULES", "DISABLED"), _handler_rows(handlers))


def run_list(args: argparse.Namespace) -> None:
    """List cached handlers, optionally filtered by plugin."""
    resolver = build_resolver(args)
    handlers = resolver.get_handler_list(args.plugin) if args.plugin else resolver.get_all_handlers()
    if resolver.state is ResolverState.UNINITIALIZED:
        print("No handlers cached. Run 'perch scan' first.")
        return
    if not handlers:
        print(f"No handlers tagged {args.plugin!r}.")
        return
    print_table(("NAME", "ROUTE", "ACTIVE", "MODULES", "DISABLED"), _handler_rows(handlers))


def run_show(args: argparse.Namespace) -> None:
    """Show one cached handler and its handle modules."""
    resolver = build_resolver(args)
    handler = resolver.get_handler(args.name)
    if handler is None:
        print(f"Error: no cached handler named {args.name!r}", file=sys.stderr)
        raise SystemExit(1)

    print(f"{handler.name}: {handler.description}")
    print(f"  route:   {handler.route or '-'}")
    print(f"  plugin:  {handler.plugin}")
    print(f"  active:  {handler.active_module}")
    print()
    rows = [
        (
            ("* " if m.name == handler.active_module else "  ") + m.name,
            m.type.value,
            str(m.priority),
            m.description,
        )
        for m in handler.modules
    ]
    print_table(("MODULE", "TYPE", "PRIORITY", "DESCRIPTION"), rows)
