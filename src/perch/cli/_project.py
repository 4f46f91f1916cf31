"""Shared CLI helpers: building a resolver from command-line arguments."""

import argparse
import logging
import sys

from perch.config import ResolverConfig
from perch.errors import ConfigurationError
from perch.handlers.resolver import HandlerResolver


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def build_resolver(args: argparse.Namespace) -> HandlerResolver:
    """Build a resolver for ``args.root``, exiting with code 1 if it's missing."""
    try:
        config = ResolverConfig.from_root(
            args.root,
            src_path=args.src,
            app_path=args.app,
            handler_relative_path=args.handlers,
            log_level=getattr(args, "log_level", "warning"),
        )
        configure_logging(config.log_level)
        return HandlerResolver(config)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc


def print_table(headers: tuple[str, ...], rows: list[tuple[str, ...]]) -> None:
    """Print left-aligned columns sized to their widest cell."""
    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    fmt = "  ".join(f"{{:<{w}}}" for w in widths)
    print(fmt.format(*headers).rstrip())
    print("-" * min(sum(widths) + 2 * (len(widths) - 1), 80))
    for row in rows:
        print(fmt.format(*row).rstrip())
