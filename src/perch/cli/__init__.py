"""Perch CLI: scan handler trees, inspect the cache, resolve routes.

Entry point registered as ``perch`` in ``pyproject.toml``::

    [project.scripts]
    perch = "perch.cli:main"
"""

import argparse
import sys


def _add_project_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("root", help="Mock project root directory")
    parser.add_argument("--src", default=None, help="Source tree (default: <root>/src)")
    parser.add_argument("--app", default=None, help="Runtime tree (default: <root>/app)")
    parser.add_argument(
        "--handlers",
        default="mocker",
        help="Handler directory relative to the source/runtime trees",
    )


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``perch`` command."""
    parser = argparse.ArgumentParser(
        prog="perch",
        description="Perch: file-system-backed mock handlers for end-to-end tests.",
    )
    parser.add_argument(
        "--log-level",
        default="warning",
        choices=["debug", "info", "warning", "error"],
        help="Logging verbosity",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- perch scan -------------------------------------------------------
    scan_parser = subparsers.add_parser("scan", help="Rediscover handlers and rewrite the cache")
    _add_project_args(scan_parser)

    # -- perch list -------------------------------------------------------
    list_parser = subparsers.add_parser("list", help="List cached handlers")
    _add_project_args(list_parser)
    list_parser.add_argument("--plugin", default=None, help="Only handlers tagged with this plugin")

    # -- perch show -------------------------------------------------------
    show_parser = subparsers.add_parser("show", help="Show one cached handler and its modules")
    _add_project_args(show_parser)
    show_parser.add_argument("name", help="Handler name")

    # -- perch resolve ----------------------------------------------------
    resolve_parser = subparsers.add_parser("resolve", help="Resolve a route to a handle module")
    _add_project_args(resolve_parser)
    resolve_parser.add_argument("route", help="Route to resolve (e.g. /cgi-bin/a/b/demo)")
    resolve_parser.add_argument(
        "-p",
        "--param",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Request parameter (repeatable)",
    )

    # -- perch activate ---------------------------------------------------
    activate_parser = subparsers.add_parser("activate", help="Set a handler's active module")
    _add_project_args(activate_parser)
    activate_parser.add_argument("name", help="Handler name")
    activate_parser.add_argument("module", help="Handle module name")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "scan":
        from perch.cli._inspect import run_scan

        run_scan(args)
    elif args.command == "list":
        from perch.cli._inspect import run_list

        run_list(args)
    elif args.command == "show":
        from perch.cli._inspect import run_show

        run_show(args)
    elif args.command == "resolve":
        from perch.cli._resolve import run_resolve

        run_resolve(args)
    elif args.command == "activate":
        from perch.cli._resolve import run_activate

        run_activate(args)
