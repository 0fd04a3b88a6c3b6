"""Perch CLI: route listing, manifest builds, checks, and serving.

Entry point registered as ``perch`` in ``pyproject.toml``::

    [project.scripts]
    perch = "perch.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``perch`` command."""
    parser = argparse.ArgumentParser(
        prog="perch",
        description="Perch: file-based routing for Python ASGI apps.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- perch routes -----------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List discovered routes")
    routes_parser.add_argument("root", help="Route root directory")

    # -- perch build ------------------------------------------------------
    build_parser = subparsers.add_parser("build", help="Build and validate the route manifest")
    build_parser.add_argument("root", help="Route root directory")
    build_parser.add_argument("--json", dest="json_path", default=None, help="Write the manifest as JSON")
    build_parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on warnings as well as errors",
    )

    # -- perch check ------------------------------------------------------
    check_parser = subparsers.add_parser("check", help="Validate routes and load every module")
    check_parser.add_argument("root", help="Route root directory")

    # -- perch run --------------------------------------------------------
    run_parser = subparsers.add_parser("run", help="Serve the route tree with pounce")
    run_parser.add_argument("root", help="Route root directory")
    run_parser.add_argument("--host", default=None, help="Bind host address")
    run_parser.add_argument("--port", type=int, default=None, help="Bind port number")
    run_parser.add_argument("--debug", action="store_true", help="Debug mode with route reloading")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "routes":
        from perch.cli._routes import run_routes

        run_routes(args)
    elif args.command == "build":
        from perch.cli._build import run_build

        run_build(args)
    elif args.command == "check":
        from perch.cli._check import run_check

        run_check(args)
    elif args.command == "run":
        from perch.cli._run import run_server

        run_server(args)
