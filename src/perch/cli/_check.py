"""``perch check``: validate the route tree and load every module.

Prints manifest issues and module load failures.  Exits with code 1 if
any errors are found.
"""

import argparse
import sys

from perch.app import App
from perch.config import AppConfig
from perch.routes.validator import format_issues


def run_check(args: argparse.Namespace) -> None:
    app = App(AppConfig(root_dir=args.root))
    manifest = app.manifest
    problems = app.check_modules()

    if manifest.warnings:
        print("Warnings:\n" + format_issues(manifest.warnings))
    if manifest.errors:
        print("Errors:\n" + format_issues(manifest.errors), file=sys.stderr)
    for path, message in problems:
        print(f"Module error: {path}\n   {message}", file=sys.stderr)

    if manifest.has_errors() or problems:
        raise SystemExit(1)
    print(f"OK: {len(manifest.routes)} routes")
