"""``perch build``: build the route manifest and fail on errors.

Exits with code 1 if the manifest has errors, or warnings with
``--strict``.  ``--json`` writes the manifest for other tooling.
"""

import argparse
import json
import sys
from pathlib import Path

from perch.routes.manifest import build_manifest
from perch.routes.validator import format_issues


def run_build(args: argparse.Namespace) -> None:
    manifest = build_manifest(args.root)

    if args.json_path:
        Path(args.json_path).write_text(
            json.dumps(manifest.to_dict(), indent=2) + "\n",
            encoding="utf-8",
        )

    print(f"{len(manifest.routes)} routes, {len(manifest.errors)} errors, {len(manifest.warnings)} warnings")
    if manifest.errors:
        print("\nErrors:\n" + format_issues(manifest.errors), file=sys.stderr)
    if manifest.warnings:
        print("\nWarnings:\n" + format_issues(manifest.warnings), file=sys.stderr)

    if manifest.has_errors() or (args.strict and manifest.has_warnings()):
        raise SystemExit(1)
