"""``perch routes``: list discovered routes in match order."""

import argparse

from perch.routes.manifest import build_manifest
from perch.routes.validator import format_issues


def run_routes(args: argparse.Namespace) -> None:
    """Print a table of TYPE, PATTERN and FILE for every servable route."""
    manifest = build_manifest(args.root)

    if not manifest.routes:
        print("No routes found.")
    else:
        rows = [(str(e.file_type), e.url_pattern, e.file_path) for e in manifest.routes]
        max_type = max(4, *(len(r[0]) for r in rows))  # "TYPE" header
        max_pattern = max(7, *(len(r[1]) for r in rows))  # "PATTERN" header

        fmt = f"{{:<{max_type}}}  {{:<{max_pattern}}}  {{}}"
        print(fmt.format("TYPE", "PATTERN", "FILE"))
        sep_len = max_type + max_pattern + 4 + max(len(r[2]) for r in rows)
        print("-" * min(sep_len, 80))
        for row in rows:
            print(fmt.format(*row))

    if manifest.rejected:
        print()
        print(f"Excluded ({len(manifest.rejected)}):")
        for entry in manifest.rejected:
            print(f"  {entry.file_path}")
    if manifest.errors:
        print()
        print(format_issues(manifest.errors))
