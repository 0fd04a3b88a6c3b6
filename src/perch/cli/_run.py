"""``perch run``: serve a route tree with pounce."""

import argparse
import sys
from pathlib import Path

from perch.app import App
from perch.config import AppConfig


def run_server(args: argparse.Namespace) -> None:
    """Build an App for ``args.root`` and start serving."""
    if not Path(args.root).is_dir():
        print(f"Error: route directory not found: {args.root}", file=sys.stderr)
        raise SystemExit(1)

    config = AppConfig(root_dir=args.root, debug=args.debug)
    app = App(config)
    app.run(host=args.host, port=args.port)
