"""Shared fixtures: build route trees under ``tmp_path``."""

import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

type TreeWriter = Callable[[dict[str, str]], Path]


@pytest.fixture
def write_tree(tmp_path: Path) -> TreeWriter:
    """Write ``{relative_path: source}`` under ``tmp_path / "app"``.

    Sources are dedented, so tests can use indented triple-quoted strings.
    Returns the route root.
    """
    root = tmp_path / "app"
    root.mkdir(exist_ok=True)

    def write(files: dict[str, str]) -> Path:
        for relative, source in files.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(source), encoding="utf-8")
        return root

    return write
