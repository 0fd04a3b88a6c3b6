"""Compiled-module cache keyed by ``(absolute path, mtime_ns)``.

An explicit object, injected into whatever needs compiled modules.  An
edit to a file changes its mtime, so the next lookup recompiles it.

No lock: concurrent misses for one key may compile twice, and since
compiling a fixed file is deterministic the last writer wins.
"""

import logging
import os
from pathlib import Path

from kida import Environment

from perch.modules.loader import CompiledModule, create_environment, load_module

logger = logging.getLogger("perch.modules")


class ModuleCache:
    """Cache of compiled route modules.

    Usage::

        cache = ModuleCache()
        module = cache.get("/srv/app/users/[id]/page.py")
        cache.invalidate()          # drop everything
    """

    __slots__ = ("_entries", "env", "hits", "misses")

    def __init__(self, env: Environment | None = None) -> None:
        self.env = env if env is not None else create_environment()
        self._entries: dict[str, tuple[int, CompiledModule]] = {}
        self.hits = 0
        self.misses = 0

    def get(self, path: str | Path) -> CompiledModule:
        """Return the compiled module for *path*, compiling on a miss.

        A file deleted after it was compiled keeps its last module, so a
        request still holding an older manifest can finish.

        Raises:
            FileNotFoundError: *path* is missing and was never compiled.
        """
        key = os.fspath(path)
        cached = self._entries.get(key)
        try:
            mtime_ns = os.stat(key).st_mtime_ns
        except FileNotFoundError:
            if cached is None:
                raise
            self.hits += 1
            return cached[1]
        if cached is not None and cached[0] == mtime_ns:
            self.hits += 1
            return cached[1]

        self.misses += 1
        logger.debug("Module cache miss for %s", key)
        module = load_module(key, self.env)
        self._entries[key] = (mtime_ns, module)
        return module

    def invalidate(self, path: str | Path | None = None) -> None:
        """Drop one entry, or every entry when *path* is ``None``."""
        if path is None:
            self._entries.clear()
        else:
            self._entries.pop(os.fspath(path), None)

    def __contains__(self, path: object) -> bool:
        return isinstance(path, (str, Path)) and os.fspath(path) in self._entries

    def __len__(self) -> int:
        return len(self._entries)
