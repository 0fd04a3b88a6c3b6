"""Development-mode manifest watcher.

Polls a cheap fingerprint of the route tree (path, mtime, size of every
file) and calls ``rebuild`` when it changes.  The rebuild runs in a worker
thread and its result is swapped in by the caller, so in-flight requests
keep the snapshot they started with.
"""

import logging
import os
from collections.abc import Callable
from pathlib import Path

import anyio

from perch.routes.scanner import walk_files

logger = logging.getLogger("perch.server")

type Fingerprint = tuple[tuple[str, int, int], ...]


def fingerprint(root: str | Path) -> Fingerprint:
    """Snapshot of every file under *root*.  Empty if *root* is missing."""
    root_path = Path(root)
    if not root_path.is_dir():
        return ()
    entries: list[tuple[str, int, int]] = []
    for path in walk_files(root_path):
        try:
            stat = os.stat(path)
        except FileNotFoundError:
            continue
        entries.append((path.as_posix(), stat.st_mtime_ns, stat.st_size))
    return tuple(entries)


class ManifestWatcher:
    """Rebuilds the manifest when the route tree changes.

    Usage::

        watcher = ManifestWatcher(config.root_dir, app.reload, interval=0.5)
        async with anyio.create_task_group() as tg:
            tg.start_soon(watcher.run)
    """

    __slots__ = ("_last", "interval", "rebuild", "root")

    def __init__(
        self,
        root: str | Path,
        rebuild: Callable[[], object],
        *,
        interval: float = 0.5,
    ) -> None:
        self.root = Path(root)
        self.rebuild = rebuild
        self.interval = interval
        self._last: Fingerprint = fingerprint(self.root)

    def poll(self) -> bool:
        """Check once.  Returns True if a rebuild ran.

        The fingerprint is only recorded after a successful rebuild, so a
        failed rebuild is retried on the next poll.
        """
        current = fingerprint(self.root)
        if current == self._last:
            return False
        logger.info("Route tree changed under %s, rebuilding manifest", self.root)
        self.rebuild()
        self._last = current
        return True

    async def run(self) -> None:
        """Poll forever.  Cancel the enclosing task group to stop."""
        while True:
            await anyio.sleep(self.interval)
            try:
                await anyio.to_thread.run_sync(self.poll)
            except Exception:
                logger.exception("Manifest rebuild failed; keeping the previous manifest")
