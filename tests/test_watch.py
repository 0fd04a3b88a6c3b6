"""Tests for perch.server.watch — route tree fingerprints and polling."""

import os

import pytest

from perch.server.watch import ManifestWatcher, fingerprint


class TestFingerprint:
    def test_missing_root(self, tmp_path) -> None:
        assert fingerprint(tmp_path / "nope") == ()

    def test_skips_ignored_directories(self, write_tree) -> None:
        root = write_tree({"page.py": "", "node_modules/x/page.py": ""})
        paths = [path for path, _, _ in fingerprint(root)]
        assert len(paths) == 1
        assert paths[0].endswith("page.py")


class TestManifestWatcher:
    def test_poll_without_changes(self, write_tree) -> None:
        root = write_tree({"page.py": ""})
        calls: list[int] = []
        watcher = ManifestWatcher(root, lambda: calls.append(1))
        assert watcher.poll() is False
        assert calls == []

    def test_poll_detects_new_file(self, write_tree) -> None:
        root = write_tree({"page.py": ""})
        calls: list[int] = []
        watcher = ManifestWatcher(root, lambda: calls.append(1))
        write_tree({"about/page.py": ""})
        assert watcher.poll() is True
        assert watcher.poll() is False
        assert calls == [1]

    def test_poll_detects_modification(self, write_tree) -> None:
        root = write_tree({"page.py": ""})
        calls: list[int] = []
        watcher = ManifestWatcher(root, lambda: calls.append(1))
        stat = os.stat(root / "page.py")
        os.utime(root / "page.py", ns=(stat.st_atime_ns, stat.st_mtime_ns + 1_000_000_000))
        assert watcher.poll() is True
        assert calls == [1]

    def test_failed_rebuild_is_retried(self, write_tree) -> None:
        root = write_tree({"page.py": ""})
        attempts: list[int] = []

        def rebuild() -> None:
            attempts.append(1)
            if len(attempts) == 1:
                raise RuntimeError("half-written file")

        watcher = ManifestWatcher(root, rebuild)
        write_tree({"about/page.py": ""})
        with pytest.raises(RuntimeError):
            watcher.poll()
        assert watcher.poll() is True
        assert watcher.poll() is False
        assert len(attempts) == 2
