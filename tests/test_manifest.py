"""Tests for perch.routes.manifest — end-to-end manifest builds."""

import json
from pathlib import Path

from perch.routes.manifest import build_manifest
from perch.routes.types import DynamicSegment, StaticSegment


class TestBuildManifest:
    def test_routes_and_resolution(self, write_tree) -> None:
        root = write_tree({
            "page.py": "",
            "layout.py": "",
            "error.py": "",
            "users/[id]/layout.py": "",
            "users/[id]/profile/page.py": "",
            "dashboard/error.py": "",
            "dashboard/settings/page.py": "",
            "billing/page.py": "",
        })
        manifest = build_manifest(root)
        base = root.resolve()

        profile = manifest.find("/users/:id/profile")
        assert profile is not None
        assert profile.segments == (
            StaticSegment("users"),
            DynamicSegment("id"),
            StaticSegment("profile"),
        )
        assert profile.layouts == (
            str(base / "layout.py"),
            str(base / "users" / "[id]" / "layout.py"),
        )

        assert manifest.find("/dashboard/settings").error_boundary == str(
            base / "dashboard" / "error.py"
        )
        assert manifest.find("/billing").error_boundary == str(base / "error.py")
        assert manifest.errors == ()

    def test_directory_maps(self, write_tree) -> None:
        root = write_tree({
            "page.py": "",
            "layout.py": "",
            "admin/middleware.py": "",
            "admin/not-found.py": "",
            "admin/loading.py": "",
        })
        manifest = build_manifest(root)
        base = root.resolve()
        assert dict(manifest.layouts) == {"": str(base / "layout.py")}
        assert dict(manifest.middleware) == {"admin": str(base / "admin" / "middleware.py")}
        assert dict(manifest.not_found_boundaries) == {"admin": str(base / "admin" / "not-found.py")}
        assert dict(manifest.loading_boundaries) == {"admin": str(base / "admin" / "loading.py")}

    def test_idempotent(self, write_tree) -> None:
        root = write_tree({
            "page.py": "",
            "layout.py": "",
            "docs/[...slug]/page.py": "",
            "docs/intro/page.py": "",
            "(shop)/cart/page.py": "",
            "users/[id]/page.py": "",
        })
        first = build_manifest(root)
        second = build_manifest(root)
        assert first == second
        assert [e.url_pattern for e in first.routes] == [e.url_pattern for e in second.routes]

    def test_conflict_excludes_both(self, write_tree) -> None:
        root = write_tree({"api/x/page.py": "", "api/x/route.py": "", "page.py": ""})
        manifest = build_manifest(root)

        conflicts = [e for e in manifest.errors if e.kind == "conflict"]
        assert len(conflicts) == 1
        assert set(conflicts[0].files) == {"api/x/page.py", "api/x/route.py"}
        assert manifest.find("/api/x") is None
        assert {e.file_path for e in manifest.rejected} == {"api/x/page.py", "api/x/route.py"}
        assert [e.url_pattern for e in manifest.routes] == ["/"]

    def test_pattern_errors_exclude_route(self, write_tree) -> None:
        root = write_tree({
            "page.py": "",
            "a/[...x]/[...y]/page.py": "",
            "docs/[...slug]/edit/page.py": "",
            "bad dir/page.py": "",
        })
        manifest = build_manifest(root)

        assert [e.url_pattern for e in manifest.routes] == ["/"]
        assert all(e.kind == "pattern" for e in manifest.errors)
        failing = {f for e in manifest.errors for f in e.files}
        assert failing == {"a/[...x]/[...y]/page.py", "docs/[...slug]/edit/page.py", "bad dir/page.py"}

    def test_missing_root(self, tmp_path: Path) -> None:
        manifest = build_manifest(tmp_path / "missing")
        assert manifest.routes == ()
        assert [e.kind for e in manifest.errors] == ["scan-error"]

    def test_no_routes_warning(self, write_tree) -> None:
        root = write_tree({"layout.py": ""})
        manifest = build_manifest(root)
        assert [w.kind for w in manifest.warnings] == ["no-routes"]
        assert not manifest.has_errors()

    def test_duplicate_layout_warning(self, write_tree) -> None:
        root = write_tree({"page.py": "", "layout.html": "", "layout.py": ""})
        manifest = build_manifest(root)
        assert manifest.layouts[""].endswith("layout.html")
        assert [w.kind for w in manifest.warnings] == ["duplicate"]

    def test_to_dict_is_json(self, write_tree) -> None:
        root = write_tree({"page.py": "", "users/[id]/page.py": ""})
        data = build_manifest(root).to_dict()
        decoded = json.loads(json.dumps(data))
        assert [r["url_pattern"] for r in decoded["routes"]] == ["/", "/users/:id"]
        assert decoded["routes"][1]["segments"][1] == {"kind": "dynamic", "name": "id"}
