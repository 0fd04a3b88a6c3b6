"""Tests for perch.routes.resolver — ancestor walks."""

import pytest

from perch.routes.resolver import (
    ancestor_directories,
    request_directories,
    resolve_error_boundary,
    resolve_inherited,
    resolve_layouts,
    resolve_nearest,
)


class TestAncestorDirectories:
    def test_nested(self) -> None:
        assert ancestor_directories("users/[id]/profile/page.py") == [
            "",
            "users",
            "users/[id]",
            "users/[id]/profile",
        ]

    def test_root_file(self) -> None:
        assert ancestor_directories("page.py") == [""]

    @pytest.mark.parametrize(
        "path",
        ["page.py", "a/page.py", "a/b/c/d/page.py", "(g)/x/[id]/[...rest]/page.py"],
    )
    def test_shape(self, path: str) -> None:
        directories = ancestor_directories(path)
        depth = path.count("/")
        assert len(directories) == depth + 1
        assert len(set(directories)) == len(directories)
        assert directories[0] == ""
        for parent, child in zip(directories, directories[1:]):
            assert child.startswith(parent)

    def test_request_directories(self) -> None:
        assert request_directories("/") == [""]
        assert request_directories("/blog/missing/") == ["", "blog", "blog/missing"]


class TestInheritance:
    def test_layouts_root_first(self) -> None:
        layouts = {"": "/app/layout.py", "users/[id]": "/app/users/[id]/layout.py"}
        assert resolve_layouts("users/[id]/profile/page.py", layouts) == (
            "/app/layout.py",
            "/app/users/[id]/layout.py",
        )

    def test_group_directories_participate(self) -> None:
        layouts = {"(marketing)": "/app/(marketing)/layout.py"}
        assert resolve_layouts("(marketing)/about/page.py", layouts) == ("/app/(marketing)/layout.py",)
        assert resolve_layouts("about/page.py", layouts) == ()

    def test_resolve_inherited_skips_missing(self) -> None:
        assert resolve_inherited(["", "a", "a/b"], {"a/b": "x"}) == ("x",)


class TestOverride:
    boundaries = {"": "/app/error.py", "dashboard": "/app/dashboard/error.py"}

    def test_nearest_wins(self) -> None:
        assert resolve_error_boundary("dashboard/settings/page.py", self.boundaries) == (
            "/app/dashboard/error.py"
        )

    def test_falls_back_to_root(self) -> None:
        assert resolve_error_boundary("billing/page.py", self.boundaries) == "/app/error.py"

    def test_none_when_absent(self) -> None:
        assert resolve_nearest(["", "a"], {}) is None
