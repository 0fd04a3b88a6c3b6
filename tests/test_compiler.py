"""Tests for perch.routes.compiler — file paths to URL patterns."""

import pytest

from perch.errors import PatternError
from perch.routes.compiler import (
    compile_path,
    compile_route,
    parse_segment,
    route_priority,
    sort_routes,
)
from perch.routes.types import (
    CatchAllSegment,
    DynamicSegment,
    FileType,
    GroupSegment,
    OptionalCatchAllSegment,
    ScannedFile,
    StaticSegment,
)


def _scanned(relative_path: str, file_type: FileType = FileType.PAGE) -> ScannedFile:
    stem, _, ext = relative_path.rpartition("/")[2].partition(".")
    return ScannedFile(
        relative_path=relative_path,
        absolute_path=f"/srv/app/{relative_path}",
        base_name=stem,
        extension=f".{ext}",
        file_type=file_type,
    )


class TestParseSegment:
    def test_static(self) -> None:
        assert parse_segment("users") == StaticSegment("users")

    def test_dynamic(self) -> None:
        assert parse_segment("[id]") == DynamicSegment("id")

    def test_catch_all(self) -> None:
        assert parse_segment("[...slug]") == CatchAllSegment("slug")

    def test_optional_catch_all(self) -> None:
        assert parse_segment("[[...slug]]") == OptionalCatchAllSegment("slug")

    def test_group(self) -> None:
        assert parse_segment("(marketing)") == GroupSegment("marketing")
        assert parse_segment("(auth-pages)") == GroupSegment("auth-pages")

    @pytest.mark.parametrize("part", ["[1id]", "[id", "[...]", "[[slug]]", "()", "(1x)", "[a-b]"])
    def test_malformed_brackets(self, part: str) -> None:
        with pytest.raises(PatternError, match="Malformed segment"):
            parse_segment(part)

    def test_unsafe_static(self) -> None:
        with pytest.raises(PatternError, match="not URL-safe"):
            parse_segment("hello world")


class TestCompilePath:
    def test_root(self) -> None:
        assert compile_path("page.py") == ("/", ())

    def test_nested_dynamic(self) -> None:
        pattern, segments = compile_path("users/[id]/profile/page.py")
        assert pattern == "/users/:id/profile"
        assert segments == (StaticSegment("users"), DynamicSegment("id"), StaticSegment("profile"))

    def test_catch_all_tokens(self) -> None:
        assert compile_path("docs/[...slug]/page.py")[0] == "/docs/*slug"
        assert compile_path("shop/[[...path]]/page.py")[0] == "/shop/*path?"

    def test_group_is_url_invisible_but_kept(self) -> None:
        pattern, segments = compile_path("(marketing)/about/page.py")
        assert pattern == "/about"
        assert segments == (GroupSegment("marketing"), StaticSegment("about"))

    def test_group_only(self) -> None:
        assert compile_path("(auth)/page.py")[0] == "/"

    def test_error_names_the_file(self) -> None:
        with pytest.raises(PatternError) as exc_info:
            compile_path("users/[bad-name]/page.py")
        assert exc_info.value.files == ("users/[bad-name]/page.py",)


class TestRoutePriority:
    def test_static_beats_dynamic(self) -> None:
        static = route_priority(compile_path("users/new/page.py")[1])
        dynamic = route_priority(compile_path("users/[id]/page.py")[1])
        assert static < dynamic

    def test_dynamic_beats_catch_all(self) -> None:
        dynamic = route_priority(compile_path("docs/[id]/page.py")[1])
        catch_all = route_priority(compile_path("docs/[...slug]/page.py")[1])
        optional = route_priority(compile_path("docs/[[...slug]]/page.py")[1])
        assert dynamic < catch_all < optional

    def test_groups_ignored(self) -> None:
        assert route_priority(compile_path("(g)/about/page.py")[1]) == route_priority(
            compile_path("about/page.py")[1]
        )

    def test_counts_wildcards(self) -> None:
        assert route_priority(compile_path("a/[b]/[...c]/page.py")[1]) == ((0, 1, 2), 2)


class TestSortRoutes:
    def test_priority_order(self) -> None:
        entries = [
            compile_route(_scanned("docs/[...slug]/page.py")),
            compile_route(_scanned("docs/[id]/page.py")),
            compile_route(_scanned("docs/intro/page.py")),
        ]
        ordered = [e.url_pattern for e in sort_routes(entries)]
        assert ordered == ["/docs/intro", "/docs/:id", "/docs/*slug"]

    def test_ties_keep_input_order(self) -> None:
        first = compile_route(_scanned("(a)/x/page.py"))
        second = compile_route(_scanned("(b)/x/page.py"))
        assert sort_routes([first, second]) == (first, second)
        assert sort_routes([second, first]) == (second, first)


class TestCompileRoute:
    def test_entry_fields(self) -> None:
        entry = compile_route(_scanned("api/users/route.py", FileType.ROUTE))
        assert entry.url_pattern == "/api/users"
        assert entry.file_path == "api/users/route.py"
        assert entry.absolute_path == "/srv/app/api/users/route.py"
        assert entry.file_type is FileType.ROUTE
        assert entry.layouts == ()
        assert entry.error_boundary is None

    def test_rejects_non_route_files(self) -> None:
        with pytest.raises(PatternError):
            compile_route(_scanned("layout.py", FileType.LAYOUT))
