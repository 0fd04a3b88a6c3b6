"""Tests for perch.modules — route file loading and the module cache."""

import os

import pytest

from perch.errors import ModuleLoadError, RouteConfigError
from perch.modules.cache import ModuleCache
from perch.modules.loader import create_environment, load_module


class TestLoadModule:
    def test_python_exports(self, write_tree) -> None:
        root = write_tree({
            "page.py": """
                config = {"auth": "optional"}

                def loader(params):
                    return {"n": 1}

                def render(data):
                    return f"<p>{data['n']}</p>"

                actions = {"post": lambda: "created", "DELETE": lambda: "gone"}
            """,
        })
        module = load_module(root / "page.py", create_environment())
        assert module.render is not None
        assert module.loader is not None
        assert set(module.actions) == {"POST", "DELETE"}
        assert module.action_for("PUT") is None
        assert module.config is not None and module.config.auth == "optional"

    def test_verb_handlers(self, write_tree) -> None:
        root = write_tree({
            "route.py": """
                def get():
                    return {"ok": True}

                async def POST(request):
                    return "made"
            """,
        })
        module = load_module(root / "route.py", create_environment())
        assert set(module.handlers) == {"GET", "POST"}
        assert module.handler_for("HEAD") is module.handlers["GET"]
        assert module.allowed_methods == frozenset({"GET", "HEAD", "POST"})

    def test_single_action_serves_every_verb(self, write_tree) -> None:
        root = write_tree({"page.py": "def action():\n    return 1\n"})
        module = load_module(root / "page.py", create_environment())
        assert module.action_for("POST") is module.action_for("PATCH")

    def test_middleware_list(self, write_tree) -> None:
        root = write_tree({
            "middleware.py": """
                async def one(request, next):
                    return await next(request)

                async def two(request, next):
                    return await next(request)

                middleware = [one, two]
            """,
        })
        module = load_module(root / "middleware.py", create_environment())
        assert [mw.__name__ for mw in module.middleware] == ["one", "two"]

    def test_template_module(self, write_tree) -> None:
        root = write_tree({"about/page.html": "<h1>{{ title }}</h1>"})
        module = load_module(root / "about" / "page.html", create_environment())
        assert module.render(title="About") == "<h1>About</h1>"

    def test_import_failure(self, write_tree) -> None:
        root = write_tree({"page.py": "raise RuntimeError('boom')\n"})
        with pytest.raises(ModuleLoadError, match="boom"):
            load_module(root / "page.py", create_environment())

    def test_bad_config_names_file(self, write_tree) -> None:
        root = write_tree({"page.py": "config = {'cache': 'sometimes'}\n"})
        with pytest.raises(RouteConfigError, match="page.py"):
            load_module(root / "page.py", create_environment())

    def test_non_callable_render(self, write_tree) -> None:
        root = write_tree({"page.py": "render = 'hello'\n"})
        with pytest.raises(ModuleLoadError, match="render"):
            load_module(root / "page.py", create_environment())


class TestModuleCache:
    def test_hit_until_mtime_changes(self, write_tree) -> None:
        root = write_tree({"page.py": "def render():\n    return 'v1'\n"})
        path = root / "page.py"
        cache = ModuleCache()

        first = cache.get(path)
        assert cache.get(path) is first
        assert (cache.hits, cache.misses) == (1, 1)

        path.write_text("def render():\n    return 'v2'\n", encoding="utf-8")
        stat = os.stat(path)
        os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns + 1_000_000_000))

        second = cache.get(path)
        assert second is not first
        assert second.render() == "v2"
        assert cache.misses == 2

    def test_invalidate(self, write_tree) -> None:
        root = write_tree({"page.py": "", "layout.py": ""})
        cache = ModuleCache()
        cache.get(root / "page.py")
        cache.get(root / "layout.py")
        assert len(cache) == 2

        cache.invalidate(root / "page.py")
        assert root / "page.py" not in cache
        assert root / "layout.py" in cache

        cache.invalidate()
        assert len(cache) == 0

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError):
            ModuleCache().get(tmp_path / "page.py")

    def test_deleted_file_keeps_last_module(self, write_tree) -> None:
        root = write_tree({"page.py": "def render():\n    return 'v1'\n"})
        cache = ModuleCache()
        first = cache.get(root / "page.py")

        (root / "page.py").unlink()
        assert cache.get(root / "page.py") is first

        cache.invalidate(root / "page.py")
        with pytest.raises(FileNotFoundError):
            cache.get(root / "page.py")
