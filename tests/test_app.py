"""Tests for perch.app — build, reload, lifespan, and module checks."""

from typing import Any

import pytest

from perch.app import App, create_app
from perch.config import AppConfig
from perch.testing import TestClient


def _lifespan_channel(messages: list[dict[str, Any]]):
    sent: list[dict[str, Any]] = []
    pending = iter(messages)

    async def receive() -> dict[str, Any]:
        return next(pending)

    async def send(message: dict[str, Any]) -> None:
        sent.append(message)

    return receive, send, sent


class TestBuild:
    def test_manifest_is_built_lazily(self, write_tree) -> None:
        root = write_tree({"page.py": "def render():\n    return 'home'\n"})
        app = App(AppConfig(root_dir=str(root)))
        assert [e.url_pattern for e in app.manifest.routes] == ["/"]

    def test_create_app_overrides(self, write_tree) -> None:
        root = write_tree({"page.py": ""})
        app = create_app(str(root), debug=True, port=3000)
        assert app.config.debug is True
        assert app.config.port == 3000

    def test_build_strictness_is_a_cli_flag(self, write_tree) -> None:
        root = write_tree({"page.py": ""})
        with pytest.raises(TypeError):
            create_app(str(root), strict=True)

    def test_middleware_after_build_raises(self, write_tree) -> None:
        root = write_tree({"page.py": ""})
        app = App(AppConfig(root_dir=str(root)))
        app.manifest

        async def noop(request, next):
            return await next(request)

        with pytest.raises(RuntimeError, match="Cannot add middleware"):
            app.add_middleware(noop)


class TestReload:
    @pytest.mark.asyncio
    async def test_reload_swaps_manifest(self, write_tree) -> None:
        root = write_tree({"page.py": "def render():\n    return 'home'\n"})
        app = App(AppConfig(root_dir=str(root)))
        async with TestClient(app) as client:
            before = app.manifest
            assert (await client.get("/new")).status == 404

            write_tree({"new/page.py": "def render():\n    return 'fresh'\n"})
            after = app.reload()

            response = await client.get("/new")
        assert response.status == 200
        assert response.text == "fresh"
        assert app.manifest is after
        assert [e.url_pattern for e in before.routes] == ["/"]

    def test_build_does_not_swap(self, write_tree) -> None:
        root = write_tree({"page.py": ""})
        app = App(AppConfig(root_dir=str(root)))
        current = app.manifest
        write_tree({"other/page.py": ""})
        fresh = app.build()
        assert len(fresh.routes) == 2
        assert app.manifest is current


class TestCheckModules:
    def test_reports_broken_modules(self, write_tree) -> None:
        root = write_tree({
            "page.py": "def render():\n    return 'ok'\n",
            "broken/page.py": "def render(:\n",
            "limited/page.py": "config = {'rate_limit': 'lots'}\n",
        })
        problems = App(AppConfig(root_dir=str(root))).check_modules()
        paths = [path for path, _ in problems]
        assert len(problems) == 2
        assert any(p.endswith("broken/page.py") for p in paths)
        assert any("rate_limit" in message for _, message in problems)

    def test_clean_tree(self, write_tree) -> None:
        root = write_tree({"page.py": "def render():\n    return 'ok'\n"})
        assert App(AppConfig(root_dir=str(root))).check_modules() == []


class TestLifespan:
    @pytest.mark.asyncio
    async def test_startup_and_shutdown(self, write_tree) -> None:
        root = write_tree({"page.py": ""})
        app = App(AppConfig(root_dir=str(root)))
        receive, send, sent = _lifespan_channel(
            [{"type": "lifespan.startup"}, {"type": "lifespan.shutdown"}]
        )
        await app({"type": "lifespan"}, receive, send)
        assert [m["type"] for m in sent] == [
            "lifespan.startup.complete",
            "lifespan.shutdown.complete",
        ]

    @pytest.mark.asyncio
    async def test_watcher_stops_on_shutdown(self, write_tree) -> None:
        root = write_tree({"page.py": ""})
        app = App(AppConfig(root_dir=str(root), debug=True, reload=True, reload_interval=0.01))
        receive, send, sent = _lifespan_channel(
            [{"type": "lifespan.startup"}, {"type": "lifespan.shutdown"}]
        )
        await app({"type": "lifespan"}, receive, send)
        assert sent[-1]["type"] == "lifespan.shutdown.complete"
