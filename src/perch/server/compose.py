"""Layout composition and the per-call context handed to route modules."""

from collections.abc import Mapping, Sequence
from typing import Any

from kida.template import Markup

from perch._internal.invoke import invoke_with
from perch.errors import ModuleLoadError
from perch.http.request import Request
from perch.modules.cache import ModuleCache
from perch.modules.route_config import RouteConfig


def build_context(
    request: Request,
    params: Mapping[str, str],
    config: RouteConfig | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """Names a loader, render, action or boundary may ask for.

    Path params are also available under their own names, so
    ``def render(id): ...`` works for ``users/[id]/page.py``.  A param named
    like a context entry (``[data]``, ``[request]``) is only in ``params``;
    the manifest builder warns about those.
    """
    context: dict[str, Any] = dict(params)
    context.update(
        request=request,
        params=params,
        query=request.query,
        config=config,
        data=None,
        content=None,
        error=None,
        error_id=None,
        error_type=None,
        action_data=None,
    )
    context.update(extra)
    return context


def as_html(output: Any) -> str:
    """Render output as a string body."""
    if isinstance(output, str):
        return output
    if isinstance(output, bytes):
        return output.decode("utf-8")
    if output is None:
        return ""
    return str(output)


async def render_module(
    modules: ModuleCache,
    path: str,
    context: Mapping[str, Any],
) -> Any:
    """Run a module's loader (if any) then its render function."""
    module = modules.get(path)
    if module.render is None:
        msg = f"{path} does not define render()"
        raise ModuleLoadError(msg)
    call_context = dict(context)
    if module.loader is not None:
        call_context["data"] = await invoke_with(module.loader, call_context)
    return await invoke_with(module.render, call_context)


async def compose_layouts(
    modules: ModuleCache,
    content: str,
    layouts: Sequence[str],
    context: Mapping[str, Any],
) -> str:
    """Wrap *content* with *layouts* (root-first paths), innermost first.

    Each layout receives the inner output as ``content`` and its own
    loader result as ``data``.
    """
    for path in reversed(layouts):
        layout_context = {**context, "content": Markup(content), "data": None}
        content = as_html(await render_module(modules, path, layout_context))
    return content
