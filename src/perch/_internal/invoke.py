"""Invoke helpers for user-supplied route module functions.

Loaders, renderers, actions, and boundaries can be ``def`` or
``async def`` and may declare any subset of the call context as
parameters.  ``invoke_with`` resolves keyword arguments by parameter
name so the sync/async check and the signature inspection live in
exactly one place::

    async def loader(params, request): ...
    def render(data): ...

    data = await invoke_with(loader, {"params": {...}, "request": req})
"""

import inspect
from collections.abc import Callable, Mapping
from typing import Any


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call a handler and await the result if it's a coroutine."""
    result = handler(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


def build_kwargs(func: Callable[..., Any], context: Mapping[str, Any]) -> dict[str, Any]:
    """Pick the entries of *context* that *func* asks for by name.

    A ``**kwargs`` parameter receives the whole context.  Parameters that
    are not in the context are left to their defaults.
    """
    try:
        sig = inspect.signature(func)
    except (TypeError, ValueError):
        return dict(context)

    params = sig.parameters.values()
    if any(p.kind is inspect.Parameter.VAR_KEYWORD for p in params):
        return dict(context)

    kwargs: dict[str, Any] = {}
    for name, param in sig.parameters.items():
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.POSITIONAL_ONLY):
            continue
        if name in context:
            kwargs[name] = context[name]
    return kwargs


async def invoke_with(func: Callable[..., Any], context: Mapping[str, Any]) -> Any:
    """Call *func* with the context entries it declares, awaiting if needed."""
    return await invoke(func, **build_kwargs(func, context))
