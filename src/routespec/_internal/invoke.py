"""Invoke helpers — call sync or async callables uniformly.

Route handlers, ``param`` hooks and error handlers can be ``def`` or
``async def``. Anything that calls user code goes through ``invoke`` so
the sync/async check lives in exactly one place.
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result if it is awaitable.

    ::

        def show(request, next):
            return {"id": request.params["id"]}

        async def audit(request, next):
            response = await next(request)
            await log_access(request)
            return response

        await invoke(show, request, next)
        await invoke(audit, request, next)
    """
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
