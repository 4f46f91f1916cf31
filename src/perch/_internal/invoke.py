"""Invoke helpers: call sync or async handle functions uniformly.

A handle module's ``handle`` can be ``def`` or ``async def``. Any code
that calls one must handle both cases. This module provides a single
helper so the sync/async check lives in exactly one place.

Usage::

    from perch._internal.invoke import invoke

    result = await invoke(handle, params)
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result if it's awaitable.

    Works with both sync and async callables::

        # sync: returns immediately, no await needed
        def handle(params):
            return {"retcode": 0}

        # async: returns coroutine, awaited automatically
        async def handle(params):
            await anyio.sleep(0.1)
            return {"retcode": 0}
    """
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
