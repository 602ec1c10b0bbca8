# web_agent_mcp/decorators/locking.py

"""
One session, one tool call at a time.

The client normally awaits each response before the next request, but
nothing in the protocol enforces it. Tools that touch the session hold the
context's asyncio lock for their whole run, so frame switches, dialog
resolution and buffer reads never interleave.
"""

import inspect
import functools


__all__ = [
    "exclusive_session_access",
]


def exclusive_session_access(_func=None):
    """Serialize calls on the BrowserContext passed as first argument."""

    def decorator(func):
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"exclusive_session_access needs an async function, got {func.__name__}")

        @functools.wraps(func)
        async def wrapper(ctx, *args, **kwargs):
            async with ctx.get_intra_process_lock():
                return await func(ctx, *args, **kwargs)
        return wrapper

    return decorator if _func is None else decorator(_func)
