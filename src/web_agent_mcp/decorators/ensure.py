# web_agent_mcp/decorators/ensure.py
import inspect
import functools

from selenium.common.exceptions import WebDriverException

import logging
logger = logging.getLogger(__name__)


def _pump_after(ctx) -> None:
    from ..browser.session import pump_events
    try:
        pump_events(ctx)
    except WebDriverException as e:
        logger.debug(f"Event pump after tool call failed: {e.__class__.__name__}: {e}")


def ensure_session(_func=None, *, start=True):
    """
    Make sure the browser session exists (``start=True``) and dispatch
    queued page events before and after the wrapped call.

    The wrapped function takes the BrowserContext as its first argument.
    With ``start=False`` a missing session is left missing and only the
    event pump runs.
    """
    def decorator(fn):
        if inspect.iscoroutinefunction(fn):
            @functools.wraps(fn)
            async def wrapper(ctx, *args, **kwargs):
                from ..browser.session import acquire_session, pump_events

                if start:
                    acquire_session(ctx)
                pump_events(ctx)
                try:
                    return await fn(ctx, *args, **kwargs)
                finally:
                    _pump_after(ctx)
            return wrapper
        else:
            @functools.wraps(fn)
            def wrapper(ctx, *args, **kwargs):
                from ..browser.session import acquire_session, pump_events

                if start:
                    acquire_session(ctx)
                pump_events(ctx)
                try:
                    return fn(ctx, *args, **kwargs)
                finally:
                    _pump_after(ctx)
            return wrapper
    return decorator if _func is None else decorator(_func)
