"""Browser session management tool implementations."""

import json

from ..browser.session import teardown_session
from ..decorators import exclusive_session_access

import logging
logger = logging.getLogger(__name__)


@exclusive_session_access
async def close_browser(ctx, clear_buffers: bool = False) -> str:
    """Close the session browser. The next page tool starts a fresh one."""
    closed = teardown_session(ctx, clear_buffers=clear_buffers)
    message = "Browser closed" if closed else "No browser session was open"
    return json.dumps({"ok": True, "closed": closed, "buffers_cleared": clear_buffers, "message": message})
