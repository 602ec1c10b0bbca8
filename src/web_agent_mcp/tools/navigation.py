"""Navigation tool implementations."""

import json

from ..constants import NAVIGATION_TIMEOUT_MS
from ..decorators import ensure_session, exclusive_session_access
from ..frames import FrameInfo


def _leave_frames(ctx) -> bool:
    """A new document replaces every iframe; drop the stored one."""
    was_in_frame = isinstance(ctx.frames.current_frame(), FrameInfo)
    ctx.frames.switch_to_main()
    return was_in_frame


@exclusive_session_access
@ensure_session
async def navigate(ctx, url: str, wait_until: str = "load", timeout: int = NAVIGATION_TIMEOUT_MS) -> str:
    """Navigate the session page to ``url``."""
    left_frame = _leave_frames(ctx)
    status = ctx.page.navigate(url, wait_until=wait_until, timeout_ms=timeout)
    payload = {
        "ok": True,
        "action": "navigate",
        "url": ctx.page.url,
        "title": ctx.page.title,
        "status": status,
        "message": f"Navigated to {url}" + (f" (Status: {status})" if status is not None else ""),
    }
    if left_frame:
        payload["frame"] = "main"
    return json.dumps(payload)


@exclusive_session_access
@ensure_session
async def go_back(ctx) -> str:
    _leave_frames(ctx)
    url = ctx.page.go_back()
    return json.dumps({"ok": True, "action": "go_back", "url": url})


@exclusive_session_access
@ensure_session
async def go_forward(ctx) -> str:
    _leave_frames(ctx)
    url = ctx.page.go_forward()
    return json.dumps({"ok": True, "action": "go_forward", "url": url})


@exclusive_session_access
@ensure_session
async def refresh(ctx) -> str:
    _leave_frames(ctx)
    url = ctx.page.reload()
    return json.dumps({"ok": True, "action": "refresh", "url": url})
