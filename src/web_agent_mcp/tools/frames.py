"""Iframe context tool implementations."""

import json
from typing import Optional

from ..decorators import ensure_session, exclusive_session_access
from ..errors import FrameDetachedError


@exclusive_session_access
@ensure_session
async def switch_to_iframe(ctx, selector: Optional[str] = None, name: Optional[str] = None, index: Optional[int] = None) -> str:
    info = ctx.frames.switch_to_frame(ctx.page, selector=selector, name=name, index=index)
    return json.dumps({
        "ok": True,
        "action": "switch_to_iframe",
        "frame": info.to_dict(),
        "message": f"Switched to iframe: {info.name} ({info.url})",
    })


@exclusive_session_access
async def switch_to_main_content(ctx) -> str:
    ctx.frames.switch_to_main()
    return json.dumps({"ok": True, "action": "switch_to_main_content", "frame": "main"})


@exclusive_session_access
@ensure_session
async def list_iframes(ctx) -> str:
    frames = [info.to_dict() for info in ctx.frames.list_frames(ctx.page)]
    return json.dumps({"ok": True, "count": len(frames), "iframes": frames})


@exclusive_session_access
@ensure_session(start=False)
async def get_current_frame(ctx) -> str:
    try:
        ctx.frames.resolve()
    except FrameDetachedError as e:
        return json.dumps({"ok": True, "frame": "main", "message": str(e)})
    return json.dumps({"ok": True, "frame": ctx.frames.current_frame().to_dict()})
