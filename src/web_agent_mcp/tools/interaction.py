"""Element interaction tool implementations."""

import json
import asyncio
import base64
import binascii
from typing import Optional

from ..constants import WAIT_TIMEOUT_MS
from ..decorators import ensure_session, exclusive_session_access
from ..errors import BrowserToolError


SCROLL_VECTORS = {
    "up": (0, -1),
    "down": (0, 1),
    "left": (-1, 0),
    "right": (1, 0),
}


def decode_secret(value: str) -> str:
    """
    Resolve a possibly-encoded secret.

    ``base64:<data>`` is decoded as UTF-8. ``dpapi:`` values are rejected:
    they can only be decrypted by the Windows account that produced them.
    Anything else is returned unchanged.
    """
    if value.startswith("base64:"):
        try:
            return base64.b64decode(value[len("base64:"):], validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise ValueError(f"Invalid base64-encoded secret: {e}") from None
    if value.startswith("dpapi:"):
        raise BrowserToolError("dpapi-protected secrets are not supported; pass the value as base64:<data> instead")
    return value


@exclusive_session_access
@ensure_session
async def click(ctx, selector: str, click_count: int = 1, button: str = "left") -> str:
    with ctx.page.scoped(ctx.frames.resolve()):
        ctx.page.click(selector, click_count=click_count, button=button)
    return json.dumps({"ok": True, "action": "click", "selector": selector, "button": button, "click_count": click_count})


@exclusive_session_access
@ensure_session
async def type_text(ctx, selector: str, text: str, delay: int = 0) -> str:
    value = decode_secret(text)
    with ctx.page.scoped(ctx.frames.resolve()):
        ctx.page.type_text(selector, value, delay_ms=delay)
    # The typed value is not echoed back; it may be a secret.
    return json.dumps({"ok": True, "action": "type", "selector": selector, "characters": len(value)})


@exclusive_session_access
@ensure_session
async def press_key(ctx, key: str, delay: int = 0) -> str:
    with ctx.page.scoped(ctx.frames.resolve()):
        ctx.page.press_key(key, delay_ms=delay)
    return json.dumps({"ok": True, "action": "press_key", "key": key})


@exclusive_session_access
@ensure_session
async def scroll(ctx, direction: str = "down", amount: int = 500) -> str:
    if direction not in SCROLL_VECTORS:
        raise ValueError(f"direction must be one of {', '.join(SCROLL_VECTORS)}, got {direction!r}")
    ux, uy = SCROLL_VECTORS[direction]
    with ctx.page.scoped(ctx.frames.resolve()):
        position = ctx.page.scroll(ux * amount, uy * amount)
    return json.dumps({"ok": True, "action": "scroll", "direction": direction, "amount": amount, "position": position})


@exclusive_session_access
@ensure_session
async def wait(ctx, selector: Optional[str] = None, timeout: int = WAIT_TIMEOUT_MS, state: str = "visible") -> str:
    """Wait for ``selector`` to reach ``state``; without a selector just pause for ``timeout`` ms."""
    if not selector:
        await asyncio.sleep(timeout / 1000.0)
        return json.dumps({"ok": True, "action": "wait", "waited_ms": timeout})
    with ctx.page.scoped(ctx.frames.resolve()):
        ctx.page.wait_for(selector, state=state, timeout_ms=timeout)
    return json.dumps({"ok": True, "action": "wait", "selector": selector, "state": state})
