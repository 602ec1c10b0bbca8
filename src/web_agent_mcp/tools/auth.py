"""Login form and cookie tool implementations."""

import json
from typing import List, Optional

from ..constants import WAIT_TIMEOUT_MS
from ..decorators import ensure_session, exclusive_session_access
from ..errors import ToolTimeoutError
from .interaction import decode_secret

import logging
logger = logging.getLogger(__name__)


@exclusive_session_access
@ensure_session
async def login(
    ctx,
    username_selector: str,
    password_selector: str,
    username: str,
    password: str,
    submit_selector: str,
    timeout: int = WAIT_TIMEOUT_MS,
) -> str:
    """Fill a username/password form in the active context, submit it and wait for the network to settle."""
    with ctx.page.scoped(ctx.frames.resolve()):
        ctx.page.fill(username_selector, decode_secret(username))
        ctx.page.fill(password_selector, decode_secret(password))
        ctx.page.click(submit_selector)

    settled = True
    try:
        ctx.page.wait_for_load_state("networkidle", timeout / 1000.0)
    except ToolTimeoutError as e:
        # The form was submitted; a chatty page is not a failed login.
        logger.info(f"Login submitted but the page kept loading: {e}")
        settled = False
    return json.dumps({"ok": True, "action": "login", "url": ctx.page.url, "settled": settled})


@exclusive_session_access
@ensure_session
async def get_cookies(ctx, urls: Optional[List[str]] = None) -> str:
    cookies = ctx.page.cookies(urls)
    return json.dumps({"ok": True, "count": len(cookies), "cookies": cookies})


@exclusive_session_access
@ensure_session
async def set_cookie(ctx, name: str, value: str, domain: Optional[str] = None, path: str = "/") -> str:
    if not name:
        raise ValueError("Cookie name must not be empty")
    accepted = ctx.page.add_cookie(name, value, domain=domain, path=path)
    return json.dumps({"ok": accepted, "action": "set_cookie", "name": name, "domain": domain, "path": path})
