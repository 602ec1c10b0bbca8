"""Dialog history and handler configuration tools."""

import json
from typing import Optional

from ..constants import DEFAULT_DIALOG_LIMIT
from ..decorators import ensure_session, exclusive_session_access


@exclusive_session_access
@ensure_session(start=False)
async def get_dialogs(ctx, clear: bool = False, filter: Optional[str] = None, limit: int = DEFAULT_DIALOG_LIMIT) -> str:
    """
    Dialogs resolved so far, oldest first. ``limit`` keeps the most recent N
    (0 = all); ``filter`` matches the dialog kind or a substring of the message.
    """
    records = ctx.dialogs.read_all(clear=clear, filter=filter, limit=limit)
    summary = f"Captured {len(records)} dialogs"
    if limit and len(records) == limit:
        summary += f" (showing last {limit})"
    return json.dumps({
        "ok": True,
        "count": len(records),
        "summary": summary,
        "dialogs": [r.to_dict() for r in records],
        "text": "\n\n".join(r.format() for r in records) or "No dialogs captured",
        "config": ctx.dialog_config.to_dict(),
        "cleared": clear,
    })


@exclusive_session_access
async def configure_dialog_handler(
    ctx,
    auto_handle: Optional[bool] = None,
    default_action: Optional[str] = None,
    prompt_text: Optional[str] = None,
) -> str:
    """Change how the next dialogs are resolved; dialogs already resolved are unaffected."""
    config = ctx.dialog_config.configure(
        auto_handle=auto_handle,
        default_action=default_action,
        prompt_text=prompt_text,
    )
    payload = {"ok": True, "action": "configure_dialog_handler", "config": config.to_dict()}
    if not config.auto_handle:
        payload["note"] = "Dialogs are still accepted when auto_handle is off; an open dialog would block the page."
    return json.dumps(payload)
