"""Console capture, script execution and diagnostics tool implementations."""

import json
from typing import Optional

from ..decorators import ensure_session, exclusive_session_access
from ..utils.diagnostics import collect_diagnostics


@exclusive_session_access
@ensure_session(start=False)
async def get_console_logs(ctx, clear: bool = False, filter: Optional[str] = None, limit: Optional[int] = None) -> str:
    records = ctx.console.read_all(clear=clear, filter=filter, limit=limit)
    return json.dumps({
        "ok": True,
        "count": len(records),
        "logs": [r.to_dict() for r in records],
        "text": "\n".join(r.format(i) for i, r in enumerate(records)) or "No console logs captured",
        "cleared": clear,
    })


@exclusive_session_access
@ensure_session
async def execute_console(ctx, code: str) -> str:
    """
    Evaluate ``code`` in the active context. A script that throws yields
    ``ok: false`` with the script's error message; it is not a tool failure.
    """
    with ctx.page.scoped(ctx.frames.resolve()):
        outcome = ctx.page.evaluate(code)
    return json.dumps({"ok": bool(outcome.get("success")), **outcome})


@exclusive_session_access
async def get_session_info(ctx) -> str:
    return json.dumps({
        "ok": True,
        "session_active": ctx.is_driver_initialized(),
        "frame": ctx.frames.current_frame().to_dict(),
        "console_records": len(ctx.console),
        "dialog_records": len(ctx.dialogs),
        "dialog_handler": ctx.dialog_config.to_dict(),
        "diagnostics": collect_diagnostics(ctx),
    })
