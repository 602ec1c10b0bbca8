"""Page content and DOM query tool implementations."""

import json
from typing import List

from ..actions.extraction import run_queries
from ..decorators import ensure_session, exclusive_session_access
from ..utils.html_utils import clean_html


@exclusive_session_access
@ensure_session
async def get_page_content(ctx, format: str = "text", cleaning_level: int = 0) -> str:
    """
    Content of the active context (main page or current iframe).

    ``format="text"`` returns the body's text content; ``format="html"``
    returns markup, optionally stripped with ``cleaning_level`` 1 (scripts,
    styles, metadata) or 2 (also embedded media, comments, hidden inputs).
    """
    if format not in ("text", "html"):
        raise ValueError(f"format must be 'text' or 'html', got {format!r}")
    context = ctx.frames.resolve()
    with ctx.page.scoped(context):
        content = ctx.page.content(format)
    if format == "html" and cleaning_level > 0:
        content = clean_html(content, aggressive=cleaning_level > 1)
    return json.dumps({
        "ok": True,
        "format": format,
        "frame": ctx.frames.current_frame().to_dict(),
        "length": len(content),
        "content": content,
    })


@exclusive_session_access
@ensure_session
async def query_page(ctx, queries: List[dict]) -> str:
    if not queries:
        raise ValueError("queries must contain at least one query")
    outcome = run_queries(ctx.page, queries, context=ctx.frames.resolve())
    payload = {"ok": True, **outcome}
    return json.dumps(payload, ensure_ascii=False)
