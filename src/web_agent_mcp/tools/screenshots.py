"""Screenshot capture, listing and OCR tool implementations."""

import json
import asyncio
from pathlib import Path
from typing import Optional

from ..actions import screenshots as capture_ops
from ..actions.retention import RetentionPolicy, schedule_cleanup
from ..config.paths import get_screenshot_dir, artifact_path
from ..decorators import ensure_session, exclusive_session_access
from ..errors import ResolutionError

import logging
logger = logging.getLogger(__name__)


def _existing_artifact(ctx, filename: str, directory: Optional[str] = None) -> Path:
    path = artifact_path(get_screenshot_dir(ctx.config, directory), filename)
    if not path.is_file():
        raise ResolutionError(f"Screenshot not found: {filename}", locator=filename)
    return path


@exclusive_session_access
@ensure_session
async def screenshot(
    ctx,
    filename: Optional[str] = None,
    directory: Optional[str] = None,
    full_page: bool = False,
    selector: Optional[str] = None,
    hi_res: bool = False,
    thumbnail: bool = False,
    auto_ocr: bool = False,
    ocr_language: str = "eng",
) -> str:
    """
    Capture the page and save it as JPEG; retention cleanup of the directory
    then runs in the background and never affects this call's result.
    """
    target_dir = get_screenshot_dir(ctx.config, directory)
    result = capture_ops.capture(
        ctx.page,
        target_dir,
        filename=filename,
        full_page=full_page,
        selector=selector,
        hi_res=hi_res,
        thumbnail=thumbnail,
        context=ctx.frames.resolve(),
    )
    payload = {"ok": True, "action": "screenshot", **result.to_dict(), "resource": f"screenshot://{result.path.name}"}

    if auto_ocr:
        try:
            payload["ocr_text"] = await asyncio.to_thread(ctx.ocr.recognize, result.path, ocr_language)
        except Exception as e:
            # The capture itself succeeded; report OCR trouble alongside it.
            logger.warning(f"Automatic OCR failed for {result.path}: {e}")
            payload["ocr_error"] = str(e)

    schedule_cleanup(target_dir, RetentionPolicy.from_config(ctx.config))
    return json.dumps(payload)


async def list_screenshots(ctx, directory: Optional[str] = None) -> str:
    target_dir = get_screenshot_dir(ctx.config, directory)
    items = capture_ops.list_screenshots(target_dir)
    return json.dumps({"ok": True, "directory": str(target_dir), "count": len(items), "screenshots": items})


@exclusive_session_access
async def parse_screenshot(ctx, filename: str, language: str = "eng", directory: Optional[str] = None) -> str:
    path = _existing_artifact(ctx, filename, directory)
    text = await asyncio.to_thread(ctx.ocr.recognize, path, language)
    return json.dumps({"ok": True, "filename": filename, "language": language, "text": text})


def read_screenshot(ctx, filename: str) -> bytes:
    """Raw bytes of a saved screenshot, for the ``screenshot://`` resource."""
    return _existing_artifact(ctx, filename).read_bytes()
