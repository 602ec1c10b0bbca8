"""Screenshot capture and JPEG derivatives."""

import datetime
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple, Union

from PIL import Image

from ..constants import LOW_RES_WIDTH, JPEG_QUALITY, HIRES_JPEG_QUALITY, THUMBNAIL_WIDTH
from ..config.paths import ensure_dir, artifact_path
from ..frames import MAIN
from .retention import IMAGE_EXTENSIONS, TEMP_PREFIX, thumbnail_path, list_candidates

import logging
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScreenshotResult:
    path: Path
    width: int
    height: int
    thumbnail: Optional[Path] = None

    def to_dict(self) -> dict:
        return {
            "path": str(self.path),
            "filename": self.path.name,
            "width": self.width,
            "height": self.height,
            "thumbnail": str(self.thumbnail) if self.thumbnail else None,
        }


def default_filename(now: Optional[datetime.datetime] = None) -> str:
    """``screenshot-2024-05-01T10-20-30-123Z.jpg`` for the given UTC moment."""
    now = now or datetime.datetime.now(datetime.timezone.utc)
    stamp = now.strftime("%Y-%m-%dT%H-%M-%S") + f"-{now.microsecond // 1000:03d}Z"
    return f"screenshot-{stamp}.jpg"


def encode_jpeg(source: Union[str, Path], target: Union[str, Path], width: Optional[int] = None, quality: int = JPEG_QUALITY) -> Tuple[int, int]:
    """
    Re-encode ``source`` as JPEG at ``target``, shrinking to ``width`` while
    keeping the aspect ratio. Images already narrower are not enlarged.
    """
    with Image.open(source) as img:
        out = img if img.mode == "RGB" else img.convert("RGB")
        if width and out.width > width:
            height = max(1, round(out.height * width / out.width))
            out = out.resize((width, height), Image.Resampling.LANCZOS)
        out.save(target, format="JPEG", quality=quality)
        return out.size


def capture(
    page,
    directory: Union[str, Path],
    filename: Optional[str] = None,
    full_page: bool = False,
    selector: Optional[str] = None,
    hi_res: bool = False,
    thumbnail: bool = False,
    context=MAIN,
) -> ScreenshotResult:
    """
    Capture the page (or one element of the active context) and write the
    JPEG artifact, plus an optional ``<stem>.thumb.jpg``.

    The raw PNG goes to a ``temp-`` file first so retention never sees a
    half-written artifact; it is removed once encoding finishes.
    """
    directory = ensure_dir(directory)
    filename = filename or default_filename()
    # Artifacts are always JPEG; keep the extension honest.
    if not filename.lower().endswith((".jpg", ".jpeg")):
        stem = Path(filename).stem if filename.lower().endswith(IMAGE_EXTENSIONS) else filename
        filename = f"{stem}.jpg"
    target = artifact_path(directory, filename)
    prefix = f"{TEMP_PREFIX}hires-" if hi_res else TEMP_PREFIX
    temp = directory / f"{prefix}{target.stem}.png"

    with page.scoped(context):
        page.screenshot(temp, full_page=full_page, selector=selector)
    try:
        if hi_res:
            width, height = encode_jpeg(temp, target, width=None, quality=HIRES_JPEG_QUALITY)
        else:
            width, height = encode_jpeg(temp, target, width=LOW_RES_WIDTH, quality=JPEG_QUALITY)
        thumb = None
        if thumbnail:
            thumb = thumbnail_path(target)
            encode_jpeg(temp, thumb, width=THUMBNAIL_WIDTH, quality=JPEG_QUALITY)
    finally:
        try:
            temp.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove temporary capture {temp}: {e}")

    logger.debug(f"Saved screenshot {target} ({width}x{height})")
    return ScreenshotResult(path=target, width=width, height=height, thumbnail=thumb)


def list_screenshots(directory: Union[str, Path]) -> List[dict]:
    """Artifacts in ``directory``, newest first. A missing directory lists as empty."""
    directory = Path(directory)
    if not directory.is_dir():
        return []
    listing = []
    for path, mtime in list_candidates(directory):
        thumb = thumbnail_path(path)
        listing.append({
            "filename": path.name,
            "modified": datetime.datetime.fromtimestamp(mtime, tz=datetime.timezone.utc).isoformat(),
            "size": path.stat().st_size if path.exists() else None,
            "thumbnail": thumb.name if thumb.exists() else None,
        })
    return listing
