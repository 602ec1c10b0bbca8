"""Path utilities for screenshot artifacts."""

import os
from pathlib import Path
from typing import Optional, Union

import logging
logger = logging.getLogger(__name__)


def get_screenshot_dir(config: Optional[dict] = None, override: Optional[str] = None) -> Path:
    """
    Resolve the screenshot directory.

    Precedence: explicit ``override`` (tool argument), then the configured
    WEB_AGENT_SCREENSHOT_DIR, then ``screenshots/`` under the working directory.
    """
    chosen = override or (config or {}).get("screenshot_dir")
    if chosen:
        return Path(os.path.expanduser(chosen)).absolute()
    return Path.cwd() / "screenshots"


def ensure_dir(path: Union[str, Path]) -> Path:
    """Create ``path`` if needed. Failures are logged, not raised."""
    path = Path(path)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.warning(f"Could not create directory {path}: {e}")
    return path


def artifact_path(directory: Union[str, Path], filename: str) -> Path:
    """Join a bare file name onto ``directory``; path components are rejected."""
    if not filename or Path(filename).name != filename or filename in (".", ".."):
        raise ValueError(f"Screenshot filename must be a bare file name, got {filename!r}")
    return Path(directory) / filename
