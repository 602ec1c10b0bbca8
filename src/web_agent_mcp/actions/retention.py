"""Screenshot retention: decide which artifacts survive a cleanup pass."""

import asyncio
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Set, Tuple, Union

from ..constants import RETENTION_MAX_FILES, RETENTION_MIN_KEEP, RETENTION_MAX_AGE_DAYS

import logging
logger = logging.getLogger(__name__)


IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".webp")
TEMP_PREFIX = "temp-"
THUMBNAIL_SUFFIX = ".thumb.jpg"

_SECONDS_PER_DAY = 86400.0

# Strong references for detached cleanup tasks.
_pending: Set[asyncio.Task] = set()


def thumbnail_path(path: Union[str, Path]) -> Path:
    path = Path(path)
    return path.with_name(f"{path.stem}{THUMBNAIL_SUFFIX}")


def is_candidate(name: str) -> bool:
    lowered = name.lower()
    return (
        lowered.endswith(IMAGE_EXTENSIONS)
        and not lowered.startswith(TEMP_PREFIX)
        and not lowered.endswith(THUMBNAIL_SUFFIX)
    )


@dataclass(frozen=True)
class RetentionPolicy:
    """
    mode="count": keep the ``max_files`` most recent artifacts.
    mode="age": always keep the ``min_keep`` most recent, and of the rest
    delete those older than ``max_age_days``.
    """

    mode: str = "count"
    max_files: int = RETENTION_MAX_FILES
    min_keep: int = RETENTION_MIN_KEEP
    max_age_days: float = RETENTION_MAX_AGE_DAYS

    def __post_init__(self):
        if self.mode not in ("count", "age"):
            raise ValueError(f"Retention mode must be 'count' or 'age', got {self.mode!r}")
        if self.max_files < 0 or self.min_keep < 0 or self.max_age_days < 0:
            raise ValueError("Retention limits must be non-negative")

    @classmethod
    def from_config(cls, config: dict) -> "RetentionPolicy":
        return cls(
            mode=config.get("retention_mode", "count"),
            max_files=config.get("retention_max_files", RETENTION_MAX_FILES),
            min_keep=config.get("retention_min_keep", RETENTION_MIN_KEEP),
            max_age_days=config.get("retention_max_age_days", RETENTION_MAX_AGE_DAYS),
        )


@dataclass(frozen=True)
class CleanupResult:
    deleted: int
    kept: int
    failed: int = 0


def list_candidates(directory: Union[str, Path]) -> List[Tuple[Path, float]]:
    """Snapshot the directory: ``(path, mtime)`` pairs, newest first."""
    found = []
    with os.scandir(directory) as entries:
        for entry in entries:
            if not is_candidate(entry.name):
                continue
            try:
                if not entry.is_file():
                    continue
                mtime = entry.stat().st_mtime
            except FileNotFoundError:
                continue
            found.append((Path(entry.path), mtime))
    found.sort(key=lambda item: (item[1], item[0].name), reverse=True)
    return found


def select_for_deletion(candidates: List[Tuple[Path, float]], policy: RetentionPolicy, now: float) -> List[Path]:
    if policy.mode == "count":
        return [path for path, _ in candidates[policy.max_files:]]
    threshold = now - policy.max_age_days * _SECONDS_PER_DAY
    return [path for path, mtime in candidates[policy.min_keep:] if mtime < threshold]


def _delete(path: Path) -> bool:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not delete screenshot {path}: {e}")
        return False
    try:
        thumbnail_path(path).unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Could not delete thumbnail for {path}: {e}")
    return True


def cleanup(directory: Union[str, Path], policy: Optional[RetentionPolicy] = None, now: Optional[float] = None) -> CleanupResult:
    """
    Apply ``policy`` to the screenshots in ``directory``.

    Works on a listing taken at the start, so files written during the pass
    are left alone. One failed deletion does not stop the others.
    """
    policy = policy or RetentionPolicy()
    now = time.time() if now is None else now
    try:
        candidates = list_candidates(directory)
    except OSError as e:
        logger.warning(f"Screenshot cleanup skipped, cannot list {directory}: {e}")
        return CleanupResult(deleted=0, kept=0)

    doomed = select_for_deletion(candidates, policy, now)
    deleted = sum(1 for path in doomed if _delete(path))
    failed = len(doomed) - deleted
    return CleanupResult(deleted=deleted, kept=len(candidates) - deleted, failed=failed)


def _on_cleanup_done(task: asyncio.Task) -> None:
    _pending.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.warning(f"Screenshot cleanup failed: {exc!r}")
        return
    result = task.result()
    if result.deleted or result.failed:
        logger.info(f"Screenshot cleanup: deleted {result.deleted}, kept {result.kept}, failed {result.failed}")


def schedule_cleanup(directory: Union[str, Path], policy: RetentionPolicy) -> Optional[asyncio.Task]:
    """Run ``cleanup`` in a worker thread without making the caller wait for it."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        logger.debug("No running event loop; screenshot cleanup not scheduled")
        return None
    task = loop.create_task(asyncio.to_thread(cleanup, directory, policy))
    _pending.add(task)
    task.add_done_callback(_on_cleanup_done)
    return task


async def wait_for_cleanups() -> None:
    """Await every cleanup task scheduled so far (used at shutdown and in tests)."""
    if _pending:
        await asyncio.gather(*list(_pending), return_exceptions=True)
