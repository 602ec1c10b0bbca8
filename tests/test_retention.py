# tests/test_retention.py
import os
import time

import pytest

from web_agent_mcp.actions import retention
from web_agent_mcp.actions.retention import (
    RetentionPolicy,
    cleanup,
    is_candidate,
    list_candidates,
    schedule_cleanup,
    thumbnail_path,
    wait_for_cleanups,
)

DAY = 86400.0


def _touch(directory, name, mtime):
    path = directory / name
    path.write_bytes(b"\xff\xd8jpeg")
    os.utime(path, (mtime, mtime))
    return path


@pytest.fixture
def now():
    return time.time()


def test_candidates_exclude_temp_files_and_thumbnails():
    assert is_candidate("screenshot-1.jpg")
    assert is_candidate("shot.PNG")
    assert not is_candidate("temp-screenshot-1.png")
    assert not is_candidate("screenshot-1.thumb.jpg")
    assert not is_candidate("notes.txt")


def test_listing_is_newest_first(tmp_path, now):
    _touch(tmp_path, "old.jpg", now - 100)
    _touch(tmp_path, "new.jpg", now - 1)
    _touch(tmp_path, "temp-x.png", now)
    assert [p.name for p, _ in list_candidates(tmp_path)] == ["new.jpg", "old.jpg"]


def test_count_mode_keeps_max_files(tmp_path, now):
    for i in range(26):
        _touch(tmp_path, f"shot-{i:02d}.jpg", now - i)
    result = cleanup(tmp_path, RetentionPolicy(mode="count", max_files=20), now=now)
    assert result.deleted == 6
    assert result.kept == 20
    remaining = sorted(p.name for p in tmp_path.iterdir())
    assert remaining == [f"shot-{i:02d}.jpg" for i in range(20)]


def test_age_mode_deletes_only_old_files_beyond_min_keep(tmp_path, now):
    for i in range(10):
        _touch(tmp_path, f"recent-{i}.jpg", now - 1 * DAY - i)
    for i in range(5):
        _touch(tmp_path, f"stale-{i}.jpg", now - 10 * DAY - i)
    policy = RetentionPolicy(mode="age", min_keep=10, max_age_days=7)
    result = cleanup(tmp_path, policy, now=now)
    assert result.deleted == 5
    assert sorted(p.name for p in tmp_path.iterdir()) == sorted(f"recent-{i}.jpg" for i in range(10))


def test_age_mode_never_drops_below_min_keep(tmp_path, now):
    for i in range(4):
        _touch(tmp_path, f"ancient-{i}.jpg", now - 100 * DAY - i)
    result = cleanup(tmp_path, RetentionPolicy(mode="age", min_keep=3, max_age_days=7), now=now)
    assert result.deleted == 1
    assert len(list(tmp_path.iterdir())) == 3


def test_thumbnail_goes_with_its_screenshot(tmp_path, now):
    kept = _touch(tmp_path, "keep.jpg", now)
    doomed = _touch(tmp_path, "drop.jpg", now - 10)
    _touch(tmp_path, thumbnail_path(doomed).name, now - 10)
    _touch(tmp_path, thumbnail_path(kept).name, now)
    cleanup(tmp_path, RetentionPolicy(mode="count", max_files=1), now=now)
    assert sorted(p.name for p in tmp_path.iterdir()) == ["keep.jpg", "keep.thumb.jpg"]


def test_one_failed_deletion_does_not_stop_the_rest(tmp_path, now, monkeypatch):
    for i in range(5):
        _touch(tmp_path, f"shot-{i}.jpg", now - i)

    real_unlink = retention.Path.unlink

    def flaky_unlink(self, *args, **kwargs):
        if self.name == "shot-3.jpg":
            raise PermissionError("locked")
        return real_unlink(self, *args, **kwargs)

    monkeypatch.setattr(retention.Path, "unlink", flaky_unlink)
    result = cleanup(tmp_path, RetentionPolicy(mode="count", max_files=2), now=now)
    assert result.deleted == 2
    assert result.failed == 1
    assert sorted(p.name for p in tmp_path.iterdir()) == ["shot-0.jpg", "shot-1.jpg", "shot-3.jpg"]


def test_missing_directory_is_not_an_error(tmp_path):
    result = cleanup(tmp_path / "absent")
    assert (result.deleted, result.kept) == (0, 0)


def test_policy_validation():
    with pytest.raises(ValueError):
        RetentionPolicy(mode="size")
    with pytest.raises(ValueError):
        RetentionPolicy(max_files=-1)


def test_policy_from_config():
    policy = RetentionPolicy.from_config({"retention_mode": "age", "retention_min_keep": 3, "retention_max_age_days": 2.5})
    assert policy == RetentionPolicy(mode="age", max_files=20, min_keep=3, max_age_days=2.5)


def test_scheduled_cleanup_runs_in_background(tmp_path, now, event_loop):
    for i in range(4):
        _touch(tmp_path, f"shot-{i}.jpg", now - i)

    async def run():
        task = schedule_cleanup(tmp_path, RetentionPolicy(mode="count", max_files=1))
        assert task is not None
        await wait_for_cleanups()
        return task.result()

    result = event_loop.run_until_complete(run())
    assert result.deleted == 3
    assert [p.name for p in tmp_path.iterdir()] == ["shot-0.jpg"]


def test_schedule_without_loop_is_skipped(tmp_path):
    assert schedule_cleanup(tmp_path, RetentionPolicy()) is None
