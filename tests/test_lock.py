"""Tests for the advisory lockfile."""

import os
import time
from datetime import timedelta
from pathlib import Path

import pytest

from podcaddy.utils.lock import LockFile


class TestLockFile:
    """Tests for LockFile."""

    def test_not_held_without_file(self, tmp_path: Path) -> None:
        assert LockFile(tmp_path / "podcasts.lock").is_held() is False

    def test_acquire_and_release(self, tmp_path: Path) -> None:
        lock = LockFile(tmp_path / "nested" / "podcasts.lock")

        lock.acquire()
        assert lock.is_held() is True

        lock.release()
        assert lock.is_held() is False
        lock.release()

    def test_stale_lock_is_removed(self, tmp_path: Path) -> None:
        lock = LockFile(tmp_path / "podcasts.lock", max_age=timedelta(hours=2))
        lock.acquire()
        three_hours_ago = time.time() - 3 * 3600
        os.utime(lock.path, (three_hours_ago, three_hours_ago))

        assert lock.is_held() is False
        assert not lock.path.exists()

    def test_recent_lock_is_kept(self, tmp_path: Path) -> None:
        lock = LockFile(tmp_path / "podcasts.lock")
        lock.acquire()
        an_hour_ago = time.time() - 3600
        os.utime(lock.path, (an_hour_ago, an_hour_ago))

        assert lock.is_held() is True

    def test_hold_releases_on_error(self, tmp_path: Path) -> None:
        lock = LockFile(tmp_path / "podcasts.lock")

        with pytest.raises(RuntimeError), lock.hold():
            assert lock.path.exists()
            raise RuntimeError("interrupted")

        assert not lock.path.exists()
