"""Advisory lockfile shared by download and transfer runs."""

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import timedelta
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE = timedelta(hours=2)


class LockFile:
    """An empty marker file whose modification time dates the running job.

    Locks older than ``max_age`` are treated as left behind by a crashed
    run and removed on the next check.
    """

    def __init__(self, path: Path, max_age: timedelta = DEFAULT_MAX_AGE) -> None:
        self.path = path
        self.max_age = max_age

    def is_held(self) -> bool:
        """Check whether another job holds the lock, expiring stale locks."""
        try:
            modified = self.path.stat().st_mtime
        except FileNotFoundError:
            return False

        age = time.time() - modified
        if age > self.max_age.total_seconds():
            logger.warning("Removing stale lockfile %s (%.0f minutes old)", self.path, age / 60)
            self.release()
            return False
        return True

    def acquire(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.touch()

    def release(self) -> None:
        self.path.unlink(missing_ok=True)

    @contextmanager
    def hold(self) -> Iterator[None]:
        """Hold the lock for the duration of the block, releasing it on any exit."""
        self.acquire()
        try:
            yield
        finally:
            self.release()
