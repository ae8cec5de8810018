"""Moving staged episodes onto the device."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from podcaddy.core.models import InsertMode, TransferOutcome, TransferResult
from podcaddy.core.playlist import PlaylistMerger
from podcaddy.services.activity import ActivityLog
from podcaddy.services.backup import BackupService
from podcaddy.services.notifier import Notifier
from podcaddy.services.stager import EPISODES_FOLDER
from podcaddy.utils.files import FileWriter
from podcaddy.utils.lock import LockFile

if TYPE_CHECKING:
    from podcaddy.core.config import Config

logger = logging.getLogger(__name__)

BUSY_MESSAGE = "A download is in progress; please try again later."
NOT_ATTACHED_MESSAGE = "Device not attached!"
NOTHING_MESSAGE = "No podcasts to copy!"


def move_file(source: Path, target: Path) -> bool:
    """Copy a file, check the copy and only then delete the original.

    Returns:
        True if the file was moved; on failure the source is left in place.
    """
    try:
        shutil.copy2(source, target)
        if target.stat().st_size != source.stat().st_size:
            logger.error("Size mismatch copying %s to %s", source, target)
            target.unlink(missing_ok=True)
            return False
        source.unlink()
    except OSError as e:
        logger.error("Failed to move %s to %s: %s", source, target, e)
        return False
    return True


def move_tree(source: Path, target: Path) -> TransferResult:
    """
    Move a directory tree, merging into existing target directories.

    A directory is removed only once everything below it moved without
    error, so a failure keeps the failing show's folder (and its parents)
    in place while sibling folders are still moved and removed.

    Args:
        source: Directory to move the contents of
        target: Existing directory to move them into

    Returns:
        Files moved, directories moved and errors encountered
    """
    result = TransferResult()

    for child in sorted(source.iterdir()):
        destination = target / child.name
        if child.is_dir():
            try:
                destination.mkdir(exist_ok=True)
            except OSError as e:
                logger.error("Failed to create %s: %s", destination, e)
                result.errors += 1
                continue
            result += move_tree(child, destination)
            result.dirs += 1
        elif move_file(child, destination):
            result.files += 1
        else:
            result.errors += 1

    if result.errors == 0:
        try:
            source.rmdir()
        except OSError as e:
            logger.error("Failed to remove %s: %s", source, e)
            result.errors += 1

    return result


def describe(result: TransferResult) -> str:
    episodes = "episode" if result.files == 1 else "episodes"
    podcasts = "podcast" if result.dirs == 1 else "podcasts"
    return f"{result.files} {episodes} of {result.dirs} {podcasts} copied over."


class TransferOrchestrator:
    """Moves the staged tree onto the device and commits the pending playlist."""

    def __init__(
        self,
        staging_dir: Path,
        device_root: Path,
        lock: LockFile,
        merger: PlaylistMerger,
        activity: ActivityLog | None = None,
        backup: BackupService | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self.staging_dir = staging_dir
        self.device_root = device_root
        self.lock = lock
        self.merger = merger
        self.activity = activity
        self.backup = backup
        self.notifier = notifier

    @classmethod
    def from_config(cls, config: Config, writer: FileWriter | None = None) -> TransferOrchestrator:
        return cls(
            staging_dir=config.get_staging_episodes_dir(),
            device_root=config.get_device_root(),
            lock=LockFile(config.get_lock_file()),
            merger=PlaylistMerger.from_config(config, writer),
            activity=ActivityLog.from_config(config),
            backup=BackupService.from_config(config),
            notifier=Notifier.from_config(config),
        )

    def count_staged(self) -> int:
        if not self.staging_dir.is_dir():
            return 0
        return sum(1 for path in self.staging_dir.rglob("*") if path.is_file())

    def transfer(self, mode: InsertMode) -> TransferOutcome:
        """
        Move staged episodes to the device and merge them into its playlist.

        Args:
            mode: How the staged entries are merged into the device playlist

        Returns:
            Outcome with a user-facing message; preconditions that are not
            met (lock held, device absent, nothing staged) fail without
            touching any file.

        Raises:
            PlaylistError: If the playlist cannot be committed after the move
            AmbiguousBookmarkError: In insert mode, if the bookmark is
                ambiguous. Raised before anything is moved.
        """
        if self.lock.is_held():
            return TransferOutcome(False, BUSY_MESSAGE)
        if not self.device_root.is_dir():
            return TransferOutcome(False, NOT_ATTACHED_MESSAGE)
        if self.count_staged() == 0:
            return TransferOutcome(False, NOTHING_MESSAGE)
        self.merger.check(mode)

        target = self.device_root / EPISODES_FOLDER
        with self.lock.hold():
            try:
                target.mkdir(exist_ok=True)
            except OSError as e:
                logger.error("Failed to create %s: %s", target, e)
                result = TransferResult(errors=1)
            else:
                result = move_tree(self.staging_dir, target)

        if result.errors > 0:
            message = f"Error: could not copy podcasts ({result.errors} failed)."
            logger.error(message)
            return TransferOutcome(False, message, result)

        message = describe(result)
        logger.info(message)

        self.merger.commit(mode)
        if self.activity is not None:
            self.activity.transfer(mode, message)
        if self.backup is not None:
            self.backup.backup_after_transfer()
        if self.notifier is not None:
            self.notifier.notify()

        return TransferOutcome(True, message, result)
