"""Local mirror of the device contents via rsync."""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import TYPE_CHECKING

from podcaddy.core.errors import ConfigError

if TYPE_CHECKING:
    from podcaddy.core.config import Config

logger = logging.getLogger(__name__)

# (folder, delete files missing from the device)
POST_TRANSFER_FOLDERS = (("Podcasts", True), ("Music", False), ("Playlists", True))


class BackupService:
    """Mirrors device folders into a backup directory. Best effort only."""

    def __init__(self, device_root: Path, backup_dir: Path | None, rsync: str = "rsync") -> None:
        self.device_root = device_root
        self.backup_dir = backup_dir
        self.rsync = rsync

    @classmethod
    def from_config(cls, config: Config) -> BackupService:
        return cls(config.get_device_root(), config.get_backup_dir(), config.backup.rsync)

    def build_command(self, folder: str, delete: bool) -> list[str]:
        if self.backup_dir is None:
            raise ConfigError("No backup directory configured")
        command = [self.rsync, "-a"]
        if delete:
            command.append("--delete")
        command += [f"{self.device_root / folder}/", f"{self.backup_dir / folder}/"]
        return command

    def backup(self, folder: str, delete: bool) -> bool:
        """Mirror one device folder.

        Returns:
            True if rsync ran and succeeded, False if skipped or failed.
        """
        if self.backup_dir is None:
            logger.debug("No backup directory configured, skipping %s", folder)
            return False
        if shutil.which(self.rsync) is None:
            logger.warning("%s not found, skipping backup of %s", self.rsync, folder)
            return False
        if not (self.device_root / folder).is_dir():
            logger.debug("Nothing to back up in %s", self.device_root / folder)
            return False

        command = self.build_command(folder, delete)
        try:
            (self.backup_dir / folder).mkdir(parents=True, exist_ok=True)
            completed = subprocess.run(command, capture_output=True, text=True, check=False)
        except OSError as e:
            logger.warning("Backup of %s failed: %s", folder, e)
            return False

        if completed.returncode != 0:
            logger.warning(
                "Backup of %s failed (%d): %s",
                folder,
                completed.returncode,
                completed.stderr.strip(),
            )
            return False
        logger.info("Backed up %s to %s", folder, self.backup_dir / folder)
        return True

    def backup_after_transfer(self) -> None:
        for folder, delete in POST_TRANSFER_FOLDERS:
            self.backup(folder, delete)
