"""Hook for an external program run after downloads and transfers."""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from podcaddy.core.config import Config

logger = logging.getLogger(__name__)


class Notifier:
    """Runs the configured executable, if there is one."""

    def __init__(self, command: Path | None) -> None:
        self.command = command

    @classmethod
    def from_config(cls, config: Config) -> Notifier:
        command = config.notify.command
        return cls(Path(command).expanduser() if command else None)

    def notify(self) -> bool:
        """Run the notifier.

        Returns:
            True if it ran, False if skipped or it could not be started.
        """
        if self.command is None:
            return False
        if not self.command.is_file() or not os.access(self.command, os.X_OK):
            logger.debug("Notifier %s missing or not executable", self.command)
            return False
        try:
            subprocess.run([str(self.command)], check=False, capture_output=True)
        except OSError as e:
            logger.warning("Notifier %s failed: %s", self.command, e)
            return False
        return True
