"""Persistent activity log of downloads, transfers, toggles and additions."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from podcaddy.core.config import Config
    from podcaddy.core.models import InsertMode

LOG_FORMAT = "%(asctime)s -- %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Continuation lines line up with the text after the timestamp
INDENT = " " * 23


class ActivityLog:
    """Appends human-readable entries to a yearly log file."""

    def __init__(self, log_file: Path) -> None:
        self.log_file = log_file
        self.logger = logging.getLogger(f"podcaddy.activity.{log_file}")
        self.logger.setLevel(logging.INFO)
        self.logger.propagate = False

        # Avoid adding multiple handlers if already configured
        if not self.logger.handlers:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            handler = logging.FileHandler(log_file, encoding="utf-8")
            handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
            self.logger.addHandler(handler)

    @classmethod
    def from_config(cls, config: Config) -> ActivityLog:
        return cls(config.get_log_file())

    def download(self, title: str, filename: str, duration: str, description: str) -> None:
        self.logger.info(
            'Downloading "%s" [%s] - [%s]\n%s%s', title, filename, duration, INDENT, description
        )

    def transfer(self, mode: InsertMode, message: str) -> None:
        self.logger.info("%s mode - %s\n-------------------", mode.value.capitalize(), message)

    def toggle(self, name: str, state: str) -> None:
        self.logger.info('Podcast "%s" turned %s', name, state)

    def added(self, name: str, url: str) -> None:
        self.logger.info('Podcast "%s" [%s] added', name, url)

    def close(self) -> None:
        for handler in list(self.logger.handlers):
            handler.close()
            self.logger.removeHandler(handler)
