"""Removal of already-played episodes from the device."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from podcaddy.core.bookmarks import BookmarkFile
from podcaddy.core.errors import PlaylistError
from podcaddy.core.models import CleanReport
from podcaddy.core.playlist import PlaylistFile
from podcaddy.utils.files import DurableWriter, FileWriter

if TYPE_CHECKING:
    from podcaddy.core.config import Config

logger = logging.getLogger(__name__)

SHOW_FOLDER_PATTERN = re.compile(r"^.*/Podcasts/([^/]+)/")


def show_name_from_entry(entry: str) -> str | None:
    """Get the show folder that follows ``Podcasts/`` in a playlist entry."""
    match = SHOW_FOLDER_PATTERN.match(entry.replace("\\", "/"))
    return match.group(1) if match else None


class ConsumptionCleaner:
    """Deletes the episodes before the bookmarked playlist position.

    Every entry the player has moved past is removed from the front of the
    playlist and its file deleted from the device. The playlist is saved
    after each removal. If a removal fails, the bookmark is moved back by the
    number of entries already removed so it still points at the same
    episode. Otherwise the position is reset to 0 once every played entry
    is gone.
    """

    def __init__(
        self,
        device_root: Path,
        playlist: PlaylistFile,
        bookmarks: BookmarkFile,
        on_delete: Callable[[str], None] | None = None,
    ) -> None:
        self.device_root = device_root
        self.playlist = playlist
        self.bookmarks = bookmarks
        self.on_delete = on_delete

    @classmethod
    def from_config(
        cls,
        config: Config,
        writer: FileWriter | None = None,
        on_delete: Callable[[str], None] | None = None,
    ) -> ConsumptionCleaner:
        writer = writer or DurableWriter()
        return cls(
            config.get_device_root(),
            PlaylistFile(config.get_device_playlist(), writer),
            BookmarkFile.from_config(config, writer),
            on_delete,
        )

    def clean(self) -> CleanReport:
        """
        Delete consumed episodes.

        Returns:
            Per-show counts of deleted episodes

        Raises:
            AmbiguousBookmarkError: If several bookmark records refer to the playlist
            PlaylistError: If an episode or the playlist cannot be updated
            BookmarkError: If the bookmark file cannot be read or written
        """
        report = CleanReport()
        position, lines = self.bookmarks.read_position()
        if position is None:
            logger.info(
                "No bookmark for playlist '%s', nothing to clean", self.bookmarks.playlist_name
            )
            return report

        entries = self.playlist.read()
        if position > len(entries):
            logger.warning(
                "Bookmark position %d is past the end of a %d entry playlist",
                position,
                len(entries),
            )

        removed = 0
        try:
            for entry in entries[:position]:
                self._delete(entry)
                self.playlist.write(entries[removed + 1 :])
                removed += 1

                show = show_name_from_entry(entry)
                if show is None:
                    logger.warning("Cannot tell which podcast %s belongs to", entry)
                    report.unparsed += 1
                else:
                    report.deleted[show] = report.deleted.get(show, 0) + 1
        except PlaylistError:
            # the saved playlist lost `removed` entries from its head
            logger.error("Clean stopped after %d of %d episodes", removed, position)
            self.bookmarks.write_position(lines, max(position - removed, 0))
            raise

        self.bookmarks.write_reset_position(lines)
        return report

    def _delete(self, entry: str) -> None:
        if self.on_delete is not None:
            self.on_delete(entry)
        logger.info("Deleting %s", entry)
        path = self.device_root / entry.strip().lstrip("/")
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise PlaylistError(f"Failed to delete {path}: {e}") from e
