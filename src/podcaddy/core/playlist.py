"""Device playlist handling and merging of staged entries."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from podcaddy.core.bookmarks import BookmarkFile
from podcaddy.core.errors import PlaylistError
from podcaddy.core.models import InsertMode
from podcaddy.utils.files import DurableWriter, FileWriter, read_text

if TYPE_CHECKING:
    from podcaddy.core.config import Config

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".old"


def parse_playlist(text: str) -> list[str]:
    """Split playlist text into entries, dropping blank lines."""
    return [line for line in text.splitlines() if line.strip()]


def render_playlist(entries: list[str]) -> str:
    return "".join(f"{entry}\n" for entry in entries)


def splice(entries: list[str], fragment: list[str], position: int) -> list[str]:
    """Insert fragment after the entry at ``position`` (the one being played).

    Entries ``[0..position]`` stay in front; a position past the end
    of the playlist places the fragment last.
    """
    cut = max(position, -1) + 1
    return entries[:cut] + fragment + entries[cut:]


class PlaylistFile:
    """A newline-delimited list of device-relative episode paths."""

    def __init__(self, path: Path, writer: FileWriter | None = None) -> None:
        self.path = path
        self.writer = writer or DurableWriter()

    def read_text(self) -> str:
        try:
            return read_text(self.path)
        except (OSError, UnicodeDecodeError) as e:
            raise PlaylistError(f"Failed to read playlist {self.path}: {e}") from e

    def read(self) -> list[str]:
        return parse_playlist(self.read_text())

    def write_text(self, text: str, path: Path | None = None) -> None:
        target = path or self.path
        try:
            self.writer.write_text(target, text)
        except OSError as e:
            raise PlaylistError(f"Failed to write playlist {target}: {e}") from e

    def write(self, entries: list[str]) -> None:
        self.write_text(render_playlist(entries))

    @property
    def backup_path(self) -> Path:
        return self.path.with_name(self.path.name + BACKUP_SUFFIX)


class PlaylistMerger:
    """Commits staged playlist entries into the device playlist.

    The staged entries live in a fragment file with the same line format as
    the playlist. Append and overwrite copy the fragment text as it is;
    insert rewrites the playlist one entry per line. Once committed, the
    fragment file is emptied so the same entries are never committed twice.
    """

    def __init__(
        self,
        playlist: PlaylistFile,
        fragment: PlaylistFile,
        bookmarks: BookmarkFile,
    ) -> None:
        self.playlist = playlist
        self.fragment = fragment
        self.bookmarks = bookmarks

    @classmethod
    def from_config(cls, config: Config, writer: FileWriter | None = None) -> PlaylistMerger:
        writer = writer or DurableWriter()
        return cls(
            playlist=PlaylistFile(config.get_device_playlist(), writer),
            fragment=PlaylistFile(config.get_fragment_file(), writer),
            bookmarks=BookmarkFile.from_config(config, writer),
        )

    def pending(self) -> list[str]:
        """Entries waiting in the fragment file."""
        return self.fragment.read()

    def check(self, mode: InsertMode) -> None:
        """Fail before any file moves if a commit in this mode cannot succeed.

        Raises:
            AmbiguousBookmarkError: In insert mode, if the bookmark file holds
                more than one record for the playlist.
            BookmarkError: In insert mode, if the bookmark file cannot be read.
        """
        if mode is InsertMode.INSERT:
            self.bookmarks.read_position()

    def commit(self, mode: InsertMode, fragment: list[str] | None = None) -> bool:
        """Merge staged entries into the device playlist.

        Args:
            mode: append to the end, insert after the entry being played,
                or overwrite the playlist (keeping a ``.old`` copy).
            fragment: Entries to commit; defaults to the fragment file.

        Returns:
            True once the playlist has been written and the fragment emptied.

        Raises:
            PlaylistError: If a playlist file cannot be read or written.
            AmbiguousBookmarkError: In insert mode, if the bookmark file holds
                more than one record for the playlist. Nothing is written.
        """
        text = self.fragment.read_text() if fragment is None else render_playlist(fragment)
        entries = parse_playlist(text)
        logger.info("Committing %d playlist entries in %s mode", len(entries), mode.value)

        if mode is InsertMode.APPEND:
            self._append(text, entries)
        elif mode is InsertMode.OVERWRITE:
            self._overwrite(text, entries)
        elif mode is InsertMode.INSERT:
            self._insert(text, entries)
        else:
            raise PlaylistError(f"Unsupported playlist mode: {mode}")

        self.fragment.write_text("")
        return True

    def _append(self, text: str, entries: list[str]) -> None:
        if not entries:
            return
        current = self.playlist.read_text()
        # keep the last old entry and the first new one on separate lines
        if current and not current.endswith(("\n", "\r")):
            current += "\r\n" if "\r\n" in current else "\n"
        self.playlist.write_text(current + text)

    def _overwrite(self, text: str, entries: list[str]) -> None:
        if self.playlist.path.exists():
            self.playlist.write_text(self.playlist.read_text(), self.playlist.backup_path)
        if entries:
            self.playlist.write_text(text)

    def _insert(self, text: str, entries: list[str]) -> None:
        position, _ = self.bookmarks.read_position()
        if position is None:
            logger.warning(
                "No bookmark for playlist '%s'; appending instead of inserting",
                self.bookmarks.playlist_name,
            )
            self._append(text, entries)
            return
        if not entries:
            return
        self.playlist.write(splice(self.playlist.read(), entries, position))
