"""Reader/writer for the device's resume bookmark file.

Each line of the bookmark file is either a record the player wrote for a
playlist, or something we do not understand. A record looks like::

    >2;14;0;0;123456;0;0;0;0;/Playlists/Podcasts.m3u8

i.e. a ``>`` marker with a numeric id, the playlist position, seven more
numeric fields and the playlist path. Only the record for one playlist
is ever modified; every other line is written back byte for byte.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from pathlib import Path
from typing import TYPE_CHECKING

from podcaddy.core.errors import AmbiguousBookmarkError, BookmarkError
from podcaddy.utils.files import DurableWriter, FileWriter

if TYPE_CHECKING:
    from podcaddy.core.config import Config

logger = logging.getLogger(__name__)

# group 1: marker and id, group 2: position, group 3: playlist name
BOOKMARK_PATTERN = re.compile(r"^(>\d*;)(\d+);(?:\d*;){7}[^;\r\n]*?/Playlists/([^/;\r\n]*)\.m3u8")

ENCODING = "utf-8"
ERRORS = "surrogateescape"


@dataclass(frozen=True)
class BookmarkRecord:
    """A bookmark line that refers to a playlist."""

    raw: str
    bookmark_id: str
    position: int
    playlist: str
    position_span: tuple[int, int]

    def with_position(self, position: int) -> BookmarkRecord:
        """Return a copy with only the position digits replaced."""
        start, end = self.position_span
        digits = str(position)
        return replace(
            self,
            raw=self.raw[:start] + digits + self.raw[end:],
            position=position,
            position_span=(start, start + len(digits)),
        )


@dataclass(frozen=True)
class OpaqueLine:
    """A bookmark line passed through untouched."""

    raw: str


BookmarkLine = BookmarkRecord | OpaqueLine


def parse_bookmark_line(raw: str) -> BookmarkLine:
    """Classify a single line (terminator included) of the bookmark file."""
    match = BOOKMARK_PATTERN.match(raw)
    if match is None:
        return OpaqueLine(raw)
    return BookmarkRecord(
        raw=raw,
        bookmark_id=match.group(1)[1:-1],
        position=int(match.group(2)),
        playlist=match.group(3),
        position_span=match.span(2),
    )


def parse_bookmarks(text: str) -> list[BookmarkLine]:
    return [parse_bookmark_line(line) for line in text.splitlines(keepends=True)]


def render_bookmarks(lines: list[BookmarkLine]) -> str:
    return "".join(line.raw for line in lines)


def find_records(lines: list[BookmarkLine], playlist_name: str) -> list[BookmarkRecord]:
    """All records whose playlist name matches exactly (case-sensitive)."""
    return [
        line
        for line in lines
        if isinstance(line, BookmarkRecord) and line.playlist == playlist_name
    ]


def read_position(lines: list[BookmarkLine], playlist_name: str) -> int | None:
    """Get the playback position stored for a playlist.

    Args:
        lines: Parsed bookmark file.
        playlist_name: Playlist file name without extension, e.g. "Podcasts".

    Returns:
        The zero-based position, or None when no record refers to the playlist.

    Raises:
        AmbiguousBookmarkError: If more than one record refers to the playlist.
    """
    records = find_records(lines, playlist_name)
    if not records:
        return None
    if len(records) > 1:
        raise AmbiguousBookmarkError(
            f"{len(records)} bookmark records refer to playlist '{playlist_name}', expected one"
        )
    return records[0].position


def set_position(
    lines: list[BookmarkLine], playlist_name: str, position: int
) -> list[BookmarkLine]:
    """Set the position of the playlist's record(s), leaving other lines as they are."""
    return [
        line.with_position(position)
        if isinstance(line, BookmarkRecord) and line.playlist == playlist_name
        else line
        for line in lines
    ]


def reset_position(lines: list[BookmarkLine], playlist_name: str) -> list[BookmarkLine]:
    return set_position(lines, playlist_name, 0)


class BookmarkFile:
    """The bookmark file on the device, bound to one playlist name."""

    def __init__(
        self,
        path: Path,
        playlist_name: str = "Podcasts",
        writer: FileWriter | None = None,
    ) -> None:
        self.path = path
        self.playlist_name = playlist_name
        self.writer = writer or DurableWriter()

    @classmethod
    def from_config(cls, config: Config, writer: FileWriter | None = None) -> BookmarkFile:
        return cls(config.get_bookmark_file(), config.device.playlist_name, writer)

    def load(self) -> list[BookmarkLine]:
        """Read and parse the whole file; a missing file has no lines.

        Raises:
            BookmarkError: If the file exists but cannot be read.
        """
        try:
            data = self.path.read_bytes()
        except FileNotFoundError:
            logger.debug("No bookmark file at %s", self.path)
            return []
        except OSError as e:
            raise BookmarkError(f"Failed to read bookmark file {self.path}: {e}") from e
        return parse_bookmarks(data.decode(ENCODING, ERRORS))

    def read_position(self) -> tuple[int | None, list[BookmarkLine]]:
        """Get the playlist position together with the lines it was read from."""
        lines = self.load()
        return read_position(lines, self.playlist_name), lines

    def save(self, lines: list[BookmarkLine]) -> None:
        try:
            self.writer.write_bytes(self.path, render_bookmarks(lines).encode(ENCODING, ERRORS))
        except OSError as e:
            raise BookmarkError(f"Failed to write bookmark file {self.path}: {e}") from e

    def write_position(self, lines: list[BookmarkLine], position: int) -> list[BookmarkLine]:
        """Store a new position for the playlist and persist every line.

        Returns:
            The lines as written.
        """
        rewritten = set_position(lines, self.playlist_name, position)
        self.save(rewritten)
        return rewritten

    def write_reset_position(self, lines: list[BookmarkLine]) -> list[BookmarkLine]:
        return self.write_position(lines, 0)
