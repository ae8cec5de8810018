"""Staging of downloaded episodes ahead of a device transfer."""

from __future__ import annotations

import logging
import secrets
import string
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from podcaddy.core.errors import DownloadError, TaggingError
from podcaddy.core.playlist import PlaylistFile, render_playlist
from podcaddy.services.tagger import MutagenTagger, NullTagger, Tagger
from podcaddy.utils.files import DurableWriter, FileWriter, sanitize_name

if TYPE_CHECKING:
    from podcaddy.core.config import Config

logger = logging.getLogger(__name__)

EPISODES_FOLDER = "Podcasts"
AUDIO_EXTENSION = ".mp3"
FILENAME_LENGTH = 24  # without extension
TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"
SORT_KEY_FORMAT = "%Y-%m-%d %H:%M:%S"
ALPHABET = string.digits + string.ascii_letters


def create_filename(published: datetime, length: int = FILENAME_LENGTH) -> str:
    """Build a filename that sorts by publish date.

    The publish timestamp is padded with random alphanumerics up to
    ``length`` characters so episodes released at the same second
    do not collide.
    """
    prefix = _as_utc(published).strftime(TIMESTAMP_FORMAT)
    padding = "".join(secrets.choice(ALPHABET) for _ in range(max(length - len(prefix), 0)))
    return prefix + padding + AUDIO_EXTENSION


def sort_key(published: datetime, show_name: str) -> str:
    """Chronological across shows, ties broken by show name."""
    return _as_utc(published).strftime(SORT_KEY_FORMAT) + show_name


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)


class PendingFragment:
    """Playlist entries staged during one download run."""

    def __init__(self) -> None:
        self._entries: list[tuple[str, str]] = []

    def add(self, published: datetime, show_name: str, path: str) -> None:
        self._entries.append((sort_key(published, show_name), path))

    def entries(self) -> list[str]:
        """Staged paths in commit order."""
        return [path for _, path in sorted(self._entries, key=lambda item: item[0])]

    def __len__(self) -> int:
        return len(self._entries)

    def flush(self, fragment_file: PlaylistFile) -> None:
        """Append the entries to the staging fragment file and forget them."""
        if not self._entries:
            return
        current = fragment_file.read_text()
        if current and not current.endswith(("\n", "\r")):
            current += "\n"
        fragment_file.write_text(current + render_playlist(self.entries()))
        logger.info("Staged %d playlist entries in %s", len(self._entries), fragment_file.path)
        self._entries.clear()


class EpisodeStager:
    """Writes episode audio into ``<staging>/Podcasts/<show>/``."""

    def __init__(
        self,
        staging_dir: Path,
        tagger: Tagger | None = None,
        writer: FileWriter | None = None,
    ) -> None:
        self.staging_dir = staging_dir
        self.tagger = tagger or NullTagger()
        self.writer = writer or DurableWriter()

    @classmethod
    def from_config(cls, config: Config, writer: FileWriter | None = None) -> EpisodeStager:
        return cls(
            config.get_staging_dir(),
            MutagenTagger(max_cover_bytes=config.tagging.max_cover_bytes),
            writer,
        )

    def stage(
        self,
        data: bytes,
        show_name: str,
        episode_title: str,
        publish_date: datetime,
        cover: bytes | None = None,
    ) -> str:
        """
        Save an episode so it is ready to be moved to the device.

        Args:
            data: Raw audio
            show_name: Podcast name, used as the folder name
            episode_title: Written as the title tag if the audio has none
            publish_date: Prefix of the generated filename
            cover: Optional cover image to embed

        Returns:
            Device-relative path of the episode, e.g. "/Podcasts/Show/2024....mp3"

        Raises:
            DownloadError: If the file cannot be written
        """
        show_dir = self.staging_dir / EPISODES_FOLDER / sanitize_name(show_name)
        try:
            show_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DownloadError(f"Failed to create directory {show_dir}: {e}") from e

        filename = create_filename(publish_date)
        while (show_dir / filename).exists():
            filename = create_filename(publish_date)

        data = self._enhance(data, episode_title, cover)

        try:
            self.writer.write_bytes(show_dir / filename, data)
        except OSError as e:
            raise DownloadError(f"Failed to write file {show_dir / filename}: {e}") from e

        return f"/{EPISODES_FOLDER}/{show_dir.name}/{filename}"

    def _enhance(self, data: bytes, title: str, cover: bytes | None) -> bytes:
        try:
            data = self.tagger.ensure_title(data, title)
        except TaggingError as e:
            logger.warning("Could not tag title of %r: %s", title, e)

        if cover:
            try:
                data = self.tagger.normalize_cover(data, cover)
            except TaggingError as e:
                logger.warning("Could not embed cover for %r: %s", title, e)

        return data
