"""Tests for deleting played episodes."""

from pathlib import Path

import pytest

from podcaddy.core.bookmarks import BookmarkFile
from podcaddy.core.config import Config
from podcaddy.core.errors import AmbiguousBookmarkError, PlaylistError
from podcaddy.core.playlist import PlaylistFile
from podcaddy.services.cleaner import ConsumptionCleaner, show_name_from_entry


def bookmark(position: int, bookmark_id: int = 1) -> str:
    return f">{bookmark_id};{position};0;0;0;0;0;0;0;/Playlists/Podcasts.m3u8\n"


def stage_on_device(device: Path, entries: list[str]) -> None:
    for entry in entries:
        path = device / entry.lstrip("/")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"audio")


@pytest.fixture
def cleaner(config: Config, device: Path) -> ConsumptionCleaner:
    return ConsumptionCleaner.from_config(config)


@pytest.fixture
def entries() -> list[str]:
    return [
        "/Podcasts/Alpha/e0.mp3",
        "/Podcasts/Beta/e1.mp3",
        "/Podcasts/Alpha/e2.mp3",
        "/Podcasts/Beta/e3.mp3",
        "/Podcasts/Alpha/e4.mp3",
    ]


class TestShowNameFromEntry:
    """Tests for finding the show folder in an entry."""

    @pytest.mark.parametrize(
        ("entry", "expected"),
        [
            ("/Podcasts/Alpha/e0.mp3", "Alpha"),
            ("/media/ipod/Podcasts/Some Show/x.mp3", "Some Show"),
            ("\\Podcasts\\Beta\\x.mp3", "Beta"),
            ("/Music/song.mp3", None),
            ("/Podcasts/loose.mp3", None),
        ],
    )
    def test_show_name(self, entry: str, expected: str | None) -> None:
        assert show_name_from_entry(entry) == expected


class TestClean:
    """Tests for the clean run."""

    def test_deletes_played_prefix(
        self,
        cleaner: ConsumptionCleaner,
        device: Path,
        playlist: PlaylistFile,
        bookmarks: BookmarkFile,
        entries: list[str],
    ) -> None:
        stage_on_device(device, entries)
        playlist.write(entries)
        bookmarks.path.write_text(bookmark(3))

        report = cleaner.clean()

        assert report.deleted == {"Alpha": 2, "Beta": 1}
        assert report.total == 3
        assert playlist.read() == entries[3:]
        for entry in entries[:3]:
            assert not (device / entry.lstrip("/")).exists()
        for entry in entries[3:]:
            assert (device / entry.lstrip("/")).exists()
        assert bookmarks.path.read_text() == bookmark(0)

    def test_position_zero_deletes_nothing(
        self,
        cleaner: ConsumptionCleaner,
        device: Path,
        playlist: PlaylistFile,
        bookmarks: BookmarkFile,
        entries: list[str],
    ) -> None:
        stage_on_device(device, entries)
        playlist.write(entries)
        bookmarks.path.write_text(bookmark(0))

        report = cleaner.clean()

        assert report.total == 0
        assert playlist.read() == entries
        assert bookmarks.path.read_text() == bookmark(0)

    def test_no_record_leaves_everything(
        self,
        cleaner: ConsumptionCleaner,
        device: Path,
        playlist: PlaylistFile,
        bookmarks: BookmarkFile,
        entries: list[str],
    ) -> None:
        stage_on_device(device, entries)
        playlist.write(entries)
        music = ">2;4;0;0;0;0;0;0;0;/Playlists/Music.m3u8\n"
        bookmarks.path.write_text(music)

        report = cleaner.clean()

        assert report.total == 0
        assert playlist.read() == entries
        assert bookmarks.path.read_text() == music

    def test_position_past_end_stops_at_end(
        self,
        cleaner: ConsumptionCleaner,
        device: Path,
        playlist: PlaylistFile,
        bookmarks: BookmarkFile,
        entries: list[str],
    ) -> None:
        stage_on_device(device, entries)
        playlist.write(entries)
        bookmarks.path.write_text(bookmark(40))

        report = cleaner.clean()

        assert report.total == len(entries)
        assert playlist.read() == []
        assert bookmarks.path.read_text() == bookmark(0)

    def test_missing_files_still_counted(
        self,
        cleaner: ConsumptionCleaner,
        playlist: PlaylistFile,
        bookmarks: BookmarkFile,
        entries: list[str],
    ) -> None:
        playlist.write(entries)
        bookmarks.path.write_text(bookmark(2))

        report = cleaner.clean()

        assert report.deleted == {"Alpha": 1, "Beta": 1}
        assert playlist.read() == entries[2:]

    def test_unparsed_entries(
        self,
        cleaner: ConsumptionCleaner,
        playlist: PlaylistFile,
        bookmarks: BookmarkFile,
    ) -> None:
        playlist.write(["/Music/song.mp3", "/Podcasts/Alpha/e0.mp3"])
        bookmarks.path.write_text(bookmark(2))

        report = cleaner.clean()

        assert report.deleted == {"Alpha": 1}
        assert report.unparsed == 1
        assert report.total == 2

    def test_ambiguous_bookmark_changes_nothing(
        self,
        cleaner: ConsumptionCleaner,
        device: Path,
        playlist: PlaylistFile,
        bookmarks: BookmarkFile,
        entries: list[str],
    ) -> None:
        stage_on_device(device, entries)
        playlist.write(entries)
        text = bookmark(1, 1) + bookmark(2, 2)
        bookmarks.path.write_text(text)

        with pytest.raises(AmbiguousBookmarkError):
            cleaner.clean()

        assert playlist.read() == entries
        assert bookmarks.path.read_text() == text
        assert all((device / entry.lstrip("/")).exists() for entry in entries)

    def test_on_delete_called_in_order(
        self,
        config: Config,
        playlist: PlaylistFile,
        bookmarks: BookmarkFile,
        entries: list[str],
    ) -> None:
        seen: list[str] = []
        cleaner = ConsumptionCleaner.from_config(config, on_delete=seen.append)
        playlist.write(entries)
        bookmarks.path.write_text(bookmark(2))

        cleaner.clean()

        assert seen == entries[:2]

    def test_failed_removal_keeps_bookmark_on_same_episode(
        self,
        cleaner: ConsumptionCleaner,
        device: Path,
        playlist: PlaylistFile,
        bookmarks: BookmarkFile,
        entries: list[str],
    ) -> None:
        """A removal that fails moves the bookmark back by what was removed."""
        entries = [*entries, "/Podcasts/Beta/e5.mp3"]
        stage_on_device(device, entries)
        stuck = device / entries[1].lstrip("/")
        stuck.unlink()
        stuck.mkdir()
        playlist.write(entries)
        bookmarks.path.write_text(bookmark(3))

        with pytest.raises(PlaylistError):
            cleaner.clean()

        assert playlist.read() == entries[1:]
        assert bookmarks.path.read_text() == bookmark(2)
        assert (device / entries[2].lstrip("/")).exists()

        stuck.rmdir()
        report = cleaner.clean()

        assert report.total == 2
        assert playlist.read() == entries[3:]
        assert all((device / entry.lstrip("/")).exists() for entry in entries[3:])
        assert bookmarks.path.read_text() == bookmark(0)
