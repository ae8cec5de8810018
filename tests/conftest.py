"""Pytest fixtures for podcaddy tests."""

from datetime import UTC, datetime
from pathlib import Path

import pytest

from podcaddy.core.bookmarks import BookmarkFile
from podcaddy.core.config import Config, DeviceConfig, LoggingConfig, StagingConfig
from podcaddy.core.models import EpisodeMeta
from podcaddy.core.playlist import PlaylistFile, PlaylistMerger


@pytest.fixture
def device(tmp_path: Path) -> Path:
    """An attached device with empty Podcasts, Playlists and .rockbox folders."""
    root = tmp_path / "device"
    for folder in ("Podcasts", "Playlists", ".rockbox"):
        (root / folder).mkdir(parents=True)
    return root


@pytest.fixture
def staging(tmp_path: Path) -> Path:
    root = tmp_path / "staging"
    root.mkdir()
    return root


@pytest.fixture
def config(tmp_path: Path, device: Path, staging: Path, monkeypatch: pytest.MonkeyPatch) -> Config:
    """Configuration pointing every path into the temporary directory."""
    monkeypatch.delenv("PODCADDY_DEVICE", raising=False)
    cfg = Config(
        device=DeviceConfig(root=str(device)),
        staging=StagingConfig(dir=str(staging)),
        logging=LoggingConfig(dir=str(tmp_path / "logs")),
    )
    cfg.database.path = str(tmp_path / "db" / "podcasts.db")
    return cfg


@pytest.fixture
def playlist(config: Config) -> PlaylistFile:
    return PlaylistFile(config.get_device_playlist())


@pytest.fixture
def fragment(config: Config) -> PlaylistFile:
    return PlaylistFile(config.get_fragment_file())


@pytest.fixture
def bookmarks(config: Config) -> BookmarkFile:
    return BookmarkFile.from_config(config)


@pytest.fixture
def merger(
    playlist: PlaylistFile, fragment: PlaylistFile, bookmarks: BookmarkFile
) -> PlaylistMerger:
    return PlaylistMerger(playlist, fragment, bookmarks)


@pytest.fixture
def sample_episode() -> EpisodeMeta:
    """Create a sample episode for testing."""
    return EpisodeMeta(
        title="Test Episode",
        url="https://example.com/episode.mp3",
        published=datetime(2024, 1, 15, 12, 0, 0, tzinfo=UTC),
        duration="30:00",
        length=1000,
        description="A test episode",
    )


@pytest.fixture
def sample_rss_feed() -> str:
    """Create a sample RSS feed for testing."""
    return """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:itunes="http://www.itunes.com/dtds/podcast-1.0.dtd">
  <channel>
    <title>Test Podcast</title>
    <description>A test podcast</description>
    <item>
      <title>Episode 2</title>
      <pubDate>Mon, 15 Jan 2024 12:00:00 +0000</pubDate>
      <description>&lt;p&gt;Second   episode&lt;/p&gt;</description>
      <enclosure url="https://example.com/ep2.mp3" type="audio/mpeg" length="2000"/>
      <itunes:duration>30:00</itunes:duration>
    </item>
    <item>
      <title>Episode 1</title>
      <pubDate>Mon, 08 Jan 2024 12:00:00 +0000</pubDate>
      <enclosure url="https://example.com/ep1.mp3" type="audio/mpeg" length="1000"/>
      <itunes:duration>25:00</itunes:duration>
    </item>
    <item>
      <title>Trailer video</title>
      <pubDate>Mon, 01 Jan 2024 12:00:00 +0000</pubDate>
      <enclosure url="https://example.com/trailer.mp4" type="video/mp4" length="1000"/>
    </item>
  </channel>
</rss>"""
