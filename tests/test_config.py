"""Tests for configuration management."""

from datetime import datetime
from pathlib import Path

import pytest

from podcaddy.core.config import (
    DEVICE_ENV_VAR,
    Config,
    DeviceConfig,
    StagingConfig,
    get_config,
    load_config,
    load_config_file,
)
from podcaddy.core.errors import ConfigError


def write_config(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


class TestLoadConfig:
    """Tests for loading from the local and global files."""

    def test_defaults_create_local_file(self, tmp_path: Path) -> None:
        """Without any config a local file with defaults is created."""
        local = tmp_path / ".podcaddy" / "config"

        config = load_config(local, tmp_path / "global" / "config")

        assert local.exists()
        assert config.device.root == "/media/ipod/"
        assert config.device.playlist == "Playlists/Podcasts.m3u8"
        assert config.tagging.max_cover_bytes == 512000
        assert load_config(local, tmp_path / "none") == config

    def test_no_auto_create(self, tmp_path: Path) -> None:
        """Auto-creation can be turned off."""
        local = tmp_path / ".podcaddy" / "config"

        load_config(local, tmp_path / "none", auto_create_local=False)

        assert not local.exists()

    def test_local_overrides_global(self, tmp_path: Path) -> None:
        """Keys in the local file win; the rest come from the global file."""
        global_path = write_config(
            tmp_path / "global" / "config",
            '[device]\nroot = "/mnt/global"\n\n[staging]\ndir = "/tmp/global-staging"\n',
        )
        local_path = write_config(tmp_path / "local" / "config", '[device]\nroot = "/mnt/local"\n')

        config = load_config(local_path, global_path)

        assert config.device.root == "/mnt/local"
        assert config.staging.dir == "/tmp/global-staging"
        assert config.device.bookmarks == ".rockbox/most-recent.bmark"

    def test_invalid_toml(self, tmp_path: Path) -> None:
        """Broken TOML raises ConfigError."""
        local = write_config(tmp_path / "config", "[device\nroot = ")

        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_config(local, tmp_path / "none")

    @pytest.mark.parametrize(
        ("text", "message"),
        [
            ('[device]\nroot = ""\n', "device.root cannot be empty"),
            ("[device]\nroot = 3\n", "must be a string"),
            ('[network]\ntimeout = "slow"\n', "must be a number"),
            ("[network]\ntimeout = 0\n", "must be positive"),
            ('device = "oops"\n', "must be a table"),
        ],
    )
    def test_invalid_values(self, tmp_path: Path, text: str, message: str) -> None:
        """Values of the wrong type or empty paths are rejected."""
        local = write_config(tmp_path / "config", text)

        with pytest.raises(ConfigError, match=message):
            load_config(local, tmp_path / "none")


class TestLoadConfigFile:
    """Tests for an explicit --config file."""

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing explicit file is an error."""
        with pytest.raises(ConfigError, match="not found"):
            load_config_file(tmp_path / "nope.toml")

    def test_values_over_defaults(self, tmp_path: Path) -> None:
        """The explicit file is merged over the defaults."""
        path = write_config(tmp_path / "podcaddy.toml", '[backup]\ndir = "/srv/backup"\n')

        config = get_config(str(path))

        assert config.get_backup_dir() == Path("/srv/backup")
        assert config.backup.rsync == "rsync"


class TestDerivedPaths:
    """Tests for paths derived from the configuration."""

    def test_device_paths(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Playlist and bookmarks live under the device root."""
        monkeypatch.delenv(DEVICE_ENV_VAR, raising=False)
        config = Config(device=DeviceConfig(root="/mnt/player"))

        assert config.get_device_playlist() == Path("/mnt/player/Playlists/Podcasts.m3u8")
        assert config.get_bookmark_file() == Path("/mnt/player/.rockbox/most-recent.bmark")

    def test_environment_overrides_device_root(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """PODCADDY_DEVICE takes precedence over the configured root."""
        monkeypatch.setenv(DEVICE_ENV_VAR, "/mnt/other")
        config = Config(device=DeviceConfig(root="/mnt/player"))

        assert config.get_device_root() == Path("/mnt/other")

    def test_staging_paths(self) -> None:
        """Fragment, lock and episodes all live in the staging directory."""
        config = Config(staging=StagingConfig(dir="/tmp/new"))

        assert config.get_staging_episodes_dir() == Path("/tmp/new/Podcasts")
        assert config.get_fragment_file() == Path("/tmp/new/Playlists/Podcasts.m3u8")
        assert config.get_lock_file() == Path("/tmp/new/podcasts.lock")

    def test_yearly_log_file(self) -> None:
        """Activity logs are split by year."""
        config = Config()

        assert config.get_log_file(datetime(2023, 5, 1)).name == "podcasts_2023.log"

    def test_optional_paths_disabled(self) -> None:
        """Empty dump and backup paths disable those features."""
        config = Config()

        assert config.get_dump_path() is None
        assert config.get_backup_dir() is None
