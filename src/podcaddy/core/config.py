"""Configuration management for podcaddy.

Handles TOML configuration loading from local and global paths,
with environment variable precedence for the device mount point.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from podcaddy.core.errors import ConfigError

# Configuration file paths
LOCAL_CONFIG_PATH = Path(".podcaddy/config")
GLOBAL_CONFIG_PATH = Path.home() / ".podcaddy" / "config"

DEVICE_ENV_VAR = "PODCADDY_DEVICE"

# Default configuration values
DEFAULT_CONFIG: dict[str, Any] = {
    "device": {
        "root": "/media/ipod/",
        "playlist": "Playlists/Podcasts.m3u8",
        "playlist_name": "Podcasts",
        "bookmarks": ".rockbox/most-recent.bmark",
    },
    "staging": {
        "dir": "~/Downloads/New_Podcasts/",
    },
    "database": {
        "path": "~/.podcaddy/podcasts.db",
        "dump_path": "",
    },
    "logging": {
        "dir": "~/.podcaddy/logs/",
    },
    "backup": {
        "dir": "",
        "rsync": "rsync",
    },
    "notify": {
        "command": "",
    },
    "network": {
        "check_url": "https://www.google.com/",
        "timeout": 30.0,
        "user_agent": "Mozilla/5.0 (X11; Linux x86_64; rv:128.0) Gecko/20100101 Firefox/128.0",
    },
    "tagging": {
        "max_cover_bytes": 512000,
    },
}


@dataclass
class DeviceConfig:
    """Portable player layout."""

    root: str = "/media/ipod/"
    playlist: str = "Playlists/Podcasts.m3u8"
    playlist_name: str = "Podcasts"
    bookmarks: str = ".rockbox/most-recent.bmark"


@dataclass
class StagingConfig:
    """Local holding area for downloaded episodes."""

    dir: str = "~/Downloads/New_Podcasts/"


@dataclass
class DatabaseConfig:
    """Subscription store settings."""

    path: str = "~/.podcaddy/podcasts.db"
    dump_path: str = ""


@dataclass
class LoggingConfig:
    """Activity log settings."""

    dir: str = "~/.podcaddy/logs/"


@dataclass
class BackupConfig:
    """Local mirror of the device contents."""

    dir: str = ""
    rsync: str = "rsync"


@dataclass
class NotifyConfig:
    """External command run after downloads and transfers."""

    command: str = ""


@dataclass
class NetworkConfig:
    """HTTP settings for feeds and downloads."""

    check_url: str = "https://www.google.com/"
    timeout: float = 30.0
    user_agent: str = DEFAULT_CONFIG["network"]["user_agent"]


@dataclass
class TaggingConfig:
    """Audio tag touch-up settings."""

    max_cover_bytes: int = 512000


@dataclass
class Config:
    """Main configuration container.

    Holds all configuration settings for podcaddy, loaded from
    local and global config files with environment variable overrides.
    Every path a component needs is derived here so nothing else
    hard-codes a location.
    """

    device: DeviceConfig = field(default_factory=DeviceConfig)
    staging: StagingConfig = field(default_factory=StagingConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    backup: BackupConfig = field(default_factory=BackupConfig)
    notify: NotifyConfig = field(default_factory=NotifyConfig)
    network: NetworkConfig = field(default_factory=NetworkConfig)
    tagging: TaggingConfig = field(default_factory=TaggingConfig)

    def get_device_root(self) -> Path:
        """Get the device mount point with environment variable precedence.

        Returns:
            The path from PODCADDY_DEVICE if set, otherwise device.root.
        """
        env_root = os.environ.get(DEVICE_ENV_VAR, "")
        return Path(env_root or self.device.root).expanduser()

    def get_device_playlist(self) -> Path:
        return self.get_device_root() / self.device.playlist

    def get_bookmark_file(self) -> Path:
        return self.get_device_root() / self.device.bookmarks

    def get_staging_dir(self) -> Path:
        return Path(self.staging.dir).expanduser()

    def get_staging_episodes_dir(self) -> Path:
        """Directory tree holding staged episodes, one folder per show."""
        return self.get_staging_dir() / "Podcasts"

    def get_fragment_file(self) -> Path:
        """Pending playlist fragment, mirroring the device playlist location."""
        return self.get_staging_dir() / self.device.playlist

    def get_lock_file(self) -> Path:
        return self.get_staging_dir() / "podcasts.lock"

    def get_database_path(self) -> Path:
        return Path(self.database.path).expanduser()

    def get_dump_path(self) -> Path | None:
        return Path(self.database.dump_path).expanduser() if self.database.dump_path else None

    def get_log_file(self, when: datetime | None = None) -> Path:
        """Get the activity log for the given (or current) year."""
        year = (when or datetime.now()).year
        return Path(self.logging.dir).expanduser() / f"podcasts_{year}.log"

    def get_backup_dir(self) -> Path | None:
        return Path(self.backup.dir).expanduser() if self.backup.dir else None


def _generate_default_config_toml() -> str:
    """Generate default configuration as TOML string.

    Returns:
        TOML-formatted string with default configuration values.
    """
    return """# podcaddy configuration file

[device]
# Mount point of the portable player
# Environment variable PODCADDY_DEVICE takes precedence
root = "/media/ipod/"
# Playlist the podcasts are queued in, relative to the device root
playlist = "Playlists/Podcasts.m3u8"
# Name the resume bookmark uses for that playlist
playlist_name = "Podcasts"
# Resume bookmark file, relative to the device root
bookmarks = ".rockbox/most-recent.bmark"

[staging]
# Where episodes wait before being moved to the device
dir = "~/Downloads/New_Podcasts/"

[database]
path = "~/.podcaddy/podcasts.db"
# SQL dump written after each download run; empty disables
dump_path = ""

[logging]
# Yearly activity logs are written here
dir = "~/.podcaddy/logs/"

[backup]
# Local mirror of the device; empty disables
dir = ""
rsync = "rsync"

[notify]
# Executable run after downloads and transfers; empty disables
command = ""

[network]
check_url = "https://www.google.com/"
timeout = 30.0

[tagging]
# Embedded cover art larger than this is left out
max_cover_bytes = 512000
"""


def _ensure_local_config_exists(local_path: Path) -> None:
    """Create local config file with defaults if it doesn't exist.

    Args:
        local_path: Path to the local config file.
    """
    if not local_path.exists():
        local_path.parent.mkdir(parents=True, exist_ok=True)
        local_path.write_text(_generate_default_config_toml())


def _load_toml_file(path: Path) -> dict[str, Any]:
    """Load and parse a TOML configuration file.

    Args:
        path: Path to the TOML file.

    Returns:
        Parsed configuration dictionary.

    Raises:
        ConfigError: If the file exists but cannot be parsed.
    """
    if not path.exists():
        return {}

    try:
        content = path.read_text()
        return tomllib.loads(content)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in config file {path}: {e}") from e


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence.

    Args:
        base: Base dictionary.
        override: Dictionary with values that override base.

    Returns:
        Merged dictionary with override values taking precedence.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _validate_config(config_dict: dict[str, Any]) -> None:
    """Validate configuration values.

    Args:
        config_dict: Configuration dictionary to validate.

    Raises:
        ConfigError: If configuration values are invalid.
    """
    for section, defaults in DEFAULT_CONFIG.items():
        values = config_dict.get(section, {})
        if not isinstance(values, dict):
            raise ConfigError(f"[{section}] must be a table, got {type(values).__name__}")
        for key, default in defaults.items():
            value = values.get(key, default)
            if isinstance(default, str) and not isinstance(value, str):
                raise ConfigError(f"{section}.{key} must be a string, got {type(value).__name__}")
            if isinstance(default, (int, float)) and (
                isinstance(value, bool) or not isinstance(value, (int, float))
            ):
                raise ConfigError(f"{section}.{key} must be a number, got {type(value).__name__}")
            if isinstance(default, (int, float)) and value <= 0:
                raise ConfigError(f"{section}.{key} must be positive, got {value}")

    device = config_dict.get("device", {})
    for key in ("root", "playlist", "playlist_name", "bookmarks"):
        if not str(device.get(key, DEFAULT_CONFIG["device"][key])).strip():
            raise ConfigError(f"device.{key} cannot be empty")

    if not str(config_dict.get("staging", {}).get("dir", "x")).strip():
        raise ConfigError("staging.dir cannot be empty")


def _dict_to_config(config_dict: dict[str, Any]) -> Config:
    """Convert configuration dictionary to Config dataclass.

    Args:
        config_dict: Configuration dictionary.

    Returns:
        Config object with values from dictionary.
    """
    device = config_dict["device"]
    network = config_dict["network"]

    return Config(
        device=DeviceConfig(
            root=device["root"],
            playlist=device["playlist"],
            playlist_name=device["playlist_name"],
            bookmarks=device["bookmarks"],
        ),
        staging=StagingConfig(dir=config_dict["staging"]["dir"]),
        database=DatabaseConfig(
            path=config_dict["database"]["path"],
            dump_path=config_dict["database"]["dump_path"],
        ),
        logging=LoggingConfig(dir=config_dict["logging"]["dir"]),
        backup=BackupConfig(
            dir=config_dict["backup"]["dir"],
            rsync=config_dict["backup"]["rsync"],
        ),
        notify=NotifyConfig(command=config_dict["notify"]["command"]),
        network=NetworkConfig(
            check_url=network["check_url"],
            timeout=float(network["timeout"]),
            user_agent=network["user_agent"],
        ),
        tagging=TaggingConfig(max_cover_bytes=int(config_dict["tagging"]["max_cover_bytes"])),
    )


def load_config(
    local_path: Path | None = None,
    global_path: Path | None = None,
    auto_create_local: bool = True,
) -> Config:
    """Load configuration from local and global config files.

    Configuration priority (highest to lowest):
    1. Local config file (.podcaddy/config in current directory)
    2. Global config file ($HOME/.podcaddy/config)
    3. Default values

    If no configuration exists, creates local config with defaults.
    Global config is never auto-created.

    Args:
        local_path: Override path for local config file.
        global_path: Override path for global config file.
        auto_create_local: If True, create local config with defaults if no config exists.

    Returns:
        Config object with merged configuration values.

    Raises:
        ConfigError: If configuration files are invalid.
    """
    local_path = local_path or LOCAL_CONFIG_PATH
    global_path = global_path or GLOBAL_CONFIG_PATH

    merged_config = {section: values.copy() for section, values in DEFAULT_CONFIG.items()}

    global_config = _load_toml_file(global_path)
    if global_config:
        merged_config = _deep_merge(merged_config, global_config)

    local_config = _load_toml_file(local_path)
    if local_config:
        merged_config = _deep_merge(merged_config, local_config)

    if auto_create_local and not local_config and not global_config:
        _ensure_local_config_exists(local_path)

    _validate_config(merged_config)

    return _dict_to_config(merged_config)


def load_config_file(path: Path) -> Config:
    """Load configuration from a single explicit file over the defaults.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    merged_config = {section: values.copy() for section, values in DEFAULT_CONFIG.items()}
    merged_config = _deep_merge(merged_config, _load_toml_file(path))
    _validate_config(merged_config)
    return _dict_to_config(merged_config)


def get_config(path: str | None = None) -> Config:
    """Get the application configuration.

    Uses the explicit file when given, otherwise the standard paths.

    Raises:
        ConfigError: If configuration files are invalid.
    """
    if path:
        return load_config_file(Path(path))
    return load_config()
