"""Core modules for podcaddy."""

from podcaddy.core.bookmarks import (
    BookmarkFile,
    BookmarkRecord,
    OpaqueLine,
    read_position,
    reset_position,
)
from podcaddy.core.config import Config, get_config, load_config
from podcaddy.core.errors import PodcaddyError
from podcaddy.core.models import InsertMode
from podcaddy.core.playlist import PlaylistFile, PlaylistMerger

__all__ = [
    "BookmarkFile",
    "BookmarkRecord",
    "Config",
    "InsertMode",
    "OpaqueLine",
    "PlaylistFile",
    "PlaylistMerger",
    "PodcaddyError",
    "get_config",
    "load_config",
    "read_position",
    "reset_position",
]
