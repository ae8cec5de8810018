"""Custom exceptions for podcaddy."""


class PodcaddyError(Exception):
    """Base exception for all podcaddy errors."""

    pass


class ConfigError(PodcaddyError):
    """Configuration-related errors."""

    pass


class FeedError(PodcaddyError):
    """RSS feed retrieval and parsing errors."""

    pass


class DownloadError(PodcaddyError):
    """Episode media download errors."""

    pass


class StoreError(PodcaddyError):
    """Subscription database errors."""

    pass


class TaggingError(PodcaddyError):
    """Audio tag or cover art errors."""

    pass


class PlaylistError(PodcaddyError):
    """Device playlist read/write errors."""

    pass


class BookmarkError(PodcaddyError):
    """Resume bookmark file errors."""

    pass


class AmbiguousBookmarkError(BookmarkError):
    """More than one bookmark record refers to the same playlist."""

    pass
