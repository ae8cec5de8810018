"""Data models for podcaddy."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum


@dataclass
class Subscription:
    """A podcast feed tracked in the subscription store."""

    id: int
    name: str
    feed_url: str
    last_downloaded: datetime
    enabled: bool = True


@dataclass
class EpisodeMeta:
    """Represents a downloadable episode from an RSS feed."""

    title: str
    url: str
    published: datetime
    duration: str | None = None  # as given by the feed, e.g. "45:12"
    length: int = 0  # bytes, as advertised by the enclosure
    description: str = ""
    image_url: str | None = None


class InsertMode(StrEnum):
    """How staged entries are merged into the device playlist."""

    APPEND = "append"
    INSERT = "insert"
    OVERWRITE = "overwrite"

    @classmethod
    def parse(cls, value: str) -> "InsertMode":
        """Accept a full mode name or its first letter."""
        value = value.strip().lower()
        for mode in cls:
            if value in (mode.value, mode.value[0]):
                return mode
        raise ValueError(f"Unknown mode '{value}'. Can be [a]ppend, [i]nsert or [o]verwrite.")


@dataclass
class TransferResult:
    """Counts from moving the staged episode tree onto the device."""

    files: int = 0
    dirs: int = 0
    errors: int = 0

    def __iadd__(self, other: "TransferResult") -> "TransferResult":
        self.files += other.files
        self.dirs += other.dirs
        self.errors += other.errors
        return self


@dataclass
class TransferOutcome:
    """Result of a transfer run, successful or not."""

    success: bool
    message: str
    result: TransferResult | None = None


@dataclass
class DownloadOutcome:
    """Result of a download run, successful or not."""

    success: bool
    message: str
    downloaded: int = 0


@dataclass
class CleanReport:
    """Episodes removed from the device by the consumption cleaner."""

    deleted: dict[str, int] = field(default_factory=dict)
    unparsed: int = 0  # removed entries with no recognisable show folder

    @property
    def total(self) -> int:
        return sum(self.deleted.values()) + self.unparsed
