"""Podcast feed retrieval."""

from __future__ import annotations

import html
import re
from calendar import timegm
from datetime import UTC, datetime, timedelta
from time import struct_time
from typing import TYPE_CHECKING, Any

import feedparser
import httpx

from podcaddy.core.errors import FeedError
from podcaddy.core.models import EpisodeMeta

if TYPE_CHECKING:
    from podcaddy.core.config import Config

TAG_PATTERN = re.compile(r"<[^>]+>")
WHITESPACE_PATTERN = re.compile(r"\s+")


class FeedClient:
    """Fetches RSS feeds and extracts downloadable audio episodes."""

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: str | None = None,
        check_url: str = "https://www.google.com/",
    ) -> None:
        """Initialize the feed client."""
        self.timeout = timeout
        self.headers = {"User-Agent": user_agent} if user_agent else {}
        self.check_url = check_url

    @classmethod
    def from_config(cls, config: Config) -> FeedClient:
        return cls(
            timeout=config.network.timeout,
            user_agent=config.network.user_agent,
            check_url=config.network.check_url,
        )

    def test_connection(self) -> bool:
        """Check that the internet is reachable."""
        try:
            with httpx.Client(timeout=self.timeout, headers=self.headers) as client:
                client.head(self.check_url, follow_redirects=True)
        except httpx.HTTPError:
            return False
        return True

    def fetch(self, feed_url: str, since: datetime) -> list[EpisodeMeta]:
        """
        Get the audio episodes published after a date.

        Args:
            feed_url: URL of the podcast RSS feed
            since: Only episodes published strictly later are returned

        Returns:
            EpisodeMeta objects, oldest first

        Raises:
            FeedError: If the feed cannot be fetched or parsed
        """
        feed = self._parse(feed_url)
        since = _as_utc(since)

        episodes = [
            episode
            for episode in (self._to_episode(entry, feed) for entry in feed.entries)
            if episode is not None and episode.published > since
        ]
        episodes.sort(key=lambda e: e.published)
        return episodes

    def get_start_date(self, feed_url: str) -> datetime:
        """
        Get the date a new subscription should download from.

        One second before the oldest audio episode, so the whole back
        catalogue counts as new; now for a feed with no episodes.

        Raises:
            FeedError: If the feed cannot be fetched or parsed
        """
        episodes = self.fetch(feed_url, datetime.min.replace(tzinfo=UTC))
        if not episodes:
            return datetime.now(UTC).replace(microsecond=0)
        return episodes[0].published - timedelta(seconds=1)

    def _parse(self, feed_url: str) -> Any:
        try:
            with httpx.Client(timeout=self.timeout, headers=self.headers) as client:
                response = client.get(feed_url, follow_redirects=True)
                response.raise_for_status()
                content = response.content
        except httpx.HTTPError as e:
            raise FeedError(f"Failed to fetch RSS feed: {e}") from e

        feed = feedparser.parse(content)

        if feed.bozo and not feed.entries:
            raise FeedError(f"Invalid RSS feed: {feed.bozo_exception}")

        return feed

    def _to_episode(self, entry: Any, feed: Any) -> EpisodeMeta | None:
        enclosure = self._audio_enclosure(entry)
        if enclosure is None:
            return None

        published = self._parse_date(entry.get("published_parsed") or entry.get("updated_parsed"))
        if published is None:
            return None

        image = entry.get("image") or feed.feed.get("image") or {}

        return EpisodeMeta(
            title=str(entry.get("title", "Untitled")),
            url=enclosure["href"],
            published=published,
            duration=entry.get("itunes_duration"),
            length=self._parse_length(enclosure.get("length")),
            description=clean_description(entry.get("summary") or entry.get("description") or ""),
            image_url=image.get("href") or None,
        )

    @staticmethod
    def _audio_enclosure(entry: Any) -> dict[str, Any] | None:
        for enclosure in entry.get("enclosures", []):
            href = enclosure.get("href", "")
            if not href:
                continue
            media_type = enclosure.get("type", "")
            if media_type.startswith("audio/") or href.split("?")[0].lower().endswith(".mp3"):
                return enclosure
        return None

    @staticmethod
    def _parse_date(time_struct: struct_time | None) -> datetime | None:
        """Parse a UTC time struct from feedparser."""
        if not time_struct:
            return None
        try:
            return datetime.fromtimestamp(timegm(time_struct), tz=UTC)
        except (ValueError, OverflowError):
            return None

    @staticmethod
    def _parse_length(value: Any) -> int:
        try:
            return max(int(value), 0)
        except (TypeError, ValueError):
            return 0


def clean_description(text: str) -> str:
    """Strip markup and collapse whitespace to a single line."""
    text = html.unescape(TAG_PATTERN.sub(" ", text))
    return WHITESPACE_PATTERN.sub(" ", text).strip()


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value
