"""Download runs: fetch new episodes for subscriptions and stage them."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING

from podcaddy.core.errors import DownloadError, FeedError
from podcaddy.core.models import DownloadOutcome, EpisodeMeta, Subscription
from podcaddy.core.playlist import PlaylistFile
from podcaddy.services.activity import ActivityLog
from podcaddy.services.feeds import FeedClient
from podcaddy.services.fetcher import Fetcher, ProgressCallback
from podcaddy.services.notifier import Notifier
from podcaddy.services.stager import EpisodeStager, PendingFragment
from podcaddy.services.store import SubscriptionStore
from podcaddy.utils.files import DurableWriter, FileWriter
from podcaddy.utils.lock import LockFile

if TYPE_CHECKING:
    from podcaddy.core.config import Config

logger = logging.getLogger(__name__)

ONE_YEAR = timedelta(days=365)

BUSY_MESSAGE = "Another download is in progress. Please try again later."
OFFLINE_MESSAGE = "No internet connection"


class DownloadService:
    """Downloads new episodes of subscribed podcasts into the staging area."""

    def __init__(
        self,
        store: SubscriptionStore,
        feeds: FeedClient,
        fetcher: Fetcher,
        stager: EpisodeStager,
        fragment_file: PlaylistFile,
        lock: LockFile,
        activity: ActivityLog | None = None,
        notifier: Notifier | None = None,
        dump_path: Path | None = None,
    ) -> None:
        self.store = store
        self.feeds = feeds
        self.fetcher = fetcher
        self.stager = stager
        self.fragment_file = fragment_file
        self.lock = lock
        self.activity = activity
        self.notifier = notifier
        self.dump_path = dump_path

    @classmethod
    def from_config(
        cls,
        config: Config,
        store: SubscriptionStore | None = None,
        writer: FileWriter | None = None,
    ) -> DownloadService:
        writer = writer or DurableWriter()
        return cls(
            store=store or SubscriptionStore.from_config(config),
            feeds=FeedClient.from_config(config),
            fetcher=Fetcher.from_config(config),
            stager=EpisodeStager.from_config(config, writer),
            fragment_file=PlaylistFile(config.get_fragment_file(), writer),
            lock=LockFile(config.get_lock_file()),
            activity=ActivityLog.from_config(config),
            notifier=Notifier.from_config(config),
            dump_path=config.get_dump_path(),
        )

    def run(
        self,
        podcast: str | None = None,
        single_year: bool = False,
        now: datetime | None = None,
        on_episode: Callable[[Subscription, EpisodeMeta], ProgressCallback | None] | None = None,
    ) -> DownloadOutcome:
        """
        Download new episodes.

        Args:
            podcast: Id or name of a single subscription; all enabled ones when None
            single_year: Skip episodes older than a year
            now: Reference time for the one year cap
            on_episode: Called before each episode download; may return a
                progress callback for the transfer

        Returns:
            Outcome with the number of episodes downloaded

        Raises:
            StoreError: If the subscription database cannot be used
        """
        if self.lock.is_held():
            return DownloadOutcome(False, BUSY_MESSAGE)

        if not self.feeds.test_connection():
            return DownloadOutcome(False, OFFLINE_MESSAGE)

        subscriptions = [s for s in self.store.list(order="n") if _selected(s, podcast)]
        if podcast is not None and not subscriptions:
            return DownloadOutcome(False, f"No podcast matching '{podcast}'")

        now = now or datetime.now(UTC)
        fragment = PendingFragment()
        downloaded = 0

        with self.lock.hold():
            for subscription in subscriptions:
                downloaded += self._download_subscription(
                    subscription, fragment, single_year, now, on_episode
                )

            if downloaded > 0:
                fragment.flush(self.fragment_file)
                if self.dump_path is not None:
                    self.store.dump(self.dump_path)

        if self.notifier is not None:
            self.notifier.notify()

        noun = "podcast" if downloaded == 1 else "podcasts"
        return DownloadOutcome(True, f"Downloaded {downloaded} {noun}", downloaded)

    def _download_subscription(
        self,
        subscription: Subscription,
        fragment: PendingFragment,
        single_year: bool,
        now: datetime,
        on_episode: Callable[[Subscription, EpisodeMeta], ProgressCallback | None] | None,
    ) -> int:
        since = subscription.last_downloaded
        if single_year:
            since = max(since, now - ONE_YEAR)

        try:
            episodes = self.feeds.fetch(subscription.feed_url, since)
        except FeedError as e:
            logger.error("Skipping %s: %s", subscription.name, e)
            return 0

        count = 0
        last_download = subscription.last_downloaded
        for episode in episodes:
            progress = on_episode(subscription, episode) if on_episode else None
            try:
                path = self._download_episode(subscription, episode, progress)
            except DownloadError as e:
                # later episodes would move last_downloaded past this one
                logger.error("Stopping %s at %r: %s", subscription.name, episode.title, e)
                break

            fragment.add(episode.published, subscription.name, path)
            count += 1
            last_download = max(last_download, episode.published)

        if count > 0:
            self.store.update_last_downloaded(subscription.id, last_download)
        return count

    def _download_episode(
        self,
        subscription: Subscription,
        episode: EpisodeMeta,
        progress: ProgressCallback | None,
    ) -> str:
        data = self.fetcher.get(episode.url, progress)
        cover = self._fetch_cover(episode)
        path = self.stager.stage(data, subscription.name, episode.title, episode.published, cover)

        if self.activity is not None:
            self.activity.download(
                title=episode.title,
                filename=path.rsplit("/", 1)[-1],
                duration=episode.duration or "??:??",
                description=episode.description,
            )
        return path

    def _fetch_cover(self, episode: EpisodeMeta) -> bytes | None:
        if not episode.image_url:
            return None
        try:
            return self.fetcher.get(episode.image_url)
        except DownloadError as e:
            logger.warning("Could not fetch cover for %r: %s", episode.title, e)
            return None


def _selected(subscription: Subscription, podcast: str | None) -> bool:
    """Match by id or name, or every enabled subscription when nothing is named."""
    if podcast is None:
        return subscription.enabled
    return podcast == subscription.name or (podcast.isdigit() and int(podcast) == subscription.id)
