"""Service modules for podcaddy."""

from podcaddy.services.cleaner import ConsumptionCleaner
from podcaddy.services.download import DownloadService
from podcaddy.services.feeds import FeedClient
from podcaddy.services.fetcher import Fetcher
from podcaddy.services.stager import EpisodeStager, PendingFragment
from podcaddy.services.store import SubscriptionStore
from podcaddy.services.tagger import MutagenTagger, NullTagger, Tagger
from podcaddy.services.transfer import TransferOrchestrator, move_tree

__all__ = [
    "ConsumptionCleaner",
    "DownloadService",
    "EpisodeStager",
    "FeedClient",
    "Fetcher",
    "MutagenTagger",
    "NullTagger",
    "PendingFragment",
    "SubscriptionStore",
    "Tagger",
    "TransferOrchestrator",
    "move_tree",
]
