"""SQLite store of podcast subscriptions.

Raw SQL with parameter binding; one short-lived connection per operation.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from podcaddy.core.errors import StoreError
from podcaddy.core.models import Subscription

if TYPE_CHECKING:
    from podcaddy.core.config import Config

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ORDER_CLAUSES = {
    "i": "podcast_id ASC",
    "n": "podcast_name ASC",
    "d": "podcast_last_downloaded DESC",
}

SCHEMA = """
CREATE TABLE IF NOT EXISTS podcasts (
    podcast_id INTEGER PRIMARY KEY AUTOINCREMENT,
    podcast_name TEXT NOT NULL UNIQUE,
    podcast_feed TEXT NOT NULL,
    podcast_last_downloaded TEXT NOT NULL,
    podcast_skip INTEGER NOT NULL DEFAULT 0
)
"""


def format_date(value: datetime) -> str:
    """Store dates as naive UTC text so they sort lexically."""
    if value.tzinfo is not None:
        value = value.astimezone(UTC)
    return value.strftime(DATE_FORMAT)


def parse_date(value: str) -> datetime:
    return datetime.strptime(value, DATE_FORMAT).replace(tzinfo=UTC)


class SubscriptionStore:
    """Subscriptions with their feed URL, last download date and skip flag."""

    def __init__(self, db_path: Path) -> None:
        """
        Open (creating if needed) the subscription database.

        Args:
            db_path: Path to SQLite database file

        Raises:
            StoreError: If the database cannot be opened
        """
        self.db_path = db_path
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreError(f"Cannot create database directory {self.db_path.parent}: {e}") from e
        with self._connect() as conn:
            conn.execute(SCHEMA)

    @classmethod
    def from_config(cls, config: Config) -> SubscriptionStore:
        return cls(config.get_database_path())

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise StoreError(f"Database unreachable at {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        except sqlite3.Error as e:
            raise StoreError(f"Database error: {e}") from e
        finally:
            conn.close()

    @staticmethod
    def _row_to_subscription(row: sqlite3.Row) -> Subscription:
        return Subscription(
            id=row["podcast_id"],
            name=row["podcast_name"],
            feed_url=row["podcast_feed"],
            last_downloaded=parse_date(row["podcast_last_downloaded"]),
            enabled=row["podcast_skip"] == 0,
        )

    def list(self, order: str = "d") -> list[Subscription]:
        """
        List all subscriptions.

        Args:
            order: 'd' most recently downloaded first, 'i' by id, 'n' by name

        Raises:
            StoreError: If the order is unknown or the query fails
        """
        clause = ORDER_CLAUSES.get(order)
        if clause is None:
            raise StoreError(f"Unknown order '{order}'. Can be [d]ate, [i]d or [n]ame.")
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT podcast_id, podcast_name, podcast_feed, podcast_last_downloaded, "
                f"podcast_skip FROM podcasts ORDER BY {clause}"
            ).fetchall()
        return [self._row_to_subscription(row) for row in rows]

    def get(self, id_or_name: int | str) -> Subscription | None:
        """Look a subscription up by numeric id or exact name."""
        column, value = _key(id_or_name)
        with self._connect() as conn:
            row = conn.execute(
                "SELECT podcast_id, podcast_name, podcast_feed, podcast_last_downloaded, "
                f"podcast_skip FROM podcasts WHERE {column} = ?",
                (value,),
            ).fetchone()
        return self._row_to_subscription(row) if row else None

    def toggle(self, id_or_name: int | str) -> Subscription:
        """
        Flip whether a subscription is downloaded.

        Returns:
            The subscription in its new state

        Raises:
            StoreError: If no subscription matches
        """
        column, value = _key(id_or_name)
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE podcasts SET podcast_skip = CASE podcast_skip WHEN 0 THEN 1 ELSE 0 END "
                f"WHERE {column} = ?",
                (value,),
            )
            if cursor.rowcount == 0:
                raise StoreError(f"No podcast matching '{id_or_name}'")
        subscription = self.get(id_or_name)
        if subscription is None:
            raise StoreError(f"Podcast '{id_or_name}' disappeared while being toggled")
        return subscription

    def update_last_downloaded(self, subscription_id: int, date: datetime) -> None:
        with self._connect() as conn:
            conn.execute(
                "UPDATE podcasts SET podcast_last_downloaded = ? WHERE podcast_id = ?",
                (format_date(date), subscription_id),
            )

    def insert(self, name: str, url: str, date: datetime) -> bool:
        """
        Add a subscription.

        Returns:
            False if a subscription with that name already exists
        """
        try:
            with self._connect() as conn:
                conn.execute(
                    "INSERT INTO podcasts (podcast_name, podcast_feed, podcast_last_downloaded) "
                    "VALUES (?, ?, ?)",
                    (name, url, format_date(date)),
                )
        except StoreError as e:
            if isinstance(e.__cause__, sqlite3.IntegrityError):
                logger.info("Podcast %r already exists", name)
                return False
            raise
        return True

    def dump(self, path: Path) -> None:
        """Write an SQL dump of the database."""
        with self._connect() as conn:
            statements = "\n".join(conn.iterdump())
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(statements + "\n")
        except OSError as e:
            raise StoreError(f"Failed to write database dump {path}: {e}") from e
        logger.debug("Dumped subscriptions to %s", path)


def _key(id_or_name: int | str) -> tuple[str, int | str]:
    """Numeric input selects by id, anything else by name."""
    if isinstance(id_or_name, int):
        return "podcast_id", id_or_name
    if id_or_name.strip().isdigit() and int(id_or_name) != 0:
        return "podcast_id", int(id_or_name)
    return "podcast_name", id_or_name
