"""Episode media fetcher.

Streams episode audio over HTTP into memory so it can be tagged and
staged in one write.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

import httpx

from podcaddy.core.errors import DownloadError

if TYPE_CHECKING:
    from podcaddy.core.config import Config

# Default timeout for downloads (in seconds)
DEFAULT_TIMEOUT = 300.0  # 5 minutes for large media files

# Chunk size for streaming downloads (64KB)
CHUNK_SIZE = 65536

# Called with (bytes received, total bytes or 0 when unknown)
ProgressCallback = Callable[[int, int], None]


class Fetcher:
    """Downloads episode media."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, user_agent: str | None = None) -> None:
        self.timeout = timeout
        self.headers = {"User-Agent": user_agent} if user_agent else {}

    @classmethod
    def from_config(cls, config: Config) -> Fetcher:
        return cls(
            timeout=max(DEFAULT_TIMEOUT, config.network.timeout),
            user_agent=config.network.user_agent,
        )

    def get(self, url: str, progress: ProgressCallback | None = None) -> bytes:
        """Download a file into memory.

        Args:
            url: URL of the media file to download.
            progress: Optional callback invoked after every chunk.

        Returns:
            The response body.

        Raises:
            DownloadError: If download fails for any reason.
        """
        chunks: list[bytes] = []
        received = 0

        try:
            with (
                httpx.Client(
                    timeout=self.timeout, headers=self.headers, follow_redirects=True
                ) as client,
                client.stream("GET", url) as response,
            ):
                response.raise_for_status()
                total = int(response.headers.get("Content-Length", 0) or 0)

                for chunk in response.iter_bytes(chunk_size=CHUNK_SIZE):
                    chunks.append(chunk)
                    received += len(chunk)
                    if progress is not None:
                        progress(received, total)

        except httpx.TimeoutException as e:
            raise DownloadError(f"Download timed out for {url}: {e}") from e

        except httpx.HTTPStatusError as e:
            raise DownloadError(
                f"HTTP error {e.response.status_code} downloading {url}: {e}"
            ) from e

        except httpx.HTTPError as e:
            raise DownloadError(f"Failed to download {url}: {e}") from e

        return b"".join(chunks)
