"""Audio tag touch-ups applied to staged episodes.

Tagging is an optional enhancement: callers treat a ``TaggingError``
as "leave the audio as it is".
"""

from __future__ import annotations

from io import BytesIO
from typing import Protocol

from mutagen import MutagenError
from mutagen.id3 import APIC, ID3, TIT2, ID3NoHeaderError, PictureType

from podcaddy.core.errors import TaggingError

DEFAULT_MAX_COVER_BYTES = 512000

# ID3v2.3 is what older players (and Rockbox) read most reliably
ID3_VERSION = 3


class Tagger(Protocol):
    """Capability for fixing up tags on raw audio bytes."""

    def ensure_title(self, data: bytes, title: str) -> bytes: ...

    def normalize_cover(self, data: bytes, image: bytes) -> bytes: ...


class NullTagger:
    """Tagger that leaves audio untouched."""

    def ensure_title(self, data: bytes, title: str) -> bytes:
        return data

    def normalize_cover(self, data: bytes, image: bytes) -> bytes:
        return data


def sniff_image_mime(image: bytes) -> str | None:
    """Get the MIME type of JPEG or PNG image bytes."""
    if image.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    return None


class MutagenTagger:
    """ID3 tagging with mutagen."""

    def __init__(self, max_cover_bytes: int = DEFAULT_MAX_COVER_BYTES) -> None:
        self.max_cover_bytes = max_cover_bytes

    def ensure_title(self, data: bytes, title: str) -> bytes:
        """Add a title tag unless the audio already has one.

        Raises:
            TaggingError: If the tags cannot be read or written.
        """
        buffer = BytesIO(data)
        tags = self._load(buffer)
        if tags.getall("TIT2") and str(tags["TIT2"]).strip():
            return data

        tags.setall("TIT2", [TIT2(encoding=3, text=title)])
        return self._save(tags, buffer)

    def normalize_cover(self, data: bytes, image: bytes) -> bytes:
        """Replace any embedded pictures with a single front cover.

        Raises:
            TaggingError: If the image is too large or not JPEG/PNG, or the
                tags cannot be read or written.
        """
        if len(image) > self.max_cover_bytes:
            raise TaggingError(
                f"Cover image is {len(image)} bytes, limit is {self.max_cover_bytes}"
            )
        mime = sniff_image_mime(image)
        if mime is None:
            raise TaggingError("Cover image is not a JPEG or PNG")

        buffer = BytesIO(data)
        tags = self._load(buffer)
        tags.delall("APIC")
        tags.add(
            APIC(encoding=3, mime=mime, type=PictureType.COVER_FRONT, desc="Cover", data=image)
        )
        return self._save(tags, buffer)

    @staticmethod
    def _load(buffer: BytesIO) -> ID3:
        try:
            return ID3(buffer)
        except ID3NoHeaderError:
            return ID3()
        except MutagenError as e:
            raise TaggingError(f"Failed to read tags: {e}") from e
        finally:
            buffer.seek(0)

    @staticmethod
    def _save(tags: ID3, buffer: BytesIO) -> bytes:
        try:
            tags.save(buffer, v2_version=ID3_VERSION)
        except MutagenError as e:
            raise TaggingError(f"Failed to write tags: {e}") from e
        return buffer.getvalue()
