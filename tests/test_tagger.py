"""Tests for ID3 tagging of staged episodes."""

from io import BytesIO

import pytest
from mutagen.id3 import ID3, TIT2, PictureType

from podcaddy.core.errors import TaggingError
from podcaddy.services.tagger import MutagenTagger, NullTagger, sniff_image_mime

AUDIO = b"\xff\xfb\x90\x00" + b"\x00" * 400
JPEG = b"\xff\xd8\xff\xe0" + b"\x00" * 64
PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def read_tags(data: bytes) -> ID3:
    return ID3(BytesIO(data))


class TestSniffImageMime:
    """Tests for image type detection."""

    def test_known_types(self) -> None:
        assert sniff_image_mime(JPEG) == "image/jpeg"
        assert sniff_image_mime(PNG) == "image/png"

    def test_unknown(self) -> None:
        assert sniff_image_mime(b"GIF89a") is None


class TestEnsureTitle:
    """Tests for MutagenTagger.ensure_title."""

    def test_adds_title_to_untagged_audio(self) -> None:
        tagged = MutagenTagger().ensure_title(AUDIO, "Episode 1")

        assert str(read_tags(tagged)["TIT2"]) == "Episode 1"
        assert tagged.endswith(AUDIO)

    def test_existing_title_is_kept(self) -> None:
        tags = ID3()
        tags.add(TIT2(encoding=3, text="Original"))
        buffer = BytesIO(AUDIO)
        tags.save(buffer, v2_version=3)
        data = buffer.getvalue()

        assert MutagenTagger().ensure_title(data, "Replacement") == data


class TestNormalizeCover:
    """Tests for MutagenTagger.normalize_cover."""

    def test_single_front_cover(self) -> None:
        tagger = MutagenTagger()
        once = tagger.normalize_cover(AUDIO, PNG)
        twice = tagger.normalize_cover(once, JPEG)

        pictures = read_tags(twice).getall("APIC")
        assert len(pictures) == 1
        assert pictures[0].type == PictureType.COVER_FRONT
        assert pictures[0].mime == "image/jpeg"
        assert pictures[0].data == JPEG

    def test_oversized_cover_rejected(self) -> None:
        with pytest.raises(TaggingError, match="limit"):
            MutagenTagger(max_cover_bytes=10).normalize_cover(AUDIO, JPEG)

    def test_unknown_format_rejected(self) -> None:
        with pytest.raises(TaggingError, match="JPEG or PNG"):
            MutagenTagger().normalize_cover(AUDIO, b"GIF89a" + b"\x00" * 10)


class TestNullTagger:
    """Tests for NullTagger."""

    def test_returns_input(self) -> None:
        tagger = NullTagger()

        assert tagger.ensure_title(AUDIO, "x") is AUDIO
        assert tagger.normalize_cover(AUDIO, JPEG) is AUDIO
