"""Tests for filesystem helpers."""

from pathlib import Path
from unittest.mock import patch

import pytest

from podcaddy.utils.files import DurableWriter, read_text, sanitize_name


class TestDurableWriter:
    """Tests for atomic file replacement."""

    def test_writes_and_creates_parents(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "file.txt"

        DurableWriter().write_text(target, "hello\n")

        assert target.read_bytes() == b"hello\n"

    def test_replaces_existing(self, tmp_path: Path) -> None:
        target = tmp_path / "file.bin"
        target.write_bytes(b"old")

        DurableWriter(fsync=False).write_bytes(target, b"new")

        assert target.read_bytes() == b"new"
        assert [p.name for p in tmp_path.iterdir()] == ["file.bin"]

    def test_failed_replace_keeps_old_contents(self, tmp_path: Path) -> None:
        target = tmp_path / "file.bin"
        target.write_bytes(b"old")

        with (
            patch("podcaddy.utils.files.os.replace", side_effect=OSError("disk gone")),
            pytest.raises(OSError),
        ):
            DurableWriter().write_bytes(target, b"new")

        assert target.read_bytes() == b"old"
        assert [p.name for p in tmp_path.iterdir()] == ["file.bin"]


class TestReadText:
    """Tests for reading text files."""

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        assert read_text(tmp_path / "nope") == ""

    def test_newlines_preserved(self, tmp_path: Path) -> None:
        path = tmp_path / "f"
        path.write_bytes(b"a\r\nb")

        assert read_text(path) == "a\r\nb"


class TestSanitizeName:
    """Tests for sanitize_name."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("My Show", "My Show"),
            ("AC/DC: Live?", "AC_DC_ Live_"),
            ("...", "Unknown"),
            ("", "Unknown"),
        ],
    )
    def test_sanitize(self, name: str, expected: str) -> None:
        assert sanitize_name(name) == expected
