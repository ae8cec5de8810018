"""Filesystem helpers."""

import os
import re
import tempfile
from pathlib import Path
from typing import Protocol


class FileWriter(Protocol):
    """Capability used by every component that persists a file."""

    def write_text(self, path: Path, text: str) -> None: ...

    def write_bytes(self, path: Path, data: bytes) -> None: ...


class DurableWriter:
    """Writes files by renaming a fully written temp file over the target.

    A reader (or a crash) sees either the old contents or the new ones,
    never a truncated file.
    """

    def __init__(self, fsync: bool = True) -> None:
        self.fsync = fsync

    def write_text(self, path: Path, text: str) -> None:
        self.write_bytes(path, text.encode("utf-8"))

    def write_bytes(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                if self.fsync:
                    f.flush()
                    os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


def read_text(path: Path) -> str:
    """Read a UTF-8 file without newline translation; missing files read as empty."""
    try:
        with open(path, encoding="utf-8", newline="") as f:
            return f.read()
    except FileNotFoundError:
        return ""


def sanitize_name(name: str) -> str:
    """Make a show or episode name safe to use as a path component."""
    cleaned = re.sub(r'[<>:"/\\|?*\x00-\x1f]', "_", name).strip().strip(".")
    return cleaned or "Unknown"
