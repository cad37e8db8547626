"""Database layout, sorted directory listing and atomic file replacement."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from statdiary.errors import FoundUnknownFolder, InvalidPath

logger = logging.getLogger(__name__)

DATA_DIRNAME = "data"
STAGING_DIRNAME = ".staging"
TAGS_FILENAME = "tags.txt"
STATUS_FILENAME = ".status.txt"
YEAR_CACHE_FILENAME = "year_cache.txt"
MONTH_CACHE_FILENAME = "month_cache.txt"
DAY_FILE_EXTENSION = "dat"


def check_root(root: Path) -> Path:
    """Return ``root`` if it is an existing directory, else raise InvalidPath."""
    root = Path(root)
    if not root.exists():
        raise InvalidPath(root, "does not exist")
    if not root.is_dir():
        raise InvalidPath(root)
    return root


def list_sorted(directory: Path) -> list[Path]:
    """List the immediate children of ``directory``, lexicographic by name."""
    return sorted(directory.iterdir(), key=lambda p: p.name)


def parse_month_folder(path: Path) -> int:
    """Month folders are the bare numbers 1..12; anything else is an anomaly."""
    name = path.name
    if not path.is_dir() or not name.isdigit() or not name.isascii():
        raise FoundUnknownFolder(path)
    month = int(name)
    if not 1 <= month <= 12:
        raise FoundUnknownFolder(path)
    return month


def parse_year_folder(path: Path) -> int:
    name = path.name
    if not path.is_dir() or not name.isdigit() or not name.isascii():
        raise FoundUnknownFolder(path)
    return int(name)


def write_atomic(path: Path, data: bytes, staging_dir: Path) -> None:
    """Write ``data`` to ``path`` through a temp file in ``staging_dir``.

    Readers see either the previous content or the complete new content.
    The staging directory lives outside ``data/`` so a leftover temp file
    never shows up in the closed-world walk.
    """
    staging_dir.mkdir(parents=True, exist_ok=True)
    tmp = tempfile.NamedTemporaryFile("wb", delete=False, dir=str(staging_dir))
    tmp_path = Path(tmp.name)
    try:
        with tmp:
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    logger.debug("Wrote %s (%d bytes)", path, len(data))


def write_text_atomic(path: Path, text: str, staging_dir: Path) -> None:
    write_atomic(path, text.encode("utf-8"), staging_dir)


def staging_dir_for(root: Path) -> Path:
    return Path(root) / STAGING_DIRNAME
