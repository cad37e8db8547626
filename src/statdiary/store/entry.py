"""Binary day-file codec.

Each entry is laid out as::

    hour (1 byte) | mental (1 byte) | physical (1 byte) | tag id (u16 BE)* | 0xFFFF

A day file is the plain concatenation of its entries in append order.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

from statdiary.errors import FormatError
from statdiary.store.files import (
    DATA_DIRNAME,
    DAY_FILE_EXTENSION,
    staging_dir_for,
    write_atomic,
)

logger = logging.getLogger(__name__)

SENTINEL = 0xFFFF
MAX_TAG_ID = 0xFFFE
_HEADER = struct.Struct(">BBB")
_TAG = struct.Struct(">H")


@dataclass
class DataEntry:
    """One observation: hour of day, two scores and the tags attached to it."""

    hour: int
    mental_score: int
    physical_score: int
    tags: list[int] = field(default_factory=list)

    def validate(self) -> None:
        if not 0 <= self.hour <= 23:
            raise ValueError(f"hour out of range: {self.hour}")
        for label, score in (("mental", self.mental_score), ("physical", self.physical_score)):
            if not 0 <= score <= 255:
                raise ValueError(f"{label} score out of range: {score}")
        for tag_id in self.tags:
            if not 0 <= tag_id <= MAX_TAG_ID:
                raise ValueError(f"tag id out of range: {tag_id}")


def encode(entries: list[DataEntry]) -> bytes:
    out = bytearray()
    for entry in entries:
        entry.validate()
        out += _HEADER.pack(entry.hour, entry.mental_score, entry.physical_score)
        for tag_id in entry.tags:
            out += _TAG.pack(tag_id)
        out += _TAG.pack(SENTINEL)
    return bytes(out)


def decode(data: bytes) -> list[DataEntry]:
    """Decode a whole day file, rejecting truncated or malformed input."""
    entries: list[DataEntry] = []
    pos = 0
    size = len(data)
    while pos < size:
        if size - pos < _HEADER.size:
            raise FormatError(f"Truncated entry header at byte {pos}")
        hour, mental, physical = _HEADER.unpack_from(data, pos)
        if hour > 23:
            raise FormatError(f"Invalid hour {hour} at byte {pos}")
        pos += _HEADER.size

        tags: list[int] = []
        while True:
            if size - pos < _TAG.size:
                raise FormatError(f"Entry missing its terminator at byte {pos}")
            (tag_id,) = _TAG.unpack_from(data, pos)
            pos += _TAG.size
            if tag_id == SENTINEL:
                break
            tags.append(tag_id)
        entries.append(DataEntry(hour, mental, physical, tags))
    return entries


def day_file_name(day: date) -> str:
    """``<day-of-month>-<iso weekday>.dat``, e.g. ``5-3.dat`` for a Wednesday."""
    return f"{day.day}-{day.isoweekday()}.{DAY_FILE_EXTENSION}"


def day_file_path(root: Path, day: date) -> Path:
    return Path(root) / DATA_DIRNAME / str(day.year) / str(day.month) / day_file_name(day)


def weekday_from_name(path: Path) -> int:
    """Read the ISO weekday number back out of a day file name."""
    parts = path.stem.split("-")
    if len(parts) != 2 or not parts[1].isdigit() or not 1 <= int(parts[1]) <= 7:
        raise FormatError(f"Invalid day file name: {path.name}")
    return int(parts[1])


def read_day_file(path: Path) -> list[DataEntry]:
    try:
        return decode(path.read_bytes())
    except FormatError as e:
        raise FormatError(f"{path}: {e}") from e


def write_day_file(root: Path, path: Path, entries: list[DataEntry]) -> None:
    """Replace a day file with ``entries``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    write_atomic(path, encode(entries), staging_dir_for(root))


def append_entries(root: Path, day: date, entries: list[DataEntry]) -> Path:
    """Append entries to the day file for ``day``, creating it if needed.

    The existing content is decoded first so nothing is ever appended to a
    corrupted file.
    """
    path = day_file_path(root, day)
    existing = read_day_file(path) if path.exists() else []
    write_day_file(root, path, existing + list(entries))
    logger.debug("Appended %d entries to %s", len(entries), path)
    return path
