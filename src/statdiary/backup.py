"""Image backup — a zipped copy of the database packed into PNG pixels.

Pixel layout of the square RGBA image:

    pixel 0      (255, 255, 255, 255) marker
    pixel 1      zip size as a big-endian u32
    pixel 2..    zip bytes, four per pixel, zero padded
"""

from __future__ import annotations

import io
import logging
import math
import struct
import zipfile
from pathlib import Path

from PIL import Image

from statdiary.errors import InvalidPath, NotABackupImage, UnknownCompression
from statdiary.store.files import (
    DATA_DIRNAME,
    STAGING_DIRNAME,
    STATUS_FILENAME,
    TAGS_FILENAME,
    check_root,
)
from statdiary.store.status import ActiveTask, TaskLedger

logger = logging.getLogger(__name__)

MARKER = b"\xff\xff\xff\xff"
_HEADER_BYTES = 8

COMPRESSION_METHODS = {
    "stored": zipfile.ZIP_STORED,
    "deflated": zipfile.ZIP_DEFLATED,
    "bzip2": zipfile.ZIP_BZIP2,
    "lzma": zipfile.ZIP_LZMA,
}

_SKIPPED = {STATUS_FILENAME, STAGING_DIRNAME}


def zip_database(db_root: Path, compression: str = "lzma") -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=COMPRESSION_METHODS[compression]) as zf:
        for path in sorted(db_root.rglob("*")):
            rel = path.relative_to(db_root)
            if rel.parts[0] in _SKIPPED or not path.is_file():
                continue
            zf.write(path, rel.as_posix())
    return buf.getvalue()


def encode_image(data: bytes) -> Image.Image:
    """Pack ``data`` into a square RGBA image."""
    side = math.ceil(math.sqrt((len(data) + _HEADER_BYTES) / 4))
    payload = MARKER + struct.pack(">I", len(data)) + data
    payload += b"\x00" * (side * side * 4 - len(payload))
    return Image.frombytes("RGBA", (side, side), payload)


def decode_image(image: Image.Image) -> bytes:
    raw = image.convert("RGBA").tobytes()
    if len(raw) < _HEADER_BYTES or raw[:4] != MARKER:
        raise NotABackupImage("Image does not hold a compressed database")
    (size,) = struct.unpack(">I", raw[4:8])
    if size > len(raw) - _HEADER_BYTES:
        raise NotABackupImage(f"Image declares {size} bytes but holds fewer")
    return raw[_HEADER_BYTES : _HEADER_BYTES + size]


def compress_to_image(db_root: Path, image_path: Path, compression: str = "lzma") -> int:
    """Write a PNG backup of ``db_root``. Returns the zipped size in bytes."""
    if compression not in COMPRESSION_METHODS:
        raise UnknownCompression(compression)
    db_root = check_root(db_root)
    with TaskLedger.activate(db_root, ActiveTask.none()):
        data = zip_database(db_root, compression)
    image = encode_image(data)
    image_path.parent.mkdir(parents=True, exist_ok=True)
    image.save(image_path, format="PNG")
    logger.info("Backed up %s to %s (%d bytes, %dx%d)", db_root, image_path, len(data), *image.size)
    return len(data)


def restore_from_image(db_root: Path, image_path: Path) -> int:
    """Extract a PNG backup into an empty or absent ``db_root``.

    Returns the number of files restored.
    """
    db_root = Path(db_root)
    if (db_root / TAGS_FILENAME).exists() or (db_root / DATA_DIRNAME).exists():
        raise InvalidPath(db_root, "already holds a database")

    with Image.open(image_path) as image:
        data = decode_image(image)
    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as e:
        raise NotABackupImage(f"Corrupted archive in {image_path}") from e

    db_root.mkdir(parents=True, exist_ok=True)
    with archive:
        names = archive.namelist()
        archive.extractall(db_root)
    logger.info("Restored %d files from %s into %s", len(names), image_path, db_root)
    return len(names)
