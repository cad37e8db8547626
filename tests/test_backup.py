"""Tests for the PNG image backup."""

from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

from statdiary.backup import (
    compress_to_image,
    decode_image,
    encode_image,
    restore_from_image,
)
from statdiary.errors import DatabaseBusy, InvalidPath, NotABackupImage
from statdiary.store.cache import rebuild_caches
from statdiary.store.status import ActiveTask, TaskLedger


@pytest.fixture
def diary(db_root: Path, make_day, write_tags) -> Path:
    write_tags("walk", "run")
    make_day(2024, 3, "1-5.dat", [(9, 80, 70, [0, 1])])
    make_day(2024, 3, "2-6.dat", [(9, 70, 70, [1])])
    rebuild_caches(db_root)
    return db_root


class TestImageEncoding:
    def test_header_pixels(self):
        image = encode_image(b"abcdef")
        assert image.mode == "RGBA"
        assert image.getpixel((0, 0)) == (255, 255, 255, 255)
        assert image.getpixel((1, 0)) == (0, 0, 0, 6)

    def test_square_size(self):
        # 1000 bytes + 8 header bytes need 252 pixels -> 16x16
        assert encode_image(bytes(1000)).size == (16, 16)

    def test_payload_survives(self):
        data = bytes(range(256)) * 3
        assert decode_image(encode_image(data)) == data

    def test_not_a_backup(self):
        with pytest.raises(NotABackupImage):
            decode_image(Image.new("RGBA", (4, 4), (10, 20, 30, 255)))

    def test_length_too_large(self):
        image = encode_image(b"abc")
        image.putpixel((1, 0), (0, 1, 0, 0))
        with pytest.raises(NotABackupImage):
            decode_image(image)


class TestBackupRestore:
    def test_round_trip(self, diary: Path, tmp_path: Path):
        image_path = tmp_path / "backup.png"
        assert compress_to_image(diary, image_path) > 0
        assert not (diary / ".status.txt").exists()

        restored = tmp_path / "restored"
        restore_from_image(restored, image_path)
        originals = sorted(p for p in diary.rglob("*") if p.is_file())
        assert originals
        for original in originals:
            copy = restored / original.relative_to(diary)
            assert copy.read_bytes() == original.read_bytes()

    @pytest.mark.parametrize("compression", ["stored", "deflated", "bzip2"])
    def test_compression_methods(self, diary: Path, tmp_path: Path, compression: str):
        image_path = tmp_path / f"{compression}.png"
        compress_to_image(diary, image_path, compression)
        restore_from_image(tmp_path / compression, image_path)
        assert (tmp_path / compression / "tags.txt").read_text() == "0 walk\n1 run\n"

    def test_busy_database(self, diary: Path, tmp_path: Path):
        TaskLedger.activate(diary, ActiveTask.merge_tags("walk", "run"))
        with pytest.raises(DatabaseBusy):
            compress_to_image(diary, tmp_path / "backup.png")
        assert not (tmp_path / "backup.png").exists()

    def test_restore_refuses_existing_database(self, diary: Path, tmp_path: Path):
        image_path = tmp_path / "backup.png"
        compress_to_image(diary, image_path)
        with pytest.raises(InvalidPath):
            restore_from_image(diary, image_path)

    def test_restore_plain_image(self, tmp_path: Path):
        image_path = tmp_path / "photo.png"
        Image.new("RGBA", (8, 8), (1, 2, 3, 4)).save(image_path)
        with pytest.raises(NotABackupImage):
            restore_from_image(tmp_path / "restored", image_path)
