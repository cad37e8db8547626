"""Tests for the command dispatcher."""

from __future__ import annotations

from pathlib import Path

import pytest

from statdiary.__main__ import run
from statdiary.config import DiaryConfig
from statdiary.store.tags import TagDictionary


@pytest.fixture
def diary(db_root: Path, make_day, write_tags) -> Path:
    write_tags("walk", "run", "swim")
    make_day(2024, 3, "1-5.dat", [(9, 80, 70, [0, 1]), (9, 60, 60, [1])])
    make_day(2024, 3, "4-1.dat", [(18, 70, 70, [1, 2])])
    return db_root


class TestCommands:
    def test_rebuild(self, diary: Path):
        assert run(["rebuild"], DiaryConfig(db_path=diary)) == 0
        assert (diary / "data" / "2024" / "year_cache.txt").exists()

    def test_rename(self, diary: Path):
        assert run(["rename", "run", "jog"], DiaryConfig(db_path=diary)) == 0
        assert "jog" in TagDictionary.load(diary)

    def test_usage_prints_names(self, diary: Path, capsys):
        assert run(["usage"], DiaryConfig(db_path=diary)) == 0
        out = capsys.readouterr().out
        assert out.splitlines()[0].split() == ["3", "run"]

    def test_unknown_command(self, diary: Path, capsys):
        assert run(["explode"], DiaryConfig(db_path=diary)) == -1
        assert "Usage" in capsys.readouterr().out

    def test_wrong_arity(self, diary: Path):
        assert run(["rename", "run"], DiaryConfig(db_path=diary)) == -1
