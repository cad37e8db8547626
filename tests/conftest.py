"""Shared fixtures for stat-diary tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from statdiary.store.entry import DataEntry, write_day_file


@pytest.fixture
def db_root(tmp_path: Path) -> Path:
    root = tmp_path / "db"
    root.mkdir()
    return root


@pytest.fixture
def make_day(db_root: Path):
    """Write a day file at data/<year>/<month>/<name> and return its path."""

    def _make(year: int, month: int | str, name: str, entries: list[tuple]) -> Path:
        path = db_root / "data" / str(year) / str(month) / name
        write_day_file(db_root, path, [DataEntry(h, m, p, list(t)) for h, m, p, t in entries])
        return path

    return _make


@pytest.fixture
def write_tags(db_root: Path):
    def _write(*names: str) -> None:
        lines = "".join(f"{i} {name}\n" for i, name in enumerate(names))
        (db_root / "tags.txt").write_text(lines, encoding="utf-8")

    return _write
