"""Tests for the tag dictionary."""

from __future__ import annotations

from pathlib import Path

import pytest

from statdiary.errors import (
    CorruptedTagsFile,
    InvalidTagName,
    TagAlreadyExists,
    UnknownId,
    UnknownTag,
)
from statdiary.store.tags import TagDictionary


@pytest.fixture
def tags(db_root: Path, write_tags) -> TagDictionary:
    write_tags("walk", "run", "swim")
    return TagDictionary.load(db_root)


class TestLoad:
    def test_lookup_both_ways(self, tags: TagDictionary):
        assert tags.get_id("run") == 1
        assert tags.get_name(2) == "swim"
        assert len(tags) == 3

    def test_missing_file_is_empty(self, db_root: Path):
        assert len(TagDictionary.load(db_root)) == 0

    def test_names_are_unique(self, tags: TagDictionary):
        names = [name for _, name in tags.items()]
        assert len(names) == len(set(names))

    @pytest.mark.parametrize(
        "content",
        [
            "0 walk\n0 run\n",
            "0 walk\n1 walk\n",
            "65535 walk\n",
            "70000 walk\n",
            "x walk\n",
            "0\n",
            "0 two words\n",
        ],
    )
    def test_corrupted(self, db_root: Path, content: str):
        (db_root / "tags.txt").write_text(content, encoding="utf-8")
        with pytest.raises(CorruptedTagsFile):
            TagDictionary.load(db_root)

    def test_unknown_lookups(self, tags: TagDictionary):
        with pytest.raises(UnknownTag):
            tags.get_id("fly")
        with pytest.raises(UnknownId):
            tags.get_name(42)


class TestRename:
    def test_rename_keeps_id(self, tags: TagDictionary):
        before = tags.get_id("run")
        tags.rename("run", "jog")
        assert tags.get_id("jog") == before
        assert tags.get_name(before) == "jog"
        with pytest.raises(UnknownTag):
            tags.get_id("run")

    def test_collision_leaves_dictionary_unchanged(self, tags: TagDictionary):
        before = tags.items()
        with pytest.raises(TagAlreadyExists):
            tags.rename("run", "swim")
        assert tags.items() == before

    def test_unknown_old(self, tags: TagDictionary):
        with pytest.raises(UnknownTag):
            tags.rename("fly", "soar")

    def test_rename_to_itself(self, tags: TagDictionary):
        tags.rename("run", "run")
        assert tags.get_id("run") == 1

    @pytest.mark.parametrize("name", ["", "two words"])
    def test_invalid_new_name(self, tags: TagDictionary, name: str):
        with pytest.raises(InvalidTagName):
            tags.rename("run", name)


class TestInsertRemove:
    def test_insert_next_id(self, tags: TagDictionary):
        assert tags.insert("fly") == 3
        assert tags.insert("fly") == 3

    def test_insert_into_empty(self):
        assert TagDictionary().insert("first") == 0

    def test_insert_after_highest_id(self):
        tags = TagDictionary()
        tags.insert("a")
        tags.insert("b")
        tags.remove("a")
        assert tags.insert("c") == 2

    def test_remove(self, tags: TagDictionary):
        assert tags.remove("walk") == 0
        assert "walk" not in tags
        with pytest.raises(UnknownId):
            tags.get_name(0)


class TestSave:
    def test_save_sorted_by_id(self, db_root: Path, tags: TagDictionary):
        tags.rename("walk", "stroll")
        tags.save(db_root)
        content = (db_root / "tags.txt").read_text(encoding="utf-8")
        assert content == "0 stroll\n1 run\n2 swim\n"

    def test_save_then_load(self, db_root: Path, tags: TagDictionary):
        tags.insert("fly")
        tags.save(db_root)
        assert TagDictionary.load(db_root).items() == tags.items()
