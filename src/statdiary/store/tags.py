"""Tag dictionary — the bijection between tag ids and tag names.

Persisted as ``tags.txt`` at the database root, one ``"<id> <name>"`` line
per tag. Both directions are held in memory and only ever mutated together.
"""

from __future__ import annotations

import logging
from pathlib import Path

from statdiary.errors import (
    CorruptedTagsFile,
    InvalidTagName,
    TagAlreadyExists,
    TagLimitReached,
    UnknownId,
    UnknownTag,
)
from statdiary.store.entry import MAX_TAG_ID
from statdiary.store.files import TAGS_FILENAME, staging_dir_for, write_text_atomic

logger = logging.getLogger(__name__)


def is_valid_name(name: str) -> bool:
    return bool(name) and not any(ch.isspace() for ch in name)


class TagDictionary:
    """Bidirectional id <-> name map with consistent dual updates."""

    def __init__(self) -> None:
        self._names: dict[int, str] = {}
        self._ids: dict[str, int] = {}

    # ── Persistence ───────────────────────────────────────────

    @classmethod
    def load(cls, root: Path) -> TagDictionary:
        """Read ``tags.txt``. A missing file is an empty dictionary."""
        tags = cls()
        path = Path(root) / TAGS_FILENAME
        if not path.exists():
            logger.debug("No tags file at %s, starting empty", path)
            return tags

        for lineno, line in enumerate(path.read_text(encoding="utf-8").splitlines(), 1):
            if not line.strip():
                continue
            parts = line.split(" ")
            if (
                len(parts) != 2
                or not (parts[0].isascii() and parts[0].isdigit())
                or not is_valid_name(parts[1])
            ):
                raise CorruptedTagsFile(f"Malformed line {lineno} in {path}: {line!r}")
            tag_id, name = int(parts[0]), parts[1]
            if tag_id > MAX_TAG_ID:
                raise CorruptedTagsFile(f"Tag id out of range on line {lineno}: {tag_id}")
            if tag_id in tags._names:
                raise CorruptedTagsFile(f"Duplicate tag id {tag_id} on line {lineno}")
            if name in tags._ids:
                raise CorruptedTagsFile(f"Duplicate tag name {name!r} on line {lineno}")
            tags._bind(tag_id, name)
        return tags

    def save(self, root: Path) -> None:
        """Rewrite the whole tags file, ordered by id."""
        lines = [f"{tag_id} {name}\n" for tag_id, name in sorted(self._names.items())]
        write_text_atomic(Path(root) / TAGS_FILENAME, "".join(lines), staging_dir_for(root))
        logger.debug("Saved %d tags to %s", len(lines), root)

    # ── Lookup ────────────────────────────────────────────────

    def get_id(self, name: str) -> int:
        try:
            return self._ids[name]
        except KeyError:
            raise UnknownTag(name) from None

    def get_name(self, tag_id: int) -> str:
        try:
            return self._names[tag_id]
        except KeyError:
            raise UnknownId(tag_id) from None

    def __contains__(self, name: object) -> bool:
        return name in self._ids

    def __len__(self) -> int:
        return len(self._names)

    def items(self) -> list[tuple[int, str]]:
        return sorted(self._names.items())

    # ── Mutation ──────────────────────────────────────────────

    def _bind(self, tag_id: int, name: str) -> None:
        self._names[tag_id] = name
        self._ids[name] = tag_id

    def insert(self, name: str) -> int:
        """Return the id for ``name``, binding the next free id if unseen."""
        if name in self._ids:
            return self._ids[name]
        if not is_valid_name(name):
            raise InvalidTagName(name)
        tag_id = max(self._names, default=-1) + 1
        if tag_id > MAX_TAG_ID:
            free = set(range(MAX_TAG_ID + 1)) - self._names.keys()
            if not free:
                raise TagLimitReached(f"No free tag id left for {name!r}")
            tag_id = min(free)
        self._bind(tag_id, name)
        return tag_id

    def rename(self, old: str, new: str) -> None:
        if old == new and old in self._ids:
            return
        if not is_valid_name(new):
            raise InvalidTagName(new)
        if new in self._ids:
            raise TagAlreadyExists(new)
        tag_id = self.get_id(old)
        del self._ids[old]
        self._bind(tag_id, new)

    def remove(self, name: str) -> int:
        tag_id = self.get_id(name)
        del self._ids[name]
        del self._names[tag_id]
        return tag_id
