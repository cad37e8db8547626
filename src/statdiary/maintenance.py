"""Maintenance operations run under the task ledger.

Every operation claims the ledger before touching the database and releases
it when it finishes or fails with a handled error. Each one can be re-run
from scratch, which is what ``resume`` relies on after a crash:

- rebuild regenerates every cache from the day files;
- rename is a single dictionary save, so it either happened or it did not;
- merge rewrites day files one at a time, and replacing the losing tag in a
  file that no longer contains it changes nothing.
"""

from __future__ import annotations

import logging
from pathlib import Path

from statdiary.errors import DatabaseBusy, InvalidTagName, UnknownTag
from statdiary.store.cache import rebuild_caches, tag_frequencies
from statdiary.store.entry import DataEntry, read_day_file, write_day_file
from statdiary.store.files import DATA_DIRNAME, DAY_FILE_EXTENSION
from statdiary.store.status import ActiveTask, TaskKind, TaskLedger
from statdiary.store.tags import TagDictionary, is_valid_name

logger = logging.getLogger(__name__)


def _check_names(*names: str) -> None:
    for name in names:
        if not is_valid_name(name):
            raise InvalidTagName(name)


# ── Public operations ─────────────────────────────────────────


def rebuild_all_caches(root: Path) -> int:
    """Regenerate all month and year caches. Returns the day files read."""
    with TaskLedger.activate(root, ActiveTask.rebuild_caches()):
        return rebuild_caches(root)


def rename_tag(root: Path, old: str, new: str) -> None:
    _check_names(old, new)
    with TaskLedger.activate(root, ActiveTask.rename_tag(old, new)):
        _apply_rename(root, old, new)


def merge_tags(root: Path, tag_a: str, tag_b: str) -> str:
    """Fold the rarer of two tags into the more common one.

    Returns the name of the tag that survives.
    """
    _check_names(tag_a, tag_b)
    with TaskLedger.activate(root, ActiveTask.merge_tags(tag_a, tag_b)):
        return _apply_merge(root, tag_a, tag_b)


def resume(root: Path) -> ActiveTask | None:
    """Finish a task left behind by a crashed process.

    Returns the resumed task, or None if the database was idle. If the
    re-run fails the status file stays, so the task remains pending.
    """
    try:
        ledger = TaskLedger.activate(root, ActiveTask.none())
    except DatabaseBusy as busy:
        task, ledger = busy.task, busy.ledger
    else:
        ledger.deactivate()
        logger.info("Nothing to resume at %s", root)
        return None

    logger.info("Resuming %s at %s", task, root)
    if task.kind is TaskKind.REBUILD_CACHES:
        rebuild_caches(root)
    elif task.kind is TaskKind.RENAME_TAG:
        _resume_rename(root, *task.args)
    elif task.kind is TaskKind.MERGE_TAGS:
        _resume_merge(root, *task.args)
    ledger.deactivate()
    return task


# ── Rename ────────────────────────────────────────────────────


def _apply_rename(root: Path, old: str, new: str) -> None:
    tags = TagDictionary.load(root)
    tags.rename(old, new)
    tags.save(root)
    logger.info("Renamed tag %r to %r", old, new)


def _resume_rename(root: Path, old: str, new: str) -> None:
    tags = TagDictionary.load(root)
    if old not in tags and new in tags:
        logger.info("Rename %r -> %r already applied", old, new)
        return
    try:
        _apply_rename(root, old, new)
    except UnknownTag:
        logger.info("Tag %r already gone, treating rename as applied", old)


# ── Merge ─────────────────────────────────────────────────────


def choose_merge_winner(root: Path, tags: TagDictionary, tag_a: str, tag_b: str) -> tuple[str, str]:
    """Return ``(winner, loser)``; the tag seen on more days wins, ties keep ``tag_a``."""
    counts = tag_frequencies(root)
    freq_a = counts[tags.get_id(tag_a)]
    freq_b = counts[tags.get_id(tag_b)]
    logger.debug("Tag frequencies: %s=%d, %s=%d", tag_a, freq_a, tag_b, freq_b)
    if freq_b > freq_a:
        return tag_b, tag_a
    return tag_a, tag_b


def replace_tag(entries: list[DataEntry], loser: int, winner: int) -> bool:
    """Replace ``loser`` with ``winner`` in place, keeping one winner per entry.

    Returns True if anything changed.
    """
    changed = False
    for entry in entries:
        if loser not in entry.tags:
            continue
        new_tags: list[int] = []
        seen_winner = False
        for tag_id in entry.tags:
            if tag_id in (loser, winner):
                if seen_winner:
                    continue
                seen_winner = True
                tag_id = winner
            new_tags.append(tag_id)
        entry.tags = new_tags
        changed = True
    return changed


def _rewrite_day_files(root: Path, loser: int, winner: int) -> int:
    data_dir = Path(root) / DATA_DIRNAME
    rewritten = 0
    for day_file in sorted(data_dir.glob(f"*/*/*.{DAY_FILE_EXTENSION}")):
        entries = read_day_file(day_file)
        if replace_tag(entries, loser, winner):
            write_day_file(root, day_file, entries)
            rewritten += 1
            logger.debug("Rewrote %s", day_file)
    return rewritten


def _apply_merge(root: Path, tag_a: str, tag_b: str) -> str:
    tags = TagDictionary.load(root)
    if tag_a == tag_b:
        tags.get_id(tag_a)
        logger.info("Merging %r into itself, nothing to do", tag_a)
        return tag_a

    winner, loser = choose_merge_winner(root, tags, tag_a, tag_b)
    winner_id, loser_id = tags.get_id(winner), tags.get_id(loser)
    rewritten = _rewrite_day_files(root, loser_id, winner_id)

    tags.remove(loser)
    tags.save(root)
    rebuild_caches(root)
    logger.info("Merged tag %r into %r (%d day files rewritten)", loser, winner, rewritten)
    return winner


def _resume_merge(root: Path, tag_a: str, tag_b: str) -> None:
    try:
        _apply_merge(root, tag_a, tag_b)
    except UnknownTag as e:
        logger.info("Tag %r already merged away, refreshing caches", e.name)
        rebuild_caches(root)
