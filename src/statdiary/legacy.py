"""Import of the legacy plain-text diary into the binary format.

Legacy databases hold one text file per day under ``<legacy>/<year>/<month>/``,
named ``<day-of-month>-<WeekdayName>`` (an optional ``.txt`` suffix is
accepted). Each line is one entry::

    <ignored>|<hour>:<ignored>|<mental>,<ignored>|<physical>,<ignored>|<tag> <tag> ...
"""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

from statdiary.errors import FormatError, FoundUnknownFile, FoundUnknownFolder
from statdiary.store.cache import rebuild_caches
from statdiary.store.entry import DataEntry, day_file_path, write_day_file
from statdiary.store.files import (
    check_root,
    list_sorted,
    parse_month_folder,
    parse_year_folder,
)
from statdiary.store.status import ActiveTask, TaskLedger
from statdiary.store.tags import TagDictionary

logger = logging.getLogger(__name__)

WEEKDAYS = {
    name: number
    for number, name in enumerate(
        ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"], 1
    )
}


def parse_legacy_name(path: Path) -> tuple[int, int]:
    """Return ``(day_of_month, iso_weekday)`` from a legacy file name."""
    stem = path.name[:-4] if path.name.endswith(".txt") else path.name
    day, sep, weekday = stem.partition("-")
    if not sep or not (day.isascii() and day.isdigit()) or weekday.lower() not in WEEKDAYS:
        raise FormatError(f"Invalid legacy file name: {path}")
    return int(day), WEEKDAYS[weekday.lower()]


def _leading_int(field: str, stop: str) -> int:
    return int(field.split(stop, 1)[0].strip())


def parse_legacy_line(line: str, tags: TagDictionary) -> DataEntry:
    """Parse one legacy line, binding any new tag names in ``tags``."""
    parts = line.split("|")
    if len(parts) != 5:
        raise ValueError(f"expected 5 fields, got {len(parts)}")
    entry = DataEntry(
        hour=_leading_int(parts[1], ":"),
        mental_score=_leading_int(parts[2], ","),
        physical_score=_leading_int(parts[3], ","),
        tags=[tags.insert(name) for name in parts[4].split()],
    )
    entry.validate()
    return entry


def read_legacy_file(path: Path, tags: TagDictionary) -> list[DataEntry]:
    entries = []
    for lineno, line in enumerate(path.read_text(encoding="utf-8").splitlines(), 1):
        if not line.strip():
            continue
        try:
            entries.append(parse_legacy_line(line, tags))
        except ValueError as e:
            raise FormatError(f"{path}:{lineno}: {e}") from e
    return entries


def migrate_legacy_database(legacy_root: Path, db_root: Path) -> int:
    """Convert a legacy text database into ``db_root``.

    Every legacy file is parsed before anything is written. Unseen tag names
    are added to the existing dictionary, which is saved before the day files
    so a day file never refers to an id missing from ``tags.txt``. Day files
    replace any earlier import of the same day, then all caches are rebuilt.
    Returns the number of day files written.
    """
    legacy_root = check_root(legacy_root)
    db_root = Path(db_root)
    db_root.mkdir(parents=True, exist_ok=True)

    with TaskLedger.activate(db_root, ActiveTask.none()):
        tags = TagDictionary.load(db_root)
        logger.info("Migrating legacy database %s into %s", legacy_root, db_root)
        days = []
        for year_folder in list_sorted(legacy_root):
            if not year_folder.is_dir():
                raise FoundUnknownFile(year_folder)
            year = parse_year_folder(year_folder)
            for month_folder in list_sorted(year_folder):
                if not month_folder.is_dir():
                    raise FoundUnknownFile(month_folder)
                month = parse_month_folder(month_folder)
                for legacy_file in list_sorted(month_folder):
                    if legacy_file.is_dir():
                        raise FoundUnknownFolder(legacy_file)
                    parsed = _read_day(legacy_file, year, month, tags)
                    if parsed is not None:
                        days.append(parsed)

        tags.save(db_root)
        for day, entries in days:
            write_day_file(db_root, day_file_path(db_root, day), entries)
        rebuild_caches(db_root)
    logger.info("Migrated %d day files, %d tags", len(days), len(tags))
    return len(days)


def _read_day(
    legacy_file: Path, year: int, month: int, tags: TagDictionary
) -> tuple[date, list[DataEntry]] | None:
    day_of_month, weekday = parse_legacy_name(legacy_file)
    try:
        day = date(year, month, day_of_month)
    except ValueError as e:
        raise FormatError(f"Invalid date for {legacy_file}: {e}") from e
    if day.isoweekday() != weekday:
        logger.warning("%s names the wrong weekday; using the calendar's", legacy_file)

    entries = read_legacy_file(legacy_file, tags)
    if not entries:
        logger.warning("Skipping empty legacy file %s", legacy_file)
        return None
    logger.debug("Parsed %s (%d entries)", legacy_file, len(entries))
    return day, entries
