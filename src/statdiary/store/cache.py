"""Cache rebuild pipeline — day overviews rolled up into month and year caches.

Layout under ``root/data``::

    <year>/year_cache.txt            "<month> | <avg_m> | <avg_p>" per month
    <year>/<month>/month_cache.txt   "<file> | <min_m> <max_m> <avg_m> | <min_p> <max_p> <avg_p> | <tag ids>"
    <year>/<month>/<day>-<wd>.dat    binary day files

Month and year averages are the unweighted mean of the daily averages: every
day counts once regardless of how many entries it holds.

A rebuild is full, never incremental. Each cache file is computed in memory
and swapped in atomically, so a failure mid-walk leaves the caches of
finished folders in place and never a half-written cache.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path

from statdiary.errors import (
    EmptyDayFile,
    EmptyMonthFolder,
    FormatError,
    FoundUnknownFile,
    FoundUnknownFolder,
)
from statdiary.store.entry import DataEntry, read_day_file
from statdiary.store.files import (
    DATA_DIRNAME,
    DAY_FILE_EXTENSION,
    MONTH_CACHE_FILENAME,
    YEAR_CACHE_FILENAME,
    check_root,
    list_sorted,
    parse_month_folder,
    parse_year_folder,
    staging_dir_for,
    write_text_atomic,
)

logger = logging.getLogger(__name__)

_SEP = " | "


@dataclass
class ScoreAverages:
    avg_mental: float
    avg_physical: float

    @classmethod
    def mean_of(cls, overviews: list[Overview]) -> ScoreAverages:
        count = len(overviews)
        return cls(
            avg_mental=sum(o.avg_mental for o in overviews) / count,
            avg_physical=sum(o.avg_physical for o in overviews) / count,
        )

    def to_data_str(self) -> str:
        return f"{self.avg_mental}{_SEP}{self.avg_physical}"


@dataclass
class Overview:
    """Per-day statistics."""

    min_mental: int
    max_mental: int
    avg_mental: float
    min_physical: int
    max_physical: int
    avg_physical: float
    tags: list[int] = field(default_factory=list)

    @classmethod
    def from_entries(cls, entries: list[DataEntry]) -> Overview:
        if not entries:
            raise ValueError("cannot summarize an empty day")
        mental = [e.mental_score for e in entries]
        physical = [e.physical_score for e in entries]
        tags: set[int] = set()
        for entry in entries:
            tags.update(entry.tags)
        return cls(
            min_mental=min(mental),
            max_mental=max(mental),
            avg_mental=sum(mental) / len(mental),
            min_physical=min(physical),
            max_physical=max(physical),
            avg_physical=sum(physical) / len(physical),
            tags=sorted(tags),
        )

    def to_data_str(self) -> str:
        return _SEP.join(
            [
                f"{self.min_mental} {self.max_mental} {self.avg_mental}",
                f"{self.min_physical} {self.max_physical} {self.avg_physical}",
                " ".join(str(t) for t in self.tags),
            ]
        )

    @classmethod
    def parse(cls, text: str) -> Overview:
        try:
            mental, physical, tags = text.split(_SEP)
            min_m, max_m, avg_m = mental.split(" ")
            min_p, max_p, avg_p = physical.split(" ")
            return cls(
                min_mental=int(min_m),
                max_mental=int(max_m),
                avg_mental=float(avg_m),
                min_physical=int(min_p),
                max_physical=int(max_p),
                avg_physical=float(avg_p),
                tags=[int(t) for t in tags.split()],
            )
        except ValueError as e:
            raise FormatError(f"Malformed overview {text!r}") from e


# ── Rebuild ───────────────────────────────────────────────────


def rebuild_caches(root: Path) -> int:
    """Regenerate every month and year cache under ``root``.

    Returns the number of day files read.
    """
    root = check_root(root)
    data_dir = root / DATA_DIRNAME
    if not data_dir.is_dir():
        logger.info("No data directory under %s, nothing to rebuild", root)
        return 0

    staging = staging_dir_for(root)
    day_count = 0
    logger.info("Rebuilding caches under %s", data_dir)
    for year_folder in list_sorted(data_dir):
        if not year_folder.is_dir():
            logger.warning("Unexpected file in data directory: %s", year_folder)
            raise FoundUnknownFile(year_folder)
        parse_year_folder(year_folder)
        day_count += _create_year_cache(year_folder, staging)
    logger.info("Rebuilt caches from %d day files", day_count)
    return day_count


def _create_year_cache(year_folder: Path, staging: Path) -> int:
    lines: list[str] = []
    day_count = 0
    for month_folder in list_sorted(year_folder):
        if month_folder.is_file():
            if month_folder.name == YEAR_CACHE_FILENAME:
                continue
            raise FoundUnknownFile(month_folder)
        month = parse_month_folder(month_folder)
        averages, days = create_month_cache(month_folder, staging)
        day_count += days
        lines.append(f"{month}{_SEP}{averages.to_data_str()}\n")

    write_text_atomic(year_folder / YEAR_CACHE_FILENAME, "".join(lines), staging)
    logger.debug("Wrote year cache for %s (%d months)", year_folder.name, len(lines))
    return day_count


def create_month_cache(month_folder: Path, staging: Path) -> tuple[ScoreAverages, int]:
    """Write ``month_cache.txt`` for one month folder.

    Returns the month's averages and the number of day files summarized.
    An existing month cache is overwritten.
    """
    lines: list[str] = []
    overviews: list[Overview] = []
    for day_file in list_sorted(month_folder):
        if day_file.is_dir():
            raise FoundUnknownFolder(day_file)
        if day_file.name == MONTH_CACHE_FILENAME:
            continue
        if day_file.suffix != f".{DAY_FILE_EXTENSION}":
            raise FoundUnknownFile(day_file)

        entries = read_day_file(day_file)
        if not entries:
            raise EmptyDayFile(day_file)
        overview = Overview.from_entries(entries)
        overviews.append(overview)
        lines.append(f"{day_file.name}{_SEP}{overview.to_data_str()}\n")

    if not overviews:
        raise EmptyMonthFolder(month_folder)

    write_text_atomic(month_folder / MONTH_CACHE_FILENAME, "".join(lines), staging)
    return ScoreAverages.mean_of(overviews), len(overviews)


# ── Reading caches back ───────────────────────────────────────


def read_month_cache(path: Path) -> list[tuple[str, Overview]]:
    rows = []
    for line in path.read_text(encoding="utf-8").splitlines():
        if not line:
            continue
        name, sep, rest = line.partition(_SEP)
        if not sep:
            raise FormatError(f"Malformed month cache line in {path}: {line!r}")
        rows.append((name, Overview.parse(rest)))
    return rows


def read_year_cache(path: Path) -> list[tuple[int, ScoreAverages]]:
    rows = []
    for line in path.read_text(encoding="utf-8").splitlines():
        if not line:
            continue
        try:
            month, avg_m, avg_p = line.split(_SEP)
            rows.append((int(month), ScoreAverages(float(avg_m), float(avg_p))))
        except ValueError as e:
            raise FormatError(f"Malformed year cache line in {path}: {line!r}") from e
    return rows


def tag_frequencies(root: Path) -> Counter[int]:
    """Count, per tag id, the number of days it appears on in the month caches."""
    counts: Counter[int] = Counter()
    data_dir = Path(root) / DATA_DIRNAME
    if not data_dir.is_dir():
        return counts
    caches = sorted(data_dir.glob(f"*/*/{MONTH_CACHE_FILENAME}"))
    if not caches:
        logger.warning("No month caches under %s; tag frequencies are all zero", data_dir)
    for cache in caches:
        for _, overview in read_month_cache(cache):
            counts.update(overview.tags)
    return counts
