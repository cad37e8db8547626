"""Tag usage counts across the whole diary, by hour and by weekday."""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from pathlib import Path

from statdiary.store.entry import read_day_file, weekday_from_name
from statdiary.store.files import DATA_DIRNAME, DAY_FILE_EXTENSION, check_root

logger = logging.getLogger(__name__)


@dataclass
class TagUsage:
    overall: Counter = field(default_factory=Counter)
    by_hour: defaultdict = field(default_factory=lambda: defaultdict(Counter))
    by_weekday_hour: defaultdict = field(default_factory=lambda: defaultdict(Counter))

    def add(self, tag_id: int, weekday: int, hour: int) -> None:
        self.overall[tag_id] += 1
        self.by_hour[hour][tag_id] += 1
        self.by_weekday_hour[(weekday, hour)][tag_id] += 1

    def most_common(self, n: int | None = None) -> list[tuple[int, int]]:
        return self.overall.most_common(n)


def count_tag_usage(root: Path) -> TagUsage:
    """Count every tag occurrence in every day file under ``root``."""
    root = check_root(root)
    usage = TagUsage()
    day_files = sorted((root / DATA_DIRNAME).glob(f"*/*/*.{DAY_FILE_EXTENSION}"))
    for day_file in day_files:
        weekday = weekday_from_name(day_file)
        for entry in read_day_file(day_file):
            for tag_id in entry.tags:
                usage.add(tag_id, weekday, entry.hour)
    logger.debug("Counted tag usage over %d day files", len(day_files))
    return usage
