"""Task/status ledger — the single-writer lock guarding a database.

The ledger is one file, ``root/.status.txt``. Its absence means the database
is idle; its presence names the maintenance task in flight::

    <task_id>|<arg1> <arg2>

Acquisition is an exclusive create, so two processes can never both hold it.
A crash leaves the file behind, and its content is enough to redo the task
from scratch (see ``statdiary.maintenance.resume``).
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from pathlib import Path

from statdiary.errors import DatabaseBusy, FormatError
from statdiary.store.files import STATUS_FILENAME, check_root

logger = logging.getLogger(__name__)


class TaskKind(enum.IntEnum):
    NONE = 0
    REBUILD_CACHES = 1
    MERGE_TAGS = 2
    RENAME_TAG = 3


_ARG_COUNT = {
    TaskKind.NONE: 0,
    TaskKind.REBUILD_CACHES: 0,
    TaskKind.MERGE_TAGS: 2,
    TaskKind.RENAME_TAG: 2,
}


@dataclass(frozen=True)
class ActiveTask:
    """Descriptor of a maintenance task, stored in the status file."""

    kind: TaskKind
    args: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if len(self.args) != _ARG_COUNT[self.kind]:
            raise ValueError(f"{self.kind.name} takes {_ARG_COUNT[self.kind]} arguments")

    @classmethod
    def none(cls) -> ActiveTask:
        return cls(TaskKind.NONE)

    @classmethod
    def rebuild_caches(cls) -> ActiveTask:
        return cls(TaskKind.REBUILD_CACHES)

    @classmethod
    def merge_tags(cls, tag_a: str, tag_b: str) -> ActiveTask:
        return cls(TaskKind.MERGE_TAGS, (tag_a, tag_b))

    @classmethod
    def rename_tag(cls, old: str, new: str) -> ActiveTask:
        return cls(TaskKind.RENAME_TAG, (old, new))

    def to_data_string(self) -> str:
        return f"{int(self.kind)}|{' '.join(self.args)}"

    @classmethod
    def parse(cls, data: str) -> ActiveTask:
        """Parse status file content. Empty content is a stale ``NONE`` marker."""
        data = data.strip()
        if not data:
            return cls.none()
        task_id, sep, rest = data.partition("|")
        try:
            kind = TaskKind(int(task_id))
        except ValueError:
            raise FormatError(f"Unknown task in status file: {data!r}") from None
        args = tuple(rest.split())
        if not sep or len(args) != _ARG_COUNT[kind]:
            raise FormatError(f"Malformed {kind.name} task in status file: {data!r}")
        return cls(kind, args)

    def __str__(self) -> str:
        if self.args:
            return f"{self.kind.name.lower()}({', '.join(self.args)})"
        return self.kind.name.lower()


class TaskLedger:
    """A held status file. Release it with ``deactivate()`` or a ``with`` block."""

    def __init__(self, status_path: Path, task: ActiveTask) -> None:
        self.status_path = status_path
        self.task = task

    @classmethod
    def activate(cls, root: Path, task: ActiveTask) -> TaskLedger:
        """Claim the database for ``task``.

        Raises DatabaseBusy carrying the recorded task and a ledger bound to
        it when another task already holds the database.
        """
        root = check_root(root)
        status_path = root / STATUS_FILENAME
        try:
            with status_path.open("x", encoding="utf-8") as f:
                f.write(task.to_data_string())
        except FileExistsError:
            existing = ActiveTask.parse(status_path.read_text(encoding="utf-8"))
            logger.info("Database %s busy with %s", root, existing)
            raise DatabaseBusy(existing, cls(status_path, existing)) from None
        logger.debug("Ledger activated for %s at %s", task, root)
        return cls(status_path, task)

    def deactivate(self) -> None:
        self.status_path.unlink(missing_ok=True)
        logger.debug("Ledger released (%s)", self.task)

    def __enter__(self) -> TaskLedger:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.deactivate()

    def __repr__(self) -> str:
        return f"TaskLedger({self.status_path}, {self.task})"


def read_status(root: Path) -> ActiveTask | None:
    """Return the recorded task, or None when the database is idle."""
    status_path = Path(root) / STATUS_FILENAME
    if not status_path.exists():
        return None
    return ActiveTask.parse(status_path.read_text(encoding="utf-8"))
