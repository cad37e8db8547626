"""Exception hierarchy for stat-diary.

Every error carries a stable integer ``code`` so the entry points in
``statdiary.api`` can hand a small status number back to callers.
Filesystem failures are not wrapped: they surface as ``OSError``.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from statdiary.store.status import ActiveTask, TaskLedger

IO_ERROR_CODE = 2


class DiaryError(Exception):
    """Base class for all stat-diary errors."""

    code = 100


class InvalidPath(DiaryError):
    """Database root missing or not a directory."""

    code = 1

    def __init__(self, path: Path | str, reason: str = "not a directory") -> None:
        self.path = Path(path)
        super().__init__(f"Invalid database path {self.path}: {reason}")


class FormatError(DiaryError):
    """A persisted structure (day file, status file, cache) is malformed."""

    code = 3


class CorruptedTagsFile(FormatError):
    code = 4


class StructuralAnomaly(DiaryError):
    """The data directory violates the closed-world layout."""

    code = 5

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        super().__init__(f"{message}: {path}")


class FoundUnknownFile(StructuralAnomaly):
    code = 6

    def __init__(self, path: Path) -> None:
        super().__init__(path, "Found unknown file")


class FoundUnknownFolder(StructuralAnomaly):
    code = 7

    def __init__(self, path: Path) -> None:
        super().__init__(path, "Found unknown folder")


class EmptyMonthFolder(StructuralAnomaly):
    code = 8

    def __init__(self, path: Path) -> None:
        super().__init__(path, "Month folder holds no day files")


class EmptyDayFile(DiaryError):
    code = 9

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Day file holds no entries: {path}")


class UnknownTag(DiaryError):
    code = 10

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown tag: {name!r}")


class UnknownId(DiaryError):
    code = 11

    def __init__(self, tag_id: int) -> None:
        self.tag_id = tag_id
        super().__init__(f"Unknown tag id: {tag_id}")


class TagAlreadyExists(DiaryError):
    code = 12

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Tag already exists: {name!r}")


class InvalidTagName(DiaryError):
    code = 13

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Invalid tag name: {name!r}")


class TagLimitReached(DiaryError):
    code = 14


class NotABackupImage(DiaryError):
    code = 15


class UnknownCompression(DiaryError):
    code = 16

    def __init__(self, method: str) -> None:
        self.method = method
        super().__init__(f"Unknown compression method: {method!r}")


class DatabaseBusy(DiaryError):
    """Another task holds the ledger.

    ``ledger`` is bound to the existing status file so the caller can resume
    the recorded task and release it afterwards.
    """

    code = -2

    def __init__(self, task: ActiveTask, ledger: TaskLedger) -> None:
        self.task = task
        self.ledger = ledger
        super().__init__(f"Database busy with task: {task}")
