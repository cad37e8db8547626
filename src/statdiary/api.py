"""Status-code entry points for external callers.

Each function returns 0 on success, -1 for a missing or empty argument, -2
when another task holds the database, and the error's ``code`` (see
``statdiary.errors``) for any other handled failure.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from statdiary import backup, legacy, maintenance
from statdiary.errors import IO_ERROR_CODE, DiaryError

logger = logging.getLogger(__name__)

SUCCESS = 0
INVALID_ARGUMENT = -1


def _run(operation: str, fn: Callable[..., Any], *args: Any) -> int:
    if any(arg is None or str(arg) == "" for arg in args):
        logger.error("%s: missing argument", operation)
        return INVALID_ARGUMENT
    try:
        fn(*args)
    except DiaryError as e:
        logger.error("%s failed: %s", operation, e)
        return e.code
    except OSError as e:
        logger.error("%s failed with I/O error: %s", operation, e)
        return IO_ERROR_CODE
    return SUCCESS


def _path(value: str | Path | None) -> Path | None:
    if value is None or str(value) == "":
        return None
    return Path(value)


def compress_db_to_image(db_path: str | Path, image_path: str | Path, compression: str = "lzma") -> int:
    return _run(
        "compress_db_to_image",
        lambda db, img: backup.compress_to_image(db, img, compression),
        _path(db_path),
        _path(image_path),
    )


def restore_db_from_image(db_path: str | Path, image_path: str | Path) -> int:
    return _run("restore_db_from_image", backup.restore_from_image, _path(db_path), _path(image_path))


def regenerate_caches(db_path: str | Path) -> int:
    return _run("regenerate_caches", maintenance.rebuild_all_caches, _path(db_path))


def resume_task(db_path: str | Path) -> int:
    return _run("resume_task", maintenance.resume, _path(db_path))


def merge_tags(db_path: str | Path, tag_a: str, tag_b: str) -> int:
    return _run("merge_tags", maintenance.merge_tags, _path(db_path), tag_a, tag_b)


def rename_tag(db_path: str | Path, old: str, new: str) -> int:
    return _run("rename_tag", maintenance.rename_tag, _path(db_path), old, new)


def migrate_legacy_database(legacy_path: str | Path, db_path: str | Path) -> int:
    return _run(
        "migrate_legacy_database",
        legacy.migrate_legacy_database,
        _path(legacy_path),
        _path(db_path),
    )
