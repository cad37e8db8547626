"""Entry point: python -m statdiary <command> [args]

Commands run against the database at ``db_path`` from the configuration and
exit with the status code of the matching ``statdiary.api`` call.
"""

from __future__ import annotations

import logging
import sys

from statdiary import api
from statdiary.config import DiaryConfig, load_config

USAGE = """\
Usage: python -m statdiary <command> [args]
  rebuild            Regenerate all month and year caches
  resume             Finish a task interrupted by a crash
  rename OLD NEW     Rename a tag
  merge A B          Merge two tags into the more used one
  migrate [LEGACY]   Import a legacy text database
  backup [IMAGE]     Pack the database into a PNG image
  restore IMAGE      Unpack a PNG backup into the database path
  usage              Show the most used tags"""


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _print_usage(config: DiaryConfig, limit: int = 20) -> int:
    from statdiary.errors import DiaryError, UnknownId
    from statdiary.store.tags import TagDictionary
    from statdiary.store.usage import count_tag_usage

    try:
        tags = TagDictionary.load(config.db_path)
        usage = count_tag_usage(config.db_path)
    except DiaryError as e:
        print(e, file=sys.stderr)
        return e.code
    for tag_id, count in usage.most_common(limit):
        try:
            name = tags.get_name(tag_id)
        except UnknownId:
            name = f"#{tag_id}"
        print(f"{count:6d}  {name}")
    return 0


def run(argv: list[str], config: DiaryConfig) -> int:
    cmd, args = argv[0], argv[1:]
    db = config.db_path

    if cmd == "rebuild" and not args:
        return api.regenerate_caches(db)
    if cmd == "resume" and not args:
        return api.resume_task(db)
    if cmd == "rename" and len(args) == 2:
        return api.rename_tag(db, *args)
    if cmd == "merge" and len(args) == 2:
        return api.merge_tags(db, *args)
    if cmd == "migrate" and len(args) <= 1:
        return api.migrate_legacy_database(args[0] if args else config.legacy_path, db)
    if cmd == "backup" and len(args) <= 1:
        image = args[0] if args else config.backup.image_path
        return api.compress_db_to_image(db, image, config.backup.compression)
    if cmd == "restore" and len(args) == 1:
        return api.restore_db_from_image(db, args[0])
    if cmd == "usage" and not args:
        return _print_usage(config)

    print(USAGE)
    return api.INVALID_ARGUMENT


def main() -> None:
    if len(sys.argv) < 2:
        print(USAGE)
        sys.exit(1)

    config = load_config()
    _setup_logging(config.log_level)
    sys.exit(run(sys.argv[1:], config))


if __name__ == "__main__":
    main()
