"""Configuration loading from environment variables and statdiary.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

_DEFAULT_HOME = Path.home() / ".statdiary"
_CONFIG_FILENAME = "statdiary.toml"


@dataclass
class BackupConfig:
    """Image backup settings."""

    compression: str = "lzma"
    image_path: Path = _DEFAULT_HOME / "backup.png"


@dataclass
class DiaryConfig:
    """Top-level stat-diary configuration."""

    db_path: Path = _DEFAULT_HOME / "db"
    legacy_path: Path | None = None
    backup: BackupConfig = field(default_factory=BackupConfig)
    log_level: str = "INFO"


def load_config(config_path: Path | None = None) -> DiaryConfig:
    """Load configuration from environment variables and optional statdiary.toml.

    Priority: environment variables > statdiary.toml > defaults.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text())
    else:
        for candidate in [Path.cwd() / _CONFIG_FILENAME, _DEFAULT_HOME / _CONFIG_FILENAME]:
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text())
                break

    backup_data = file_data.get("backup", {})
    legacy = os.getenv("STATDIARY_LEGACY", file_data.get("legacy_path"))

    compression = os.getenv(
        "STATDIARY_BACKUP_COMPRESSION", backup_data.get("compression", "lzma")
    )
    if compression not in ("stored", "deflated", "bzip2", "lzma"):
        raise ValueError(f"Unknown backup compression: {compression}")

    return DiaryConfig(
        db_path=Path(os.getenv("STATDIARY_DB", file_data.get("db_path", str(_DEFAULT_HOME / "db")))),
        legacy_path=Path(legacy) if legacy else None,
        backup=BackupConfig(
            compression=compression,
            image_path=Path(
                os.getenv(
                    "STATDIARY_BACKUP_IMAGE",
                    backup_data.get("image_path", str(_DEFAULT_HOME / "backup.png")),
                )
            ),
        ),
        log_level=os.getenv("STATDIARY_LOG_LEVEL", file_data.get("log_level", "INFO")),
    )
