"""Where the conflict store lives."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

DEFAULT_DATA_DIR: Final[Path] = Path("~/.possync")
DEFAULT_DB_FILENAME: Final[str] = "conflicts.db"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path = DEFAULT_DATA_DIR
    database_filename: str = DEFAULT_DB_FILENAME

    def database_path(self, *, ensure: bool = True) -> Path:
        data_dir = self.data_dir.expanduser().resolve()
        if ensure:
            data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir / self.database_filename


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def get_storage_config() -> StorageConfig:
    env_dir = os.getenv("POSSYNC_DATA_DIR")
    return StorageConfig(data_dir=Path(env_dir)) if env_dir else StorageConfig()


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """``DATABASE_URI`` wins; otherwise a SQLite file under the data directory."""

    env_uri = os.getenv("DATABASE_URI")
    if env_uri:
        return DatabaseConfig(uri=env_uri)
    database_path = (storage or get_storage_config()).database_path()
    return DatabaseConfig(uri=f"sqlite+pysqlite:///{database_path}")
