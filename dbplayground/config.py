"""Runtime configuration for playground workspaces."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


def _read_str_env(name: str, default: str) -> str:
    raw = os.getenv(name, "")
    return raw.strip() or default


@dataclass(frozen=True)
class PlaygroundConfig:
    data_dir: Path = Path("data")
    meta_db_path: Path = field(default=Path("data") / "meta.duckdb")
    database_prefix: str = "playground"

    @classmethod
    def for_directory(cls, data_dir: Path | str) -> "PlaygroundConfig":
        """Config rooted at one directory (meta db lives beside the databases)."""
        root = Path(data_dir)
        return cls(data_dir=root, meta_db_path=root / "meta.duckdb")

    @classmethod
    def from_env(cls) -> "PlaygroundConfig":
        data_dir = Path(_read_str_env("PLAYGROUND_DATA_DIR", "data"))
        meta_db_path = Path(
            _read_str_env("PLAYGROUND_META_DB", str(data_dir / "meta.duckdb"))
        )
        return cls(
            data_dir=data_dir,
            meta_db_path=meta_db_path,
        )

    def database_path(self, database_id: str) -> Path:
        return self.data_dir / f"{self.database_prefix}-{database_id}.duckdb"
