from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class StorageConfig:
    root_dir: Path = Path(os.getenv("MENU_COMPARE_DATA_DIR", "menu_compare/data/users"))
    key_prefix: str = os.getenv("MENU_COMPARE_KEY_PREFIX", "spVsTp")
    history_key: str = "SearchHistory"
    favorites_key: str = "Favorites"
    stats_key: str = "SearchStats"

    def key(self, name: str) -> str:
        return f"{self.key_prefix}{name}"


DEFAULT_STORAGE_CONFIG = StorageConfig()
