from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class CatalogConfig:
    """
    Configuration for the vendor directory.
    """

    processed_data_dir: Path = Path(os.getenv("MENU_COMPARE_CATALOG_DIR", "menu_compare/data/processed"))
    vendors_filename: str = "vendors.csv"
    directory_ttl_seconds: int = int(os.getenv("MENU_COMPARE_DIRECTORY_TTL", "600"))

    @property
    def vendors_path(self) -> Path:
        return self.processed_data_dir / self.vendors_filename


DEFAULT_CATALOG_CONFIG = CatalogConfig()
