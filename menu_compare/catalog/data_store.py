from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from ..search.models import DirectoryStats, VendorRecord
from .cache import ExpiringCache
from .config import DEFAULT_CATALOG_CONFIG, CatalogConfig
from .vendors import parse_vendors, vendor_directory_stats

logger = logging.getLogger(__name__)

_directory_cache = ExpiringCache(ttl=DEFAULT_CATALOG_CONFIG.directory_ttl_seconds)


def _load(path: Path) -> list[VendorRecord]:
    if not path.exists():
        logger.warning("Vendor directory %s not found, using an empty directory", path)
        return []

    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    if "item_count" in df.columns:
        df["item_count"] = pd.to_numeric(df["item_count"], errors="coerce").fillna(0).astype(int)

    # Blank optional columns become missing fields rather than "".
    rows = []
    for row in df.to_dict(orient="records"):
        for col in ("business_line", "created_at"):
            if row.get(col) == "":
                row.pop(col)
        rows.append(row)

    vendors = parse_vendors(rows)
    logger.info("Loaded %d vendors from %s", len(vendors), path)
    return vendors


def get_vendor_directory(config: CatalogConfig = DEFAULT_CATALOG_CONFIG) -> list[VendorRecord]:
    """Return the vendor directory, reloading it once the cache entry expires."""
    params = {"source": "csv", "path": str(config.vendors_path)}
    cached = _directory_cache.get(params)
    if cached is not None:
        return cached
    vendors = _load(config.vendors_path)
    _directory_cache.set(params, vendors)
    return vendors


def get_directory_stats(config: CatalogConfig = DEFAULT_CATALOG_CONFIG) -> DirectoryStats:
    return vendor_directory_stats(get_vendor_directory(config))


def get_cache_stats() -> dict:
    _directory_cache.purge_expired()
    return _directory_cache.stats()


def clear_directory_cache() -> None:
    _directory_cache.clear()
