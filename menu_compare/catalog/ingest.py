"""
Build the canonical vendor directory CSV from a data-source export.

Usage:
    python -m menu_compare.catalog.ingest path/to/vendors.json
"""
from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import List

import pandas as pd

from ..logging_setup import setup_logging
from .config import DEFAULT_CATALOG_CONFIG, CatalogConfig
from .vendors import MAPPING_FIELDS

logger = logging.getLogger(__name__)

CANONICAL_COLUMNS: List[str] = [*MAPPING_FIELDS, "item_count"]

# Column names seen in exports, nested (json_normalize) and flat.
_COLUMN_ALIASES = {
    "sf_code": ["vendor_mapping.sf_code", "sf_code", "sf_vendor_code", "snappfood_code"],
    "sf_name": ["vendor_mapping.sf_name", "sf_name", "sf_vendor_name", "snappfood_name"],
    "tf_code": ["vendor_mapping.tf_code", "tf_code", "tf_vendor_code", "tapsifood_code"],
    "tf_name": ["vendor_mapping.tf_name", "tf_name", "tf_vendor_name", "tapsifood_name"],
    "business_line": ["vendor_mapping.business_line", "business_line"],
    "created_at": ["vendor_mapping.created_at", "created_at"],
    "item_count": ["item_count", "items", "mapped_items"],
}


def run_ingestion(source: Path, config: CatalogConfig = DEFAULT_CATALOG_CONFIG) -> Path:
    """
    Normalize a JSON vendor export and write the canonical CSV.

    Records without a code on both platforms are dropped.
    """
    config.processed_data_dir.mkdir(parents=True, exist_ok=True)

    with open(source, encoding="utf-8") as fh:
        raw = json.load(fh)
    if isinstance(raw, dict):
        raw = raw.get("vendors") or raw.get("data") or []

    df = pd.json_normalize(raw)

    def _coalesce(columns: List[str]) -> pd.Series | None:
        # Mixed exports carry a field under different names per record.
        present = [col for col in columns if col in df.columns]
        if not present:
            return None
        series = df[present[0]]
        for col in present[1:]:
            series = series.combine_first(df[col])
        return series

    canonical = pd.DataFrame(index=df.index)
    for column, aliases in _COLUMN_ALIASES.items():
        values = _coalesce(aliases)
        if values is None:
            canonical[column] = 0 if column == "item_count" else ""
        elif column == "item_count":
            canonical[column] = pd.to_numeric(values, errors="coerce").fillna(0).astype(int)
        else:
            canonical[column] = values.fillna("").astype(str).str.strip()

    paired = (canonical["sf_code"] != "") & (canonical["tf_code"] != "")
    dropped = int((~paired).sum())
    if dropped:
        logger.warning("Dropping %d vendors without codes on both platforms", dropped)
    canonical = canonical.loc[paired, CANONICAL_COLUMNS]

    output_path = config.vendors_path
    canonical.to_csv(output_path, index=False)
    logger.info("Wrote %d vendors to %s", len(canonical), output_path)
    return output_path


if __name__ == "__main__":
    setup_logging()
    if len(sys.argv) != 2:
        print("usage: python -m menu_compare.catalog.ingest <export.json>")
        sys.exit(2)
    path = run_ingestion(Path(sys.argv[1]))
    print(f"Ingestion complete. Vendor directory saved to: {path}")
