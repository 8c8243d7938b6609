from __future__ import annotations

import logging
from typing import Any, Iterable

from pydantic import ValidationError

from ..search.models import DirectoryStats, VendorRecord

logger = logging.getLogger(__name__)

MAPPING_FIELDS = ("sf_code", "sf_name", "tf_code", "tf_name", "business_line", "created_at")


def normalize_vendor_record(raw: Any) -> Any:
    """Fold a vendor record into ``{vendor_mapping: {...}, item_count}``.

    Nested records pass through with ``item_count`` defaulted. Flat legacy
    records (mapping fields on the record itself) are folded in. Anything
    else is returned unchanged, with a warning.
    """
    if isinstance(raw, VendorRecord):
        return raw
    if not isinstance(raw, dict):
        logger.warning("Unrecognized vendor record of type %s", type(raw).__name__)
        return raw

    if isinstance(raw.get("vendor_mapping"), dict):
        if raw.get("item_count") is None:
            return {**raw, "item_count": 0}
        return raw

    if any(f in raw for f in MAPPING_FIELDS[:4]):
        mapping = {f: raw[f] for f in MAPPING_FIELDS if raw.get(f) is not None}
        return {"vendor_mapping": mapping, "item_count": raw.get("item_count") or 0}

    logger.warning("Unrecognized vendor record shape: keys=%s", sorted(raw))
    return raw


def parse_vendors(raw_records: Iterable[Any]) -> list[VendorRecord]:
    """Validate data-source vendor records, skipping the malformed ones."""
    vendors: list[VendorRecord] = []
    for raw in raw_records or []:
        record = normalize_vendor_record(raw)
        if isinstance(record, VendorRecord):
            vendors.append(record)
            continue
        if not isinstance(record, dict) or "vendor_mapping" not in record:
            logger.warning("Skipping vendor record: %r", raw)
            continue
        try:
            vendors.append(VendorRecord.model_validate(record))
        except ValidationError as exc:
            logger.warning("Skipping malformed vendor record %r: %s", raw, exc.errors()[0]["msg"])
    return vendors


def vendor_directory_stats(vendors: list[VendorRecord]) -> DirectoryStats:
    return DirectoryStats(
        total_vendors=len(vendors),
        total_items=sum(v.item_count for v in vendors),
        unique_sf_vendors=len({v.vendor_mapping.sf_code for v in vendors if v.vendor_mapping.sf_code}),
        unique_tf_vendors=len({v.vendor_mapping.tf_code for v in vendors if v.vendor_mapping.tf_code}),
    )


def find_vendor(vendors: list[VendorRecord], platform: str, vendor_code: str) -> VendorRecord | None:
    """Directory entry listing *vendor_code* on *platform*, if any."""
    field = "sf_code" if platform == "snappfood" else "tf_code"
    return next((v for v in vendors if getattr(v.vendor_mapping, field) == vendor_code), None)
