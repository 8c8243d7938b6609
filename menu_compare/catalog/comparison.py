from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from pydantic import ValidationError

from ..search.models import ComparisonRecord, Product

logger = logging.getLogger(__name__)

PLATFORMS = ("snappfood", "tapsifood")


def _to_product(raw: Any) -> Product | None:
    if isinstance(raw, Product):
        return raw
    try:
        return Product.model_validate(raw)
    except ValidationError as exc:
        logger.warning("Skipping malformed product %r: %s", raw, exc.errors()[0]["msg"])
        return None


def build_comparisons(
    base_products: Mapping[Any, Any],
    counterpart_products: Mapping[Any, Any],
    item_mappings: Mapping[Any, Any],
) -> dict[str, ComparisonRecord]:
    """Pair every mapped base item with its counterpart.

    Items without a mapping, whose counterpart is missing, or whose base price
    is zero are left out. Keys are compared as strings, since ids arrive as
    ints from one platform and as JSON object keys from the other.
    """
    counterparts = {str(k): v for k, v in counterpart_products.items()}
    mappings = {str(k): str(v) for k, v in item_mappings.items() if v is not None}

    results: dict[str, ComparisonRecord] = {}
    found = 0
    for base_id, raw_base in base_products.items():
        counterpart_id = mappings.get(str(base_id))
        if not counterpart_id:
            continue
        found += 1
        if counterpart_id not in counterparts:
            continue

        base = _to_product(raw_base)
        counterpart = _to_product(counterparts[counterpart_id])
        if base is None or counterpart is None or base.price <= 0:
            continue
        results[str(base_id)] = ComparisonRecord.from_products(base, counterpart)

    logger.info(
        "Found %d mappings for %d base items, built %d comparisons",
        found, len(base_products), len(results),
    )
    return results


def compare_platforms(
    sf_products: Mapping[Any, Any],
    tf_products: Mapping[Any, Any],
    source_platform: str,
    item_mappings: Mapping[Any, Any],
) -> dict[str, ComparisonRecord]:
    """Compare from the point of view of the platform the user is browsing."""
    if source_platform not in PLATFORMS:
        raise ValueError(f"Unknown platform: {source_platform}")
    if source_platform == "snappfood":
        return build_comparisons(sf_products, tf_products, item_mappings)
    return build_comparisons(tf_products, sf_products, item_mappings)


def parse_comparisons(raw: Mapping[Any, Any] | Iterable[Any] | None) -> list[ComparisonRecord]:
    """Validate comparison records from the data source, skipping malformed ones.

    Accepts the ``{product_id: record}`` mapping the data source returns, or a
    plain list. Mapping order is kept.
    """
    if not raw:
        return []
    items = raw.values() if isinstance(raw, Mapping) else raw

    records: list[ComparisonRecord] = []
    for item in items:
        if isinstance(item, ComparisonRecord):
            records.append(item)
            continue
        try:
            records.append(ComparisonRecord.model_validate(item))
        except ValidationError as exc:
            logger.warning("Skipping malformed comparison %r: %s", item, exc.errors()[0]["msg"])
    return records
