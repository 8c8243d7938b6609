from __future__ import annotations

import logging
from typing import Callable, TypeVar

from .config import DEFAULT_SEARCH_CONFIG, SearchConfig
from .models import Category, ComparisonRecord, SortKey, VendorRecord
from .text import collation_key

logger = logging.getLogger(__name__)

Record = TypeVar("Record", ComparisonRecord, VendorRecord)


def _as_value(key: str | Category | SortKey | None) -> str | None:
    return key.value if isinstance(key, (Category, SortKey)) else key


def apply_category_filter(
    records: list[Record],
    category: str | Category | None,
    has_product_data: bool,
    *,
    max_price: int | None = None,
    is_favorite: Callable[[str], bool] | None = None,
    config: SearchConfig = DEFAULT_SEARCH_CONFIG,
) -> list[Record]:
    """Keep the records matching *category*.

    Price categories only apply to comparison records. On vendor data only
    ``favorites`` filters, on either platform's restaurant name. Unknown
    categories pass everything through.
    """
    category = _as_value(category)

    if category == Category.favorites.value:
        if is_favorite is None:
            return []
        if has_product_data:
            return [r for r in records if is_favorite(r.base_product.name)]
        return [
            r for r in records
            if is_favorite(r.vendor_mapping.sf_name) or is_favorite(r.vendor_mapping.tf_name)
        ]

    if not has_product_data:
        return records

    if category == Category.tf_cheaper.value:
        return [r for r in records if r.price_diff > 0]
    if category == Category.sf_cheaper.value:
        return [r for r in records if r.price_diff < 0]
    if category == Category.same_price.value:
        return [r for r in records if r.price_diff == 0]
    if category == Category.high_savings.value:
        filtered = [r for r in records if abs(r.price_diff) > config.high_savings_threshold]
        if max_price:
            filtered = [r for r in filtered if r.base_product.price <= max_price]
        return filtered

    if category not in (None, Category.all.value):
        logger.debug("Unknown category %r, not filtering", category)
    return records


def _stable_sort(records: list[Record], key: Callable, descending: bool = False) -> list[Record]:
    # reverse=True keeps equal elements in their original order.
    return sorted(records, key=key, reverse=descending)


def apply_sort(
    records: list[Record],
    sort_key: str | SortKey | None,
    has_product_data: bool,
) -> list[Record]:
    """Return *records* ordered by *sort_key*; relevance and unknown keys keep order."""
    sort_key = _as_value(sort_key)

    if not has_product_data:
        if sort_key == SortKey.name_asc.value:
            return _stable_sort(records, lambda r: collation_key(r.vendor_mapping.sf_name))
        if sort_key == SortKey.name_desc.value:
            return _stable_sort(records, lambda r: collation_key(r.vendor_mapping.sf_name), descending=True)
        return records

    if sort_key == SortKey.price_asc.value:
        return _stable_sort(records, lambda r: r.base_product.price)
    if sort_key == SortKey.price_desc.value:
        return _stable_sort(records, lambda r: r.base_product.price, descending=True)
    if sort_key == SortKey.savings_desc.value:
        return _stable_sort(records, lambda r: abs(r.price_diff), descending=True)
    if sort_key == SortKey.percent_desc.value:
        return _stable_sort(records, lambda r: r.percent_diff, descending=True)
    if sort_key == SortKey.name_asc.value:
        return _stable_sort(records, lambda r: collation_key(r.base_product.name))
    if sort_key == SortKey.name_desc.value:
        return _stable_sort(records, lambda r: collation_key(r.base_product.name), descending=True)

    if sort_key not in (None, SortKey.relevance.value):
        logger.debug("Unknown sort key %r, keeping order", sort_key)
    return records
