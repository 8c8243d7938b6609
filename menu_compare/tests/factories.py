from __future__ import annotations

from menu_compare.search.models import ComparisonRecord, Product, VendorMapping, VendorRecord


def make_comparison(name: str, base_price: int, counterpart_price: int) -> ComparisonRecord:
    return ComparisonRecord.from_products(
        Product(name=name, price=base_price),
        Product(name=name, price=counterpart_price),
    )


def make_vendor(sf_name: str, tf_name: str = "", sf_code: str = "", tf_code: str = "", items: int = 0) -> VendorRecord:
    return VendorRecord(
        vendor_mapping=VendorMapping(sf_code=sf_code, sf_name=sf_name, tf_code=tf_code, tf_name=tf_name),
        item_count=items,
    )
