from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from .formatting import js_round


class Category(str, Enum):
    all = "all"
    tf_cheaper = "tf-cheaper"
    sf_cheaper = "sf-cheaper"
    same_price = "same-price"
    high_savings = "high-savings"
    favorites = "favorites"


class SortKey(str, Enum):
    relevance = "relevance"
    price_asc = "price-asc"
    price_desc = "price-desc"
    savings_desc = "savings-desc"
    percent_desc = "percent-desc"
    name_asc = "name-asc"
    name_desc = "name-desc"


class Product(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str | int | None = None
    name: str = ""
    price: int = Field(default=0, ge=0, description="Final price in Toman")
    original_price: int | None = None
    discount: int | None = None
    discount_ratio: float | None = None


class ComparisonRecord(BaseModel):
    """A menu item on the base platform paired with its counterpart.

    ``price_diff`` is ``base - counterpart``: positive means the item is
    cheaper on the counterpart platform. The three flags are always derived
    from its sign.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    base_product: Product = Field(default_factory=Product)
    counterpart_product: Product = Field(default_factory=Product)
    price_diff: int = 0
    percent_diff: int = Field(default=0, ge=0, le=100)
    is_cheaper: bool = False
    is_more_expensive: bool = False
    is_same_price: bool = True
    search_score: int | None = Field(default=None, exclude=True)

    @model_validator(mode="after")
    def _derive_flags(self) -> ComparisonRecord:
        self.is_cheaper = self.price_diff > 0
        self.is_more_expensive = self.price_diff < 0
        self.is_same_price = self.price_diff == 0
        return self

    @classmethod
    def from_products(cls, base: Product, counterpart: Product) -> ComparisonRecord:
        price_diff = base.price - counterpart.price
        percent = js_round(abs(price_diff) / base.price * 100) if base.price > 0 else 0
        return cls(
            base_product=base,
            counterpart_product=counterpart,
            price_diff=price_diff,
            percent_diff=max(0, min(100, percent)),
        )


class VendorMapping(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    sf_code: str = ""
    sf_name: str = ""
    tf_code: str = ""
    tf_name: str = ""
    business_line: str | None = None
    created_at: str | None = None


class VendorRecord(BaseModel):
    vendor_mapping: VendorMapping = Field(default_factory=VendorMapping)
    item_count: int = Field(default=0, ge=0)
    search_score: int | None = Field(default=None, exclude=True)


class DirectoryStats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_vendors: int = 0
    total_items: int = 0
    unique_sf_vendors: int = 0
    unique_tf_vendors: int = 0
