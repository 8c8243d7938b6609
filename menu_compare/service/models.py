from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from ..search.models import Category, ComparisonRecord, DirectoryStats, SortKey, VendorRecord
from ..usage.models import FavoriteEntry, SearchHistoryEntry, SearchStatistics


class CompareRequest(BaseModel):
    sf_products: dict[str, Any] = Field(default_factory=dict)
    tf_products: dict[str, Any] = Field(default_factory=dict)
    item_mappings: dict[str, Any] = Field(default_factory=dict)
    source_platform: str = Field(default="snappfood", pattern="^(snappfood|tapsifood)$")


class CompareResponse(BaseModel):
    comparisons: dict[str, ComparisonRecord]
    total: int


class SessionRequest(BaseModel):
    page_type: str | None = None
    url: str | None = Field(default=None, description="Page URL, used when page_type is omitted")
    comparisons: dict[str, Any] | list[Any] | None = None
    vendors: list[Any] | None = None


class SessionResponse(BaseModel):
    page_type: str | None
    has_product_data: bool
    total_candidates: int
    stats: DirectoryStats | None = None
    vendor_code: str | None = None
    counterpart_url: str | None = Field(default=None, description="Same restaurant on the other platform")


class SearchRequest(BaseModel):
    query: str = Field(default="", max_length=200)
    category: str = Category.all.value
    sort: str = SortKey.relevance.value
    max_price: int | None = Field(default=None, ge=0)


class SearchResultItem(BaseModel):
    comparison: ComparisonRecord | None = None
    vendor: VendorRecord | None = None
    score: int | None = None
    is_favorite: bool = False
    comparison_text: str | None = None
    counterpart_url: str | None = None


class SearchResponse(BaseModel):
    results: list[SearchResultItem]
    result_count: int
    total_candidates: int
    has_product_data: bool
    no_results: bool
    status: str
    elapsed_ms: float


class FavoriteToggleRequest(BaseModel):
    name: str = Field(..., min_length=1)


class FavoriteToggleResponse(BaseModel):
    name: str
    is_favorite: bool
    total_favorites: int


class HistoryResponse(BaseModel):
    history: list[SearchHistoryEntry]


class FavoritesResponse(BaseModel):
    favorites: list[FavoriteEntry]


class StatsResponse(BaseModel):
    statistics: SearchStatistics
    top_queries: list[dict[str, Any]]
    total_favorites: int


class VendorDirectoryResponse(BaseModel):
    vendors: list[VendorRecord]
    stats: DirectoryStats
