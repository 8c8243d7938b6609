from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SearchHistoryEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    query: str
    timestamp: int = Field(default=0, description="Epoch milliseconds")
    result_count: int = Field(default=0, ge=0, alias="resultCount")


class FavoriteEntry(BaseModel):
    name: str
    timestamp: int = Field(default=0, description="Epoch milliseconds")
    source: str | None = None


class SearchStatistics(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_searches: int = Field(default=0, ge=0, alias="totalSearches")
    average_result_count: int = Field(default=0, ge=0, alias="averageResultCount")
    popular_queries: dict[str, int] = Field(default_factory=dict, alias="popularQueries")
    last_search_time: int | None = Field(default=None, alias="lastSearchTime")


class LedgerSnapshot(BaseModel):
    history: list[SearchHistoryEntry]
    favorites: list[FavoriteEntry]
    statistics: SearchStatistics
