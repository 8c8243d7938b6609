from __future__ import annotations

import logging
import math
import time
from typing import Any, Callable

from pydantic import ValidationError

from ..search.formatting import js_round
from ..storage.config import DEFAULT_STORAGE_CONFIG, StorageConfig
from ..storage.persisted_store import PersistedStore
from .config import DEFAULT_LEDGER_CONFIG, LedgerConfig
from .models import FavoriteEntry, LedgerSnapshot, SearchHistoryEntry, SearchStatistics

logger = logging.getLogger(__name__)


def normalize_query(query: str) -> str:
    return query.strip().lower()


def _as_count(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    if value < 0:
        return 0
    return int(value)


class UsageLedger:
    """Search history, favorites and search statistics for one user.

    State is loaded once from *store* and every mutation is written back
    immediately. Nothing here raises to the caller: persistence problems are
    absorbed by :class:`PersistedStore` and bad persisted data is healed.
    """

    def __init__(
        self,
        store: PersistedStore,
        *,
        config: LedgerConfig = DEFAULT_LEDGER_CONFIG,
        storage_config: StorageConfig = DEFAULT_STORAGE_CONFIG,
        clock: Callable[[], float] = time.time,
        on_change: Callable[[LedgerSnapshot], None] | None = None,
    ) -> None:
        self.store = store
        self.config = config
        self.clock = clock
        self.on_change = on_change
        self.history_key = storage_config.key(storage_config.history_key)
        self.favorites_key = storage_config.key(storage_config.favorites_key)
        self.stats_key = storage_config.key(storage_config.stats_key)

        self.history: list[SearchHistoryEntry] = self._load_history()
        self.favorites: list[FavoriteEntry] = self._load_favorites()
        self.statistics: SearchStatistics = self._load_statistics()

    # ── Loading ──────────────────────────────────────────────────────────

    def _load_entries(self, key: str, model: type, text_field: str) -> list:
        raw = self.store.load(key, [])
        if not isinstance(raw, list):
            logger.warning("Discarding %s: expected a list, got %s", key, type(raw).__name__)
            return []
        entries = []
        for item in raw:
            # Older versions stored bare strings.
            if isinstance(item, str):
                item = {text_field: item}
            try:
                entries.append(model.model_validate(item))
            except ValidationError:
                logger.warning("Dropping malformed %s entry: %r", key, item)
        return entries

    def _load_history(self) -> list[SearchHistoryEntry]:
        return self._load_entries(self.history_key, SearchHistoryEntry, "query")

    def _load_favorites(self) -> list[FavoriteEntry]:
        return self._load_entries(self.favorites_key, FavoriteEntry, "name")

    def _load_statistics(self) -> SearchStatistics:
        raw = self.store.load(self.stats_key, None)
        if not isinstance(raw, dict):
            logger.warning("Search statistics missing or corrupt, resetting")
            stats = SearchStatistics()
            self._save_statistics(stats)
            return stats

        healed = False
        popular = raw.get("popularQueries")
        if not isinstance(popular, dict):
            popular = {}
            healed = True
        popular = {str(k): _as_count(v) for k, v in popular.items()}

        last = raw.get("lastSearchTime")
        if last is not None and _as_count(last) != last:
            last = None
            healed = True

        total = _as_count(raw.get("totalSearches"))
        average = _as_count(raw.get("averageResultCount"))
        if total != raw.get("totalSearches") or average != raw.get("averageResultCount"):
            healed = True

        stats = SearchStatistics(
            total_searches=total,
            average_result_count=average,
            popular_queries=popular,
            last_search_time=last,
        )
        if healed:
            logger.info("Healed malformed search statistics")
            self._save_statistics(stats)
        return stats

    # ── Saving ───────────────────────────────────────────────────────────

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    def _save_history(self) -> None:
        self.store.save(self.history_key, [e.model_dump(by_alias=True) for e in self.history])

    def _save_favorites(self) -> None:
        self.store.save(self.favorites_key, [f.model_dump() for f in self.favorites])

    def _save_statistics(self, stats: SearchStatistics | None = None) -> None:
        stats = stats or self.statistics
        self.store.save(self.stats_key, stats.model_dump(by_alias=True))

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self.snapshot())

    # ── History ──────────────────────────────────────────────────────────

    def add_to_history(self, query: str, result_count: int = 0) -> None:
        if not query or len(query.strip()) < self.config.min_query_length:
            return

        normalized = normalize_query(query)
        self.history = [e for e in self.history if normalize_query(e.query) != normalized]
        self.history.insert(
            0,
            SearchHistoryEntry(query=query.strip(), timestamp=self._now_ms(), result_count=result_count),
        )
        del self.history[self.config.history_limit:]

        self._save_history()
        self.update_statistics(query, result_count)

    def clear_history(self) -> None:
        self.history = []
        self._save_history()
        self._notify()

    # ── Statistics ───────────────────────────────────────────────────────

    def update_statistics(self, query: str, result_count: int) -> None:
        stats = self.statistics
        stats.total_searches += 1
        stats.last_search_time = self._now_ms()
        # Smoothed, not a true mean: each search weighs as much as all
        # previous ones together.
        stats.average_result_count = js_round((stats.average_result_count + result_count) / 2)
        normalized = normalize_query(query)
        if normalized:
            stats.popular_queries[normalized] = stats.popular_queries.get(normalized, 0) + 1

        self._save_statistics()
        self._notify()

    def reset_statistics(self) -> None:
        self.statistics = SearchStatistics()
        self._save_statistics()
        self._notify()

    def top_queries(self, limit: int = 10) -> list[tuple[str, int]]:
        items = sorted(self.statistics.popular_queries.items(), key=lambda kv: kv[1], reverse=True)
        return items[:limit]

    # ── Favorites ────────────────────────────────────────────────────────

    def toggle_favorite(self, name: str, source: str | None = None) -> bool:
        """Add *name* if absent, remove it if present. Returns the new state."""
        idx = next((i for i, fav in enumerate(self.favorites) if fav.name == name), None)
        if idx is not None:
            del self.favorites[idx]
        else:
            self.favorites.append(FavoriteEntry(name=name, timestamp=self._now_ms(), source=source))

        while len(self.favorites) > self.config.favorites_limit:
            self.favorites.pop(0)

        self._save_favorites()
        self._notify()
        return self.is_favorite(name)

    def is_favorite(self, name: str) -> bool:
        return any(fav.name == name for fav in self.favorites)

    def clear_favorites(self) -> None:
        self.favorites = []
        self._save_favorites()
        self._notify()

    def snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot(
            history=list(self.history),
            favorites=list(self.favorites),
            statistics=self.statistics.model_copy(deep=True),
        )
