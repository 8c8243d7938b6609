"""
Debounced query coordination for one page context.

State machine:  IDLE -> DEBOUNCING -> SEARCHING -> IDLE

- Free-text query changes are debounced; a newer change cancels the pending
  timer of an older one.
- Clearing the query and changing category, sort or price ceiling run the
  search immediately.
- A search ranks (non-empty query only), filters, sorts, stores the results on
  the session and hands them to the render sink. Non-empty queries are also
  recorded in the usage ledger and the analytics store.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Union

from ..analytics.store import record_event
from ..usage.ledger import UsageLedger
from .config import DEFAULT_SEARCH_CONFIG, SearchConfig
from .filters import apply_category_filter, apply_sort
from .formatting import search_status
from .models import Category, ComparisonRecord, SortKey, VendorRecord
from .ranking import rank
from .scheduling import Scheduler, TimerHandle

logger = logging.getLogger(__name__)

AnyRecord = Union[ComparisonRecord, VendorRecord]


class SearchState(str, Enum):
    idle = "idle"
    debouncing = "debouncing"
    searching = "searching"


@dataclass
class SearchOutcome:
    query: str
    category: str
    sort_key: str
    results: list[AnyRecord]
    has_product_data: bool
    elapsed_ms: float
    status: str

    @property
    def no_results(self) -> bool:
        return not self.results


@dataclass
class SearchSession:
    page_type: str | None = None
    query: str = ""
    category: str = Category.all.value
    sort_key: str = SortKey.relevance.value
    max_price: int | None = None
    comparisons: list[ComparisonRecord] = field(default_factory=list)
    vendors: list[VendorRecord] = field(default_factory=list)
    results: list[AnyRecord] = field(default_factory=list)
    active: bool = False
    pending: TimerHandle | None = None
    token: int = 0

    @property
    def has_product_data(self) -> bool:
        return len(self.comparisons) > 0

    @property
    def candidates(self) -> list[AnyRecord]:
        return self.comparisons if self.has_product_data else self.vendors


class QueryCoordinator:
    def __init__(
        self,
        ledger: UsageLedger,
        scheduler: Scheduler,
        *,
        render: Callable[[SearchOutcome], None] | None = None,
        status: Callable[[str], None] | None = None,
        analytics: Callable[[str, dict[str, Any]], None] | None = record_event,
        config: SearchConfig = DEFAULT_SEARCH_CONFIG,
        timer: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.ledger = ledger
        self.scheduler = scheduler
        self.render = render
        self.status = status
        self.analytics = analytics
        self.config = config
        self.timer = timer
        self.session = SearchSession()
        self.state = SearchState.idle

    # ── Session lifecycle ────────────────────────────────────────────────

    def set_dataset(
        self,
        *,
        comparisons: list[ComparisonRecord] | None = None,
        vendors: list[VendorRecord] | None = None,
        page_type: str | None = None,
    ) -> None:
        """Start a fresh session for a page context."""
        self.reset()
        self.session.comparisons = list(comparisons or [])
        self.session.vendors = list(vendors or [])
        self.session.page_type = page_type
        self.session.active = True
        logger.info(
            "Session for %s: %d comparisons, %d vendors",
            page_type, len(self.session.comparisons), len(self.session.vendors),
        )

    def reset(self) -> None:
        """Drop any pending search and all session state."""
        self.cancel_pending()
        self.session = SearchSession(token=self.session.token + 1)
        self.state = SearchState.idle

    # ── Triggers ─────────────────────────────────────────────────────────

    def on_query_change(self, query: str) -> None:
        self.cancel_pending()
        self.session.query = (query or "").strip()
        if self.session.query:
            self._schedule(self.config.debounce_ms / 1000)
        else:
            self.execute()

    def set_category(self, category: str | Category) -> SearchOutcome:
        self.cancel_pending()
        self.session.category = category.value if isinstance(category, Category) else category
        # The price ceiling only belongs to the high-savings view.
        if self.session.category != Category.high_savings.value:
            self.session.max_price = None
        return self.execute()

    def set_sort(self, sort_key: str | SortKey) -> SearchOutcome:
        self.cancel_pending()
        self.session.sort_key = sort_key.value if isinstance(sort_key, SortKey) else sort_key
        return self.execute()

    def set_max_price(self, max_price: int | None) -> SearchOutcome:
        self.cancel_pending()
        self.session.max_price = max_price or None
        return self.execute()

    def search_now(
        self,
        query: str = "",
        category: str | Category | None = None,
        sort_key: str | SortKey | None = None,
        max_price: int | None = None,
    ) -> SearchOutcome:
        """Apply all search parameters at once and run without debouncing."""
        self.cancel_pending()
        self.session.query = (query or "").strip()
        if category is not None:
            self.session.category = category.value if isinstance(category, Category) else category
        if sort_key is not None:
            self.session.sort_key = sort_key.value if isinstance(sort_key, SortKey) else sort_key
        self.session.max_price = max_price or None
        return self.execute()

    def toggle_favorite(self, name: str) -> bool:
        return self.ledger.toggle_favorite(name, source=self.session.page_type)

    # ── Execution ────────────────────────────────────────────────────────

    def cancel_pending(self) -> None:
        if self.session.pending is not None:
            self.session.pending.cancel()
            self.session.pending = None
        self.session.token += 1
        if self.state is SearchState.debouncing:
            self.state = SearchState.idle

    def _schedule(self, delay: float) -> None:
        token = self.session.token
        self.session.pending = self.scheduler.call_later(delay, lambda: self._fire(token))
        self.state = SearchState.debouncing

    def _fire(self, token: int) -> None:
        if token != self.session.token:
            logger.debug("Dropping stale search (token %d, current %d)", token, self.session.token)
            return
        self.session.pending = None
        self.execute()

    def execute(self) -> SearchOutcome:
        session = self.session
        self.state = SearchState.searching
        start = self.timer()

        has_product_data = session.has_product_data
        results = session.candidates
        if session.query:
            results = rank(session.query, results, has_product_data, self.config)
        results = apply_category_filter(
            results,
            session.category,
            has_product_data,
            max_price=session.max_price,
            is_favorite=self.ledger.is_favorite,
            config=self.config,
        )
        results = apply_sort(results, session.sort_key, has_product_data)
        session.results = list(results)

        elapsed_ms = (self.timer() - start) * 1000
        outcome = SearchOutcome(
            query=session.query,
            category=session.category,
            sort_key=session.sort_key,
            results=session.results,
            has_product_data=has_product_data,
            elapsed_ms=elapsed_ms,
            status=search_status(len(session.results), elapsed_ms),
        )

        if self.render is not None:
            self.render(outcome)
        if self.status is not None:
            self.status(outcome.status)

        if session.query:
            self.ledger.add_to_history(session.query, len(session.results))
            if self.analytics is not None:
                self.analytics("search", {
                    "query": session.query,
                    "result_count": len(session.results),
                    "search_time_ms": round(elapsed_ms, 1),
                    "page_type": session.page_type,
                    "has_product_data": has_product_data,
                    "category": session.category,
                    "sort_key": session.sort_key,
                })

        self.state = SearchState.idle
        return outcome
