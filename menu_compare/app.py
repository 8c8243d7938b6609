from __future__ import annotations

import asyncio
import logging
import math
import os
from typing import Any

import uvicorn
from fastapi import FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from starlette.middleware.sessions import SessionMiddleware

from .analytics.aggregator import compute_analytics
from .analytics.store import get_events, record_action
from .catalog.comparison import compare_platforms, parse_comparisons
from .catalog.data_store import get_cache_stats, get_directory_stats, get_vendor_directory
from .catalog.pages import counterpart_url, detect_page_type, extract_vendor_code, is_menu_page, page_platform
from .catalog.vendors import find_vendor, parse_vendors, vendor_directory_stats
from .logging_setup import setup_logging
from .search.coordinator import QueryCoordinator, SearchOutcome
from .search.formatting import comparison_text
from .search.models import ComparisonRecord, VendorRecord
from .search.text import persian_to_western
from .service.models import (
    CompareRequest,
    CompareResponse,
    FavoritesResponse,
    FavoriteToggleRequest,
    FavoriteToggleResponse,
    HistoryResponse,
    SearchRequest,
    SearchResponse,
    SearchResultItem,
    SessionRequest,
    SessionResponse,
    StatsResponse,
    VendorDirectoryResponse,
)
from .service.sessions import active_sessions, drop_coordinator, get_coordinator, session_id

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Menu Price Comparison API", version="1.0.0")
app.add_middleware(
    SessionMiddleware,
    secret_key=os.environ.get("SESSION_SECRET", "menu-compare-secret-change-in-production"),
)


def _coordinator(request: Request) -> QueryCoordinator:
    return get_coordinator(session_id(request.session))


def _active_coordinator(request: Request) -> QueryCoordinator:
    coordinator = _coordinator(request)
    if not coordinator.session.active:
        raise HTTPException(status_code=404, detail="No active search session")
    return coordinator


def _counterpart_platform(page_type: str | None) -> str:
    return "snappfood" if page_platform(page_type) == "tapsifood" else "tapsifood"


def _vendor_link(vendor: VendorRecord | None, platform: str) -> str | None:
    """Menu URL of *vendor* on *platform*, when the directory knows its code there."""
    if vendor is None:
        return None
    mapping = vendor.vendor_mapping
    code = mapping.sf_code if platform == "snappfood" else mapping.tf_code
    return counterpart_url(platform, code) if code else None


def _build_search_response(coordinator: QueryCoordinator, outcome: SearchOutcome) -> SearchResponse:
    ledger = coordinator.ledger
    counterpart = _counterpart_platform(coordinator.session.page_type)
    items: list[SearchResultItem] = []
    for record in outcome.results:
        if isinstance(record, ComparisonRecord):
            items.append(SearchResultItem(
                comparison=record,
                score=record.search_score,
                is_favorite=ledger.is_favorite(record.base_product.name),
                comparison_text=comparison_text(record, counterpart),
            ))
        else:
            items.append(SearchResultItem(
                vendor=record,
                score=record.search_score,
                is_favorite=ledger.is_favorite(record.vendor_mapping.sf_name),
                counterpart_url=_vendor_link(record, counterpart),
            ))
    return SearchResponse(
        results=items,
        result_count=len(items),
        total_candidates=len(coordinator.session.candidates),
        has_product_data=outcome.has_product_data,
        no_results=outcome.no_results,
        status=outcome.status,
        elapsed_ms=round(outcome.elapsed_ms, 1),
    )


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, Any]:
    return {"status": "ok", "active_sessions": active_sessions()}


@app.get("/vendors", response_model=VendorDirectoryResponse)
def vendors() -> VendorDirectoryResponse:
    return VendorDirectoryResponse(vendors=get_vendor_directory(), stats=get_directory_stats())


@app.post("/compare", response_model=CompareResponse)
def compare(body: CompareRequest) -> CompareResponse:
    comparisons = compare_platforms(
        body.sf_products, body.tf_products, body.source_platform, body.item_mappings,
    )
    return CompareResponse(comparisons=comparisons, total=len(comparisons))


# ── Search session ───────────────────────────────────────────────────────


@app.post("/session", response_model=SessionResponse)
async def start_session(body: SessionRequest, request: Request) -> SessionResponse:
    coordinator = _coordinator(request)
    page_type = body.page_type or (detect_page_type(body.url) if body.url else None)

    comparisons = parse_comparisons(body.comparisons)
    stats = None
    if comparisons:
        coordinator.set_dataset(comparisons=comparisons, page_type=page_type)
    else:
        if body.vendors is not None:
            vendor_list = parse_vendors(body.vendors)
        elif is_menu_page(page_type):
            vendor_list = []
        else:
            vendor_list = get_vendor_directory()
        stats = vendor_directory_stats(vendor_list)
        coordinator.set_dataset(vendors=vendor_list, page_type=page_type)

    # On a menu page, link to the same restaurant on the other platform.
    vendor_code = link = None
    platform = page_platform(page_type)
    if body.url and platform and is_menu_page(page_type):
        vendor_code = extract_vendor_code(body.url, platform)
        if vendor_code:
            match = find_vendor(get_vendor_directory(), platform, vendor_code)
            link = _vendor_link(match, _counterpart_platform(page_type))

    return SessionResponse(
        page_type=page_type,
        has_product_data=coordinator.session.has_product_data,
        total_candidates=len(coordinator.session.candidates),
        stats=stats,
        vendor_code=vendor_code,
        counterpart_url=link,
    )


@app.delete("/session")
async def end_session(request: Request) -> dict:
    drop_coordinator(session_id(request.session))
    return {"status": "reset"}


@app.post("/search", response_model=SearchResponse)
async def search(body: SearchRequest, request: Request) -> SearchResponse:
    coordinator = _active_coordinator(request)
    outcome = coordinator.search_now(
        query=body.query,
        category=body.category,
        sort_key=body.sort,
        max_price=body.max_price,
    )
    return _build_search_response(coordinator, outcome)


@app.post("/actions/{action}")
async def track_action(action: str, request: Request, data: dict[str, Any] | None = None) -> dict:
    coordinator = _coordinator(request)
    record_action(action, {**(data or {}), "page_type": coordinator.session.page_type})
    return {"status": "recorded"}


# ── Usage ledger ─────────────────────────────────────────────────────────


@app.get("/history", response_model=HistoryResponse)
async def history(request: Request) -> HistoryResponse:
    return HistoryResponse(history=_coordinator(request).ledger.history)


@app.delete("/history")
async def clear_history(request: Request) -> dict:
    _coordinator(request).ledger.clear_history()
    return {"status": "cleared"}


@app.get("/favorites", response_model=FavoritesResponse)
async def favorites(request: Request) -> FavoritesResponse:
    return FavoritesResponse(favorites=_coordinator(request).ledger.favorites)


@app.post("/favorites/toggle", response_model=FavoriteToggleResponse)
async def toggle_favorite(body: FavoriteToggleRequest, request: Request) -> FavoriteToggleResponse:
    coordinator = _coordinator(request)
    is_favorite = coordinator.toggle_favorite(body.name)
    return FavoriteToggleResponse(
        name=body.name,
        is_favorite=is_favorite,
        total_favorites=len(coordinator.ledger.favorites),
    )


@app.delete("/favorites")
async def clear_favorites(request: Request) -> dict:
    _coordinator(request).ledger.clear_favorites()
    return {"status": "cleared"}


@app.get("/stats", response_model=StatsResponse)
async def stats(request: Request) -> StatsResponse:
    ledger = _coordinator(request).ledger
    return StatsResponse(
        statistics=ledger.statistics,
        top_queries=[{"query": q, "count": c} for q, c in ledger.top_queries()],
        total_favorites=len(ledger.favorites),
    )


@app.delete("/stats")
async def reset_stats(request: Request) -> dict:
    _coordinator(request).ledger.reset_statistics()
    return {"status": "reset"}


# ── Live search ──────────────────────────────────────────────────────────


def _parse_max_price(value: Any) -> int | None:
    """Positive whole Toman amount from a client value, else no ceiling."""
    if isinstance(value, str):
        digits = persian_to_western(value).replace(",", "").replace("٬", "").strip()
        if not digits.isdecimal():
            return None
        value = int(digits)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return int(value) if value > 0 else None


def _apply_message(coordinator: QueryCoordinator, message: dict[str, Any]) -> None:
    kind = message.get("type")
    if kind == "query":
        coordinator.on_query_change(str(message.get("query") or ""))
    elif kind == "category":
        coordinator.set_category(str(message.get("category") or "all"))
    elif kind == "sort":
        coordinator.set_sort(str(message.get("sort") or "relevance"))
    elif kind == "max_price":
        coordinator.set_max_price(_parse_max_price(message.get("max_price")))
    elif kind == "favorite":
        coordinator.toggle_favorite(str(message.get("name") or ""))
    else:
        logger.warning("Ignoring unknown live-search message: %r", kind)


@app.websocket("/ws/search")
async def live_search(websocket: WebSocket) -> None:
    await websocket.accept()
    coordinator = get_coordinator(session_id(websocket.session))
    if not coordinator.session.active:
        await websocket.send_json({"type": "error", "detail": "No active search session"})
        await websocket.close()
        return

    outbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue()

    def render(outcome: SearchOutcome) -> None:
        response = _build_search_response(coordinator, outcome)
        outbox.put_nowait({"type": "results", "query": outcome.query, **response.model_dump(mode="json", by_alias=True)})

    def refresh(snapshot) -> None:
        outbox.put_nowait({
            "type": "ledger",
            "total_searches": snapshot.statistics.total_searches,
            "total_favorites": len(snapshot.favorites),
        })

    async def forward() -> None:
        while True:
            await websocket.send_json(await outbox.get())

    coordinator.render = render
    coordinator.ledger.on_change = refresh
    sender = asyncio.create_task(forward())
    try:
        while True:
            message = await websocket.receive_json()
            if isinstance(message, dict):
                _apply_message(coordinator, message)
    except WebSocketDisconnect:
        logger.debug("Live search client disconnected")
    finally:
        sender.cancel()
        coordinator.cancel_pending()
        coordinator.render = None
        coordinator.ledger.on_change = None


# ── Admin endpoints ──────────────────────────────────────────────────────


@app.get("/analytics")
def analytics() -> dict:
    return compute_analytics(get_events())


@app.get("/cache/stats")
def cache_stats() -> dict:
    return get_cache_stats()


def run() -> None:
    """Serve the API with uvicorn (``menu-compare`` console script)."""
    uvicorn.run(
        app,
        host=os.environ.get("MENU_COMPARE_HOST", "127.0.0.1"),
        port=int(os.environ.get("MENU_COMPARE_PORT", "8000")),
    )
