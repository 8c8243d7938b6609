from __future__ import annotations

from unittest.mock import patch

from fastapi.testclient import TestClient

from menu_compare.app import _parse_max_price, app, run
from menu_compare.service import sessions
from menu_compare.service.config import SessionConfig
from menu_compare.search.models import VendorMapping, VendorRecord

client = TestClient(app)

COMPARISONS = {
    "1": {
        "baseProduct": {"id": 1, "name": "پیتزا پپرونی", "price": 100_000},
        "counterpartProduct": {"id": 11, "name": "پیتزا پپرونی", "price": 90_000},
        "priceDiff": 10_000,
        "percentDiff": 10,
    },
    "2": {
        "baseProduct": {"id": 2, "name": "برگر ذغالی", "price": 60_000},
        "counterpartProduct": {"id": 12, "name": "همبرگر ذغالی", "price": 65_000},
        "priceDiff": -5_000,
        "percentDiff": 8,
    },
    "3": "garbage",
}

VENDORS = [
    {"vendor_mapping": {"sf_code": "a1", "sf_name": "برگر کینگ", "tf_code": "t1", "tf_name": "برگرکینگ"},
     "item_count": 4},
    {"sf_code": "a2", "sf_name": "پیتزا هات", "tf_code": "t2", "tf_name": "پیتزاهات", "item_count": 2},
    {"foo": "bar"},
]


def _start_menu_session(c):
    return c.post("/session", json={"page_type": "snappfood-menu", "comparisons": COMPARISONS})


def test_health():
    body = client.get("/health").json()
    assert body["status"] == "ok"
    assert body["active_sessions"] == 0


def test_search_requires_session():
    resp = client.post("/search", json={"query": "پیتزا"})
    assert resp.status_code == 404
    assert resp.json()["detail"] == "No active search session"


class TestSession:
    def test_menu_session(self):
        resp = _start_menu_session(client)
        assert resp.status_code == 200
        body = resp.json()
        assert body["has_product_data"] is True
        assert body["total_candidates"] == 2
        assert body["stats"] is None

    def test_vendor_session(self):
        resp = client.post("/session", json={"page_type": "snappfood-homepage", "vendors": VENDORS})
        body = resp.json()
        assert body["has_product_data"] is False
        assert body["total_candidates"] == 2
        assert body["stats"]["totalVendors"] == 2
        assert body["stats"]["totalItems"] == 6

    def test_page_type_from_url(self):
        resp = client.post("/session", json={"url": "https://tapsi.food/vendor/xyz789", "comparisons": COMPARISONS})
        assert resp.json()["page_type"] == "tapsifood-menu"

    @patch("menu_compare.app.get_vendor_directory")
    def test_homepage_without_vendors_uses_directory(self, mock_directory):
        mock_directory.return_value = [
            VendorRecord(vendor_mapping=VendorMapping(sf_code="a1", sf_name="کافه"), item_count=1),
        ]
        resp = client.post("/session", json={"page_type": "snappfood-homepage"})
        assert resp.json()["total_candidates"] == 1
        mock_directory.assert_called_once()

    @patch("menu_compare.app.get_vendor_directory")
    def test_menu_page_without_data_has_no_candidates(self, mock_directory):
        resp = client.post("/session", json={"page_type": "snappfood-menu"})
        assert resp.json()["total_candidates"] == 0
        mock_directory.assert_not_called()

    @patch("menu_compare.app.get_vendor_directory")
    def test_menu_session_links_counterpart(self, mock_directory):
        mock_directory.return_value = [
            VendorRecord(vendor_mapping=VendorMapping(sf_code="abc123", sf_name="برگر", tf_code="xyz789")),
        ]
        resp = client.post("/session", json={
            "url": "https://snappfood.ir/restaurant/menu/burger-r-abc123",
            "comparisons": COMPARISONS,
        })
        body = resp.json()
        assert body["page_type"] == "snappfood-menu"
        assert body["vendor_code"] == "abc123"
        assert body["counterpart_url"] == "https://tapsi.food/vendor/xyz789"

    @patch("menu_compare.app.get_vendor_directory", return_value=[])
    def test_unknown_vendor_has_no_counterpart(self, mock_directory):
        resp = client.post("/session", json={"url": "https://tapsi.food/vendor/nope1", "comparisons": COMPARISONS})
        assert resp.json()["vendor_code"] == "nope1"
        assert resp.json()["counterpart_url"] is None

    def test_end_session(self):
        _start_menu_session(client)
        assert client.get("/health").json()["active_sessions"] == 1
        assert client.delete("/session").json() == {"status": "reset"}
        assert client.get("/health").json()["active_sessions"] == 0
        assert client.post("/search", json={"query": "پیتزا"}).status_code == 404


class TestSearch:
    def test_product_search(self):
        _start_menu_session(client)
        resp = client.post("/search", json={"query": "پیتزا"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["result_count"] == 1
        assert body["total_candidates"] == 2
        assert body["no_results"] is False
        item = body["results"][0]
        assert item["comparison"]["baseProduct"]["name"] == "پیتزا پپرونی"
        assert item["comparison"]["isCheaper"] is True
        assert item["score"] > 10
        assert item["comparison_text"].startswith("10% ارزان‌تر در تپسی‌فود")

    def test_empty_query_lists_everything(self):
        _start_menu_session(client)
        body = client.post("/search", json={"query": "", "sort": "price-asc"}).json()
        names = [r["comparison"]["baseProduct"]["name"] for r in body["results"]]
        assert names == ["برگر ذغالی", "پیتزا پپرونی"]

    def test_category_filter(self):
        _start_menu_session(client)
        body = client.post("/search", json={"category": "sf-cheaper"}).json()
        assert [r["comparison"]["baseProduct"]["name"] for r in body["results"]] == ["برگر ذغالی"]

    def test_unknown_category_is_ignored(self):
        _start_menu_session(client)
        body = client.post("/search", json={"category": "mystery"}).json()
        assert body["result_count"] == 2

    def test_no_results(self):
        _start_menu_session(client)
        body = client.post("/search", json={"query": "سوشی"}).json()
        assert body["no_results"] is True
        assert body["status"].startswith("۰ نتیجه")

    def test_vendor_search(self):
        client.post("/session", json={"page_type": "tapsifood-homepage", "vendors": VENDORS})
        body = client.post("/search", json={"query": "برگر"}).json()
        assert body["has_product_data"] is False
        assert [r["vendor"]["vendor_mapping"]["sf_name"] for r in body["results"]] == ["برگر کینگ"]
        assert body["results"][0]["comparison_text"] is None
        assert body["results"][0]["counterpart_url"] == "https://snappfood.ir/restaurant/menu/a1"

    def test_invalid_max_price(self):
        _start_menu_session(client)
        assert client.post("/search", json={"max_price": -1}).status_code == 422


class TestLedgerEndpoints:
    def test_search_is_added_to_history_and_stats(self):
        _start_menu_session(client)
        client.post("/search", json={"query": "پیتزا"})
        history = client.get("/history").json()["history"]
        assert history[0]["query"] == "پیتزا"
        assert history[0]["resultCount"] == 1
        stats = client.get("/stats").json()
        assert stats["statistics"]["totalSearches"] == 1
        assert stats["statistics"]["averageResultCount"] == 1
        assert stats["top_queries"] == [{"query": "پیتزا", "count": 1}]

    def test_single_character_query_is_not_recorded(self):
        _start_menu_session(client)
        client.post("/search", json={"query": "پ"})
        assert client.get("/history").json()["history"] == []
        assert client.get("/stats").json()["statistics"]["totalSearches"] == 0

    def test_clear_history(self):
        _start_menu_session(client)
        client.post("/search", json={"query": "پیتزا"})
        assert client.delete("/history").json() == {"status": "cleared"}
        assert client.get("/history").json()["history"] == []

    def test_favorites_round_trip(self):
        _start_menu_session(client)
        resp = client.post("/favorites/toggle", json={"name": "برگر ذغالی"})
        assert resp.json() == {"name": "برگر ذغالی", "is_favorite": True, "total_favorites": 1}
        favorites = client.get("/favorites").json()["favorites"]
        assert favorites[0]["source"] == "snappfood-menu"

        body = client.post("/search", json={"category": "favorites"}).json()
        assert [r["comparison"]["baseProduct"]["name"] for r in body["results"]] == ["برگر ذغالی"]
        assert body["results"][0]["is_favorite"] is True

        resp = client.post("/favorites/toggle", json={"name": "برگر ذغالی"})
        assert resp.json()["is_favorite"] is False

    def test_clear_favorites(self):
        client.post("/favorites/toggle", json={"name": "کباب"})
        client.delete("/favorites")
        assert client.get("/favorites").json()["favorites"] == []

    def test_reset_stats(self):
        _start_menu_session(client)
        client.post("/search", json={"query": "پیتزا"})
        client.delete("/stats")
        assert client.get("/stats").json()["statistics"]["totalSearches"] == 0

    def test_ledgers_are_per_session(self):
        _start_menu_session(client)
        client.post("/search", json={"query": "پیتزا"})
        with TestClient(app) as other:
            assert other.get("/history").json()["history"] == []


def test_compare_endpoint():
    resp = client.post("/compare", json={
        "sf_products": {"1": {"name": "کباب", "price": 100_000}},
        "tf_products": {"9": {"name": "کباب", "price": 90_000}},
        "item_mappings": {"1": 9},
        "source_platform": "snappfood",
    })
    assert resp.status_code == 200
    body = resp.json()
    assert body["total"] == 1
    assert body["comparisons"]["1"]["priceDiff"] == 10_000
    assert body["comparisons"]["1"]["percentDiff"] == 10
    assert body["comparisons"]["1"]["isCheaper"] is True


def test_compare_rejects_unknown_platform():
    resp = client.post("/compare", json={"source_platform": "ubereats"})
    assert resp.status_code == 422


@patch("menu_compare.catalog.data_store._load")
def test_vendor_directory_endpoint(mock_load):
    mock_load.return_value = [
        VendorRecord(vendor_mapping=VendorMapping(sf_code="a1", tf_code="t1"), item_count=3),
    ]
    body = client.get("/vendors").json()
    assert len(body["vendors"]) == 1
    assert body["stats"]["totalItems"] == 3


def test_cache_stats_endpoint():
    body = client.get("/cache/stats").json()
    assert "hit_rate" in body
    assert body["ttl_seconds"] > 0


class TestLiveSearch:
    def test_requires_active_session(self):
        client.delete("/session")
        with client.websocket_connect("/ws/search") as ws:
            assert ws.receive_json() == {"type": "error", "detail": "No active search session"}

    def test_category_message_runs_immediately(self):
        _start_menu_session(client)
        with client.websocket_connect("/ws/search") as ws:
            ws.send_json({"type": "category", "category": "tf-cheaper"})
            message = ws.receive_json()
            assert message["type"] == "results"
            assert message["result_count"] == 1
            assert message["results"][0]["comparison"]["baseProduct"]["name"] == "پیتزا پپرونی"

    def test_debounced_query_updates_ledger(self):
        _start_menu_session(client)
        with client.websocket_connect("/ws/search") as ws:
            ws.send_json({"type": "query", "query": "برگر"})
            results = ws.receive_json()
            assert results["type"] == "results"
            assert results["query"] == "برگر"
            assert results["result_count"] == 1
            ledger = ws.receive_json()
            assert ledger == {"type": "ledger", "total_searches": 1, "total_favorites": 0}

    def test_favorite_message_refreshes_ledger(self):
        _start_menu_session(client)
        with client.websocket_connect("/ws/search") as ws:
            ws.send_json({"type": "favorite", "name": "برگر ذغالی"})
            assert ws.receive_json() == {"type": "ledger", "total_searches": 0, "total_favorites": 1}

    def test_non_finite_max_price_means_no_ceiling(self):
        _start_menu_session(client)
        with client.websocket_connect("/ws/search") as ws:
            ws.send_json({"type": "category", "category": "high-savings"})
            assert ws.receive_json()["result_count"] == 1
            ws.send_json({"type": "max_price", "max_price": float("inf")})
            message = ws.receive_json()
            assert message["type"] == "results"
            assert message["result_count"] == 1

    def test_max_price_in_persian_digits(self):
        _start_menu_session(client)
        with client.websocket_connect("/ws/search") as ws:
            ws.send_json({"type": "category", "category": "high-savings"})
            ws.receive_json()
            ws.send_json({"type": "max_price", "max_price": "۵۰٬۰۰۰"})
            assert ws.receive_json()["result_count"] == 0


def test_parse_max_price():
    assert _parse_max_price(50_000) == 50_000
    assert _parse_max_price(49_999.9) == 49_999
    assert _parse_max_price("۱۲۰۰۰۰") == 120_000
    assert _parse_max_price("50,000") == 50_000
    assert _parse_max_price(float("inf")) is None
    assert _parse_max_price(float("nan")) is None
    assert _parse_max_price(0) is None
    assert _parse_max_price(-5) is None
    assert _parse_max_price(True) is None
    assert _parse_max_price("cheap") is None
    assert _parse_max_price(None) is None


@patch("menu_compare.app.uvicorn.run")
def test_run_serves_app_with_uvicorn(mock_run, monkeypatch):
    monkeypatch.setenv("MENU_COMPARE_PORT", "9100")
    run()
    mock_run.assert_called_once_with(app, host="127.0.0.1", port=9100)


class TestSessionRegistry:
    def test_coordinator_is_reused(self):
        assert sessions.get_coordinator("a", now=0.0) is sessions.get_coordinator("a", now=1.0)

    def test_idle_sessions_are_evicted(self):
        config = SessionConfig(idle_seconds=60, max_sessions=100)
        old = sessions.get_coordinator("old", config, now=0.0)
        old.set_dataset(comparisons=[], page_type="snappfood-menu")
        sessions.get_coordinator("fresh", config, now=50.0)
        sessions.get_coordinator("fresh", config, now=100.0)
        assert sessions.active_sessions() == 1
        assert old.session.active is False
        assert sessions.get_coordinator("old", config, now=101.0) is not old

    def test_least_recently_used_session_is_dropped_over_cap(self):
        config = SessionConfig(idle_seconds=3600, max_sessions=2)
        first = sessions.get_coordinator("first", config, now=0.0)
        sessions.get_coordinator("second", config, now=1.0)
        sessions.get_coordinator("first", config, now=2.0)
        sessions.get_coordinator("third", config, now=3.0)
        assert sessions.active_sessions() == 2
        assert sessions.get_coordinator("first", config, now=4.0) is first

    def test_cookieless_clients_do_not_accumulate(self):
        config = SessionConfig(idle_seconds=0, max_sessions=100)
        for i in range(5):
            sessions.get_coordinator(f"visitor-{i}", config, now=float(i))
        assert sessions.active_sessions() == 1

    def test_drop_coordinator(self):
        sessions.get_coordinator("gone", now=0.0)
        sessions.drop_coordinator("gone")
        sessions.drop_coordinator("never-existed")
        assert sessions.active_sessions() == 0
