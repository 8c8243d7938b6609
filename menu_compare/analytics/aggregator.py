from __future__ import annotations

from collections import Counter
from typing import Any


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    searches = [e for e in events if e["type"] == "search"]
    actions = [e for e in events if e["type"] == "action"]
    total = len(searches)

    # Average search time
    times = [s["search_time_ms"] for s in searches if "search_time_ms" in s]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    # Average result count and zero-result searches
    counts = [s.get("result_count", 0) for s in searches]
    avg_results = round(sum(counts) / len(counts), 1) if counts else 0.0
    zero_results = sum(1 for c in counts if c == 0)

    # Top queries
    query_counter: Counter[str] = Counter()
    for s in searches:
        query = (s.get("query") or "").strip().lower()
        if query:
            query_counter[query] += 1
    top_queries = [{"query": q, "count": c} for q, c in query_counter.most_common(10)]

    # Page type usage
    page_counter: Counter[str] = Counter()
    for s in searches:
        page_counter[s.get("page_type") or "unknown"] += 1

    # Category and sort usage
    category_counter: Counter[str] = Counter(s.get("category", "all") for s in searches)
    sort_counter: Counter[str] = Counter(s.get("sort_key", "relevance") for s in searches)

    product_searches = sum(1 for s in searches if s.get("has_product_data"))

    return {
        "total_searches": total,
        "avg_search_time_ms": avg_time,
        "avg_result_count": avg_results,
        "zero_result_rate": round(zero_results / total * 100, 1) if total else 0.0,
        "top_queries": top_queries,
        "page_type_usage": dict(page_counter),
        "category_usage": dict(category_counter),
        "sort_usage": dict(sort_counter),
        "product_search_rate": round(product_searches / total * 100, 1) if total else 0.0,
        "action_counts": dict(Counter(a.get("action", "unknown") for a in actions)),
    }
