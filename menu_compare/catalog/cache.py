from __future__ import annotations

import hashlib
import json
import time
from typing import Any, Callable


def make_key(params: dict) -> str:
    normalized = json.dumps(params, sort_keys=True, default=str)
    return hashlib.sha256(normalized.encode()).hexdigest()[:16]


class ExpiringCache:
    """Time-to-live cache for data-source payloads, with hit/miss counters."""

    def __init__(self, ttl: float, clock: Callable[[], float] = time.time) -> None:
        self.ttl = ttl
        self.clock = clock
        self._entries: dict[str, dict[str, Any]] = {}
        self.hits = 0
        self.misses = 0

    def get(self, params: dict) -> Any | None:
        key = make_key(params)
        entry = self._entries.get(key)
        if entry and self.clock() < entry["expires_at"]:
            self.hits += 1
            return entry["value"]
        if entry:
            del self._entries[key]
        self.misses += 1
        return None

    def set(self, params: dict, value: Any) -> None:
        self._entries[make_key(params)] = {"value": value, "expires_at": self.clock() + self.ttl}

    def purge_expired(self) -> int:
        now = self.clock()
        expired = [k for k, e in self._entries.items() if e["expires_at"] <= now]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def stats(self) -> dict:
        total = self.hits + self.misses
        return {
            "size": len(self._entries),
            "ttl_seconds": self.ttl,
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": round(self.hits / total * 100, 1) if total > 0 else 0.0,
        }

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0
