from __future__ import annotations

import logging
import time
import uuid
from collections import OrderedDict
from typing import Any, MutableMapping

from ..search.coordinator import QueryCoordinator
from ..search.scheduling import AsyncioScheduler
from ..storage.persisted_store import PersistedStore, area_for_user
from ..usage.ledger import UsageLedger
from .config import DEFAULT_SESSION_CONFIG, SessionConfig

logger = logging.getLogger(__name__)

_SESSION_KEY = "sid"

# Least recently used first.
_coordinators: OrderedDict[str, QueryCoordinator] = OrderedDict()
_last_seen: dict[str, float] = {}


def session_id(session: MutableMapping[str, Any]) -> str:
    """Return the browser session's id, assigning one on first contact."""
    sid = session.get(_SESSION_KEY)
    if not sid:
        sid = uuid.uuid4().hex
        session[_SESSION_KEY] = sid
    return sid


def _evict(now: float, config: SessionConfig) -> None:
    idle = [sid for sid, seen in _last_seen.items() if now - seen > config.idle_seconds]
    for sid in idle:
        drop_coordinator(sid)
    while len(_coordinators) > config.max_sessions:
        drop_coordinator(next(iter(_coordinators)))
    if idle:
        logger.info("Evicted %d idle search sessions", len(idle))


def get_coordinator(
    sid: str,
    config: SessionConfig = DEFAULT_SESSION_CONFIG,
    now: float | None = None,
) -> QueryCoordinator:
    """Return the session's coordinator, creating it on first use.

    Every call marks the session as used and drops sessions that have been
    idle too long or that exceed the session cap.
    """
    now = time.monotonic() if now is None else now
    coordinator = _coordinators.get(sid)
    if coordinator is None:
        ledger = UsageLedger(PersistedStore(area_for_user(sid)))
        coordinator = QueryCoordinator(ledger, AsyncioScheduler())
        _coordinators[sid] = coordinator
        logger.debug("Created coordinator for session %s", sid)
    else:
        _coordinators.move_to_end(sid)
    _last_seen[sid] = now
    _evict(now, config)
    return coordinator


def drop_coordinator(sid: str) -> None:
    coordinator = _coordinators.pop(sid, None)
    _last_seen.pop(sid, None)
    if coordinator is not None:
        coordinator.reset()


def active_sessions() -> int:
    return len(_coordinators)


def clear_coordinators() -> None:
    for sid in list(_coordinators):
        drop_coordinator(sid)
