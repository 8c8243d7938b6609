from __future__ import annotations

import logging
import time
from typing import Any

logger = logging.getLogger(__name__)

_events: list[dict[str, Any]] = []


def record_event(event_type: str, data: dict[str, Any]) -> None:
    event = {
        "type": event_type,
        "timestamp": time.time(),
        **data,
    }
    _events.append(event)
    logger.debug("Analytics event: %s", event)


def record_action(action: str, data: dict[str, Any] | None = None) -> None:
    record_event("action", {"action": action, **(data or {})})


def get_events() -> list[dict[str, Any]]:
    return _events


def clear_events() -> None:
    _events.clear()
