from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class SessionConfig:
    # Coordinators untouched for this long are dropped.
    idle_seconds: int = int(os.getenv("MENU_COMPARE_SESSION_IDLE_SECONDS", "1800"))
    max_sessions: int = int(os.getenv("MENU_COMPARE_MAX_SESSIONS", "1000"))


DEFAULT_SESSION_CONFIG = SessionConfig()
