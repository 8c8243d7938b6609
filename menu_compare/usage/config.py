from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class LedgerConfig:
    history_limit: int = int(os.getenv("MENU_COMPARE_HISTORY_LIMIT", "20"))
    favorites_limit: int = int(os.getenv("MENU_COMPARE_FAVORITES_LIMIT", "50"))
    min_query_length: int = 2


DEFAULT_LEDGER_CONFIG = LedgerConfig()
