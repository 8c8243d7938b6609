from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class SearchConfig:
    debounce_ms: int = int(os.getenv("MENU_COMPARE_DEBOUNCE_MS", "150"))
    # Records must score strictly above this to be returned.
    min_score: int = int(os.getenv("MENU_COMPARE_MIN_SCORE", "10"))
    # "short_bonus" rewards short texts, "penalty" punishes length mismatch.
    length_policy: str = os.getenv("MENU_COMPARE_LENGTH_POLICY", "short_bonus")
    short_text_limit: int = 50
    short_text_bonus: int = 10
    length_penalty_factor: int = 2
    exact_match_score: int = 1000
    word_match_score: int = 100
    word_start_bonus: int = 50
    fuzzy_char_score: int = 10
    fuzzy_completion_bonus: int = 20
    fuzzy_token_bonus: int = 20
    high_savings_threshold: int = 5000
    include_vendor_codes: bool = True


DEFAULT_SEARCH_CONFIG = SearchConfig()
