"""
Relevance ranking for comparison and vendor records.

Scoring, per record:
- +1000 when the whole query occurs in the searchable text.
- Per query word: +100 when it occurs verbatim, +50 more when that occurrence
  starts the text or follows a space; otherwise a fuzzy subsequence score.
- A length adjustment, either a bonus for short texts or a penalty for the
  length difference between query and text (see ``SearchConfig``).

Records scoring at or below ``min_score`` are dropped; the rest are ordered by
score, highest first, keeping input order on ties.
"""
from __future__ import annotations

import logging
from typing import Sequence, TypeVar

from .config import DEFAULT_SEARCH_CONFIG, SearchConfig
from .models import ComparisonRecord, VendorRecord
from .text import fold

logger = logging.getLogger(__name__)

Record = TypeVar("Record", ComparisonRecord, VendorRecord)


def searchable_text(
    record: ComparisonRecord | VendorRecord,
    has_product_data: bool,
    config: SearchConfig = DEFAULT_SEARCH_CONFIG,
) -> str:
    """Lowercased text a query is matched against. Missing names count as ""."""
    if has_product_data:
        base = getattr(record, "base_product", None)
        counterpart = getattr(record, "counterpart_product", None)
        parts = [getattr(base, "name", "") or "", getattr(counterpart, "name", "") or ""]
    else:
        mapping = getattr(record, "vendor_mapping", None)
        fields = ["sf_name", "tf_name"]
        if config.include_vendor_codes:
            fields += ["sf_code", "tf_code"]
        parts = [getattr(mapping, f, "") or "" for f in fields]
    return " ".join(parts).lower()


def simple_similarity(
    word: str,
    text: str,
    config: SearchConfig = DEFAULT_SEARCH_CONFIG,
) -> int:
    """Fuzzy score of *word* against *text* after folding both.

    Characters of *word* are matched in order anywhere in *text* (a gapped
    subsequence), each worth ``fuzzy_char_score``. Matching the whole word
    earns the completion bonus, and every multi-character token of the
    folded word found verbatim in the folded text earns the token bonus.
    """
    word = fold(word)
    text = fold(text)

    score = 0
    pos = 0
    for ch in text:
        if pos >= len(word):
            break
        if ch == word[pos]:
            score += config.fuzzy_char_score
            pos += 1

    if word and pos == len(word):
        score += config.fuzzy_completion_bonus

    for token in word.split():
        if len(token) > 1 and token in text:
            score += config.fuzzy_token_bonus

    return score


def score_text(
    lower_query: str,
    query_words: Sequence[str],
    text: str,
    config: SearchConfig = DEFAULT_SEARCH_CONFIG,
) -> int:
    score = 0

    if lower_query in text:
        score += config.exact_match_score

    for word in query_words:
        if word in text:
            score += config.word_match_score
            if text.startswith(word) or f" {word}" in text:
                score += config.word_start_bonus
        else:
            score += simple_similarity(word, text, config)

    if config.length_policy == "penalty":
        score -= abs(len(lower_query) - len(text)) * config.length_penalty_factor
    elif len(text) < config.short_text_limit:
        score += config.short_text_bonus

    return score


def rank(
    query: str | None,
    records: list[Record],
    has_product_data: bool,
    config: SearchConfig = DEFAULT_SEARCH_CONFIG,
) -> list[Record]:
    """Return the records matching *query*, best first.

    An empty query returns *records* untouched. Returned records are copies
    carrying ``search_score``; the input list and its records are not
    modified.
    """
    if not query or not query.strip():
        return records

    lower_query = query.lower().strip()
    query_words = lower_query.split()
    if not query_words:
        return records

    scored: list[Record] = []
    for record in records:
        text = searchable_text(record, has_product_data, config)
        score = score_text(lower_query, query_words, text, config)
        if score > config.min_score:
            scored.append(record.model_copy(update={"search_score": score}))

    # sorted() is stable, so equal scores keep their input order.
    ranked = sorted(scored, key=lambda r: r.search_score, reverse=True)
    logger.debug("Ranked %d of %d records for %r", len(ranked), len(records), query)
    return ranked
