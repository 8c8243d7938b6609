"""
Search engine over comparison and vendor datasets.

Responsibilities:
- Score candidates against a free-text query (substring, word and fuzzy).
- Filter by category and sort by a user-selected key.
- Debounce keystroke-level queries and publish results to a render sink.
"""
