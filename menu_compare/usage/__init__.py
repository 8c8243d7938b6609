"""
Usage ledger.

Responsibilities:
- Keep the recent search history (most recent first, capped).
- Keep the user's favorite items (capped, toggled by name).
- Maintain aggregate search statistics with self-healing persisted state.
"""
