"""
Search analytics.

Responsibilities:
- Record search and user-action events in memory.
- Aggregate them into usage figures for the admin endpoint.
"""
