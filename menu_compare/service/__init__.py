"""
HTTP service around the search engine.

Responsibilities:
- Keep one query coordinator per browser session.
- Translate request bodies into datasets, searches and ledger operations.
"""
