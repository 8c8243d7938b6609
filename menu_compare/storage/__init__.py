"""
Persistence layer.

Responsibilities:
- Load and save JSON documents in a per-user key-value area.
- Treat missing or corrupt documents as absent instead of failing.
- Keep the previous document readable if a write is interrupted.
"""
