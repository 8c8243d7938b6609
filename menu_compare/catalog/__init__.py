"""
Catalog: the data-source boundary.

Responsibilities:
- Pair base-platform menu items with their counterparts into comparisons.
- Normalize vendor records (nested or flat legacy shape) into one schema.
- Load and cache the vendor directory shared by both platforms.
- Recognize platform page types and vendor codes from URLs.
"""
