"""
Menu price comparison service.

Searches, filters and sorts price comparisons between SnappFood and
TapsiFood menus, or the directory of restaurants listed on both.
"""
