from __future__ import annotations

import re

PAGE_PATTERNS: dict[str, re.Pattern[str]] = {
    "snappfood-menu": re.compile(r"snappfood\.ir/restaurant/menu/"),
    "tapsifood-menu": re.compile(r"tapsi\.food/vendor/"),
    "snappfood-service": re.compile(r"snappfood\.ir/service/.+/city/"),
    "snappfood-homepage": re.compile(r"^https?://(www\.)?snappfood\.ir/?(\?.*)?$"),
}

VENDOR_CODE_PATTERNS: dict[str, re.Pattern[str]] = {
    "snappfood": re.compile(r"-r-([a-zA-Z0-9]+)/?"),
    "tapsifood": re.compile(r"tapsi\.food/vendor/([a-zA-Z0-9]+)"),
}


def detect_page_type(url: str) -> str:
    for page_type, pattern in PAGE_PATTERNS.items():
        if pattern.search(url or ""):
            return page_type
    return "unknown"


def page_platform(page_type: str | None) -> str | None:
    """``snappfood`` or ``tapsifood`` for a known page type."""
    if not page_type:
        return None
    for platform in VENDOR_CODE_PATTERNS:
        if page_type.startswith(platform):
            return platform
    return None


def is_menu_page(page_type: str | None) -> bool:
    return bool(page_type) and page_type.endswith("-menu")


def extract_vendor_code(url: str, platform: str) -> str | None:
    pattern = VENDOR_CODE_PATTERNS.get(platform)
    if pattern is None:
        return None
    match = pattern.search(url or "")
    return match.group(1) if match else None


def counterpart_url(platform: str, vendor_code: str) -> str:
    """Menu URL of *vendor_code* on *platform*."""
    if platform == "snappfood":
        return f"https://snappfood.ir/restaurant/menu/{vendor_code}"
    return f"https://tapsi.food/vendor/{vendor_code}"
