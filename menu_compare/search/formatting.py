from __future__ import annotations

import math
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import ComparisonRecord

_PERSIAN_DIGITS = str.maketrans("0123456789,", "۰۱۲۳۴۵۶۷۸۹٬")

PLATFORM_LABELS = {"snappfood": "اسنپ‌فود", "tapsifood": "تپسی‌فود"}


def js_round(value: float) -> int:
    """Round half up, matching ``Math.round`` (``js_round(2.5) == 3``)."""
    return int(math.floor(value + 0.5))


def format_number(value: float | int | None, persian_digits: bool = True) -> str:
    """Render *value* with thousands separators, in Persian digits by default."""
    number = js_round(value or 0)
    text = f"{number:,}"
    return text.translate(_PERSIAN_DIGITS) if persian_digits else text


def comparison_text(record: ComparisonRecord, counterpart: str = "tapsifood") -> str:
    """One-line summary of how the counterpart platform's price compares."""
    label = PLATFORM_LABELS.get(counterpart, counterpart)
    amount = format_number(abs(record.price_diff))
    if record.price_diff == 0:
        return f"سفارش از {label} (پیک رایگان)"
    if record.price_diff > 0:
        return f"{record.percent_diff}% ارزان‌تر در {label} ({amount} تومان کمتر)"
    return f"{record.percent_diff}% گران‌تر در {label} ({amount} تومان بیشتر)"


def search_status(result_count: int, elapsed_ms: float) -> str:
    return f"{format_number(result_count)} نتیجه در {format_number(elapsed_ms)} میلی‌ثانیه"
