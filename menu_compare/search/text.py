"""Text folding for Persian/Arabic script and a Persian-aware collation key.

The two platforms spell the same dish with different code points (Arabic
``ي``/``ك`` versus Persian ``ی``/``ک``, Arabic-Indic versus Persian digits,
optional diacritics). :func:`fold` maps those variants onto one canonical form
so fuzzy matching and sorting treat them alike.
"""
from __future__ import annotations

import re

_CHAR_FOLDS = {
    "ي": "ی",
    "ى": "ی",
    "ئ": "ی",
    "ك": "ک",
    "ة": "ه",
    "ۀ": "ه",
    "ە": "ه",
    "أ": "ا",
    "إ": "ا",
    "آ": "ا",
    "ٱ": "ا",
    "ؤ": "و",
}
for _i in range(10):
    _CHAR_FOLDS[chr(0x06F0 + _i)] = str(_i)  # Persian digits
    _CHAR_FOLDS[chr(0x0660 + _i)] = str(_i)  # Arabic-Indic digits

_FOLD_TABLE = str.maketrans(_CHAR_FOLDS)

# Tatweel and Arabic harakat.
_STRIP = re.compile("[\u0640\u064B-\u065F\u0670]")

PERSIAN_ALPHABET = "ابپتثجچحخدذرزژسشصضطظعغفقکگلمنوهی"
_ALPHABET_RANK = {ch: i for i, ch in enumerate(PERSIAN_ALPHABET)}


def fold(text: str) -> str:
    """Lowercase and canonicalize visually equivalent characters."""
    if not text:
        return ""
    return _STRIP.sub("", text.translate(_FOLD_TABLE)).lower()


def persian_to_western(text: str) -> str:
    """Replace Persian and Arabic-Indic digits with ASCII digits."""
    return text.translate(_FOLD_TABLE) if text else ""


def collation_key(text: str) -> tuple:
    """Sort key ordering Persian letters alphabetically.

    Unicode order puts ``پ چ ژ ک گ ی`` after the Arabic block, so plain string
    comparison files them at the end. Persian letters rank by alphabet
    position, everything else sorts after them by code point.
    """
    key = []
    for ch in fold(text):
        rank = _ALPHABET_RANK.get(ch)
        if rank is not None:
            key.append((0, rank))
        elif ch.isspace():
            key.append((-1, 0))
        else:
            key.append((1, ord(ch)))
    return tuple(key)
