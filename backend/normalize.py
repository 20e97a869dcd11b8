# Text normalization - single canonical form for every dedup key and label
from __future__ import annotations

import re
from typing import Any

# Arabic code points that intake forms produce for Persian letters
_LETTER_VARIANTS = str.maketrans({
    "ي": "ی",  # ي -> ی
    "ك": "ک",  # ك -> ک
})

_PERSIAN_DIGITS = str.maketrans({
    "۰": "0", "۱": "1", "۲": "2", "۳": "3", "۴": "4",
    "۵": "5", "۶": "6", "۷": "7", "۸": "8", "۹": "9",
    "٠": "0", "١": "1", "٢": "2", "٣": "3", "٤": "4",
    "٥": "5", "٦": "6", "٧": "7", "٨": "8", "٩": "9",
})

_WHITESPACE = re.compile(r"\s+")


def normalize_text(value: Any) -> str:
    """Unify Persian letter variants, collapse whitespace, trim. Empty for None."""
    if value is None:
        return ""
    if not isinstance(value, str):
        value = str(value)
    if not value:
        return ""
    return _WHITESPACE.sub(" ", value.translate(_LETTER_VARIANTS)).strip()


def normalize_name(value: Any) -> str:
    """Dedup key: normalized text, lowercased."""
    return normalize_text(value).lower()


def normalize_digits(value: str) -> str:
    """Convert Persian and Arabic-Indic digits to ASCII."""
    return value.translate(_PERSIAN_DIGITS)
