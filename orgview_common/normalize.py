from __future__ import annotations

import math
import re
import unicodedata
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Sequence

from .schema import clean_column_name

Row = Mapping[str, Any]

_NUMERIC_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
# Numbers whose magnitude is beyond 10**64 (or below 10**-64) keep their text form.
_MAX_KEY_EXPONENT = 64
# pandas/polars missing markers that are neither None nor float NaN.
_MISSING_TYPE_NAMES = {"NAType", "NaTType"}


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float):
        return math.isnan(value)
    return type(value).__name__ in _MISSING_TYPE_NAMES


def norm_text(value: Any) -> str:
    """Convert any cell value to a trimmed string; missing cells become ""."""

    if _is_missing(value):
        return ""
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def join_key(value: Any) -> str:
    """
    Canonical key for identifier cells.

    Numeric-looking values collapse to one decimal form so "007", "7", "7.0"
    and 7 all produce "7". Anything else is the trimmed text.
    """

    text = norm_text(value)
    if not text or not _NUMERIC_RE.match(text):
        return text
    try:
        number = Decimal(text)
    except InvalidOperation:
        return text
    if number.is_zero():
        return "0"
    if abs(number.adjusted()) > _MAX_KEY_EXPONENT:
        return text
    if number == number.to_integral_value():
        return str(int(number))
    return format(number.normalize(), "f")


def name_key(value: Any) -> str:
    """Case- and whitespace-insensitive form used to match names."""

    return " ".join(norm_text(value).split()).casefold()


def fold_accents(text: str) -> str:
    """Strip diacritics and casefold ("PRÉDIOS" -> "predios")."""

    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()


def normalize_row(row: Row) -> Dict[str, Any]:
    """
    Return a copy of ``row`` whose keys are trimmed and lower-cased.

    When two headers collapse to the same key the first non-empty value wins.
    """

    normalized: Dict[str, Any] = {}
    for raw_key, value in row.items():
        key = clean_column_name(raw_key)
        if not key:
            continue
        if key in normalized and norm_text(normalized[key]):
            continue
        normalized[key] = value
    return normalized


def normalize_rows(rows: Iterable[Row] | None) -> List[Dict[str, Any]]:
    if not rows:
        return []
    return [normalize_row(row) for row in rows]


def pick(row: Row, candidates: Sequence[str]) -> str:
    """First non-empty value among ``candidates`` (in priority order), else ""."""

    for column in candidates:
        text = norm_text(row.get(column))
        if text:
            return text
    return ""
