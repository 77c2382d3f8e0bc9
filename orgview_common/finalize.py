from __future__ import annotations

import re
import unicodedata
from dataclasses import replace
from typing import Iterable, List, Tuple

from .models import Area
from .normalize import fold_accents

_DIGIT_RUN = re.compile(r"(\d+)")


def natural_sort_key(value: str) -> Tuple[Tuple[Tuple[int, int, str], ...], str]:
    """
    Numeric-aware ordering key: digit runs compare by value ("2" < "10"),
    by length then digits, so runs of any length are comparable.

    Digit chunks sort ahead of text chunks at the same position; the raw value
    breaks remaining ties so the order is total.
    """

    parts = []
    for chunk in _DIGIT_RUN.split(value):
        if not chunk:
            continue
        if chunk.isdecimal():
            digits = "".join(str(unicodedata.decimal(ch)) for ch in chunk).lstrip("0")
            parts.append((0, len(digits), digits))
        else:
            parts.append((1, 0, fold_accents(chunk)))
    return tuple(parts), value


def locale_sort_key(value: str) -> Tuple[str, str]:
    """Accent- and case-insensitive ordering ("Água" sorts with "Agua", before "Beta")."""

    return fold_accents(value), value


def finalize_tree(areas: Iterable[Area]) -> List[Area]:
    """
    Order areas by natural id and each area's cities by name.

    Buildings and units are left in insertion order.
    """

    finalized = [
        replace(area, cities=tuple(sorted(area.cities, key=lambda city: locale_sort_key(city.name))))
        for area in areas
    ]
    finalized.sort(key=lambda area: natural_sort_key(area.id))
    return finalized
