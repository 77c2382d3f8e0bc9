"""
Cross-reference lookups between the unit sheet and the auxiliary sheets.

Each table is built once per load and exposed read-only. Lookups for unknown
keys return an empty group (or an empty row) so callers can iterate the result
without checking for None. No referential-integrity checks happen here: rows
pointing at units that never appear in the unit sheet are simply never asked
for.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

from .normalize import Row, join_key, name_key, pick
from .schema import FIELD_SYNONYMS

_EMPTY_ROW: Mapping[str, Any] = MappingProxyType({})


def group_rows_by_key(
    rows: Iterable[Row], candidates: Sequence[str], key_func=join_key
) -> Tuple[Mapping[str, Tuple[Row, ...]], int]:
    """Group rows by the key found in ``candidates``; returns (groups, unindexed_count)."""

    groups: Dict[str, List[Row]] = {}
    unindexed = 0
    for row in rows:
        key = key_func(pick(row, candidates))
        if not key:
            unindexed += 1
            continue
        groups.setdefault(key, []).append(row)
    return MappingProxyType({k: tuple(v) for k, v in groups.items()}), unindexed


def last_row_by_key(
    rows: Iterable[Row], candidates: Sequence[str], key_func=join_key
) -> Tuple[Mapping[str, Row], int]:
    """Index one row per key; later rows overwrite earlier ones."""

    latest: Dict[str, Row] = {}
    unindexed = 0
    for row in rows:
        key = key_func(pick(row, candidates))
        if not key:
            unindexed += 1
            continue
        latest[key] = row
    return MappingProxyType(latest), unindexed


@dataclass(frozen=True)
class CrossReferenceIndex:
    fleet_by_unit: Mapping[str, Tuple[Row, ...]] = field(default_factory=lambda: MappingProxyType({}))
    personnel_by_unit: Mapping[str, Tuple[Row, ...]] = field(default_factory=lambda: MappingProxyType({}))
    building_by_name: Mapping[str, Row] = field(default_factory=lambda: MappingProxyType({}))
    commander_by_area: Mapping[str, Row] = field(default_factory=lambda: MappingProxyType({}))
    unindexed: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))

    def fleet_for(self, unit_key: str) -> Tuple[Row, ...]:
        return self.fleet_by_unit.get(unit_key, ())

    def personnel_for(self, unit_key: str) -> Tuple[Row, ...]:
        return self.personnel_by_unit.get(unit_key, ())

    def building_for(self, building_name: str) -> Mapping[str, Any]:
        return self.building_by_name.get(name_key(building_name), _EMPTY_ROW)

    def commander_for(self, area_id: str) -> Mapping[str, Any]:
        return self.commander_by_area.get(join_key(area_id), _EMPTY_ROW)


def build_cross_reference(
    fleet_rows: Iterable[Row] = (),
    personnel_rows: Iterable[Row] = (),
    building_rows: Iterable[Row] = (),
    commander_rows: Iterable[Row] = (),
    synonyms: Mapping[str, Mapping[str, Sequence[str]]] | None = None,
) -> CrossReferenceIndex:
    """
    Build the four lookup tables from already-normalized rows.

    - fleet and personnel are grouped by owning unit key, in source order
    - buildings are keyed by case-insensitive name, last row wins
    - commanders are keyed by area key, last row wins
    """

    synonyms = synonyms or FIELD_SYNONYMS

    fleet, fleet_skipped = group_rows_by_key(fleet_rows, synonyms["fleet"]["owner"])
    personnel, personnel_skipped = group_rows_by_key(personnel_rows, synonyms["personnel"]["owner"])
    buildings, buildings_skipped = last_row_by_key(
        building_rows, synonyms["buildings"]["name"], key_func=name_key
    )
    commanders, commanders_skipped = last_row_by_key(commander_rows, synonyms["commanders"]["area"])

    return CrossReferenceIndex(
        fleet_by_unit=fleet,
        personnel_by_unit=personnel,
        building_by_name=buildings,
        commander_by_area=commanders,
        unindexed=MappingProxyType(
            {
                "fleet": fleet_skipped,
                "personnel": personnel_skipped,
                "buildings": buildings_skipped,
                "commanders": commanders_skipped,
            }
        ),
    )
