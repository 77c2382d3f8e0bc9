from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from .index import CrossReferenceIndex
from .models import Area, Building, City, LoadReport, Person, Unit, Vehicle
from .normalize import Row, join_key, name_key, pick
from .schema import (
    DEFAULT_AREA,
    DEFAULT_BUILDING,
    DEFAULT_CITY,
    DEFAULT_PERSON_NAME,
    DEFAULT_ROLE,
    DEFAULT_VEHICLE_MODEL,
    DEFAULT_VEHICLE_PLATE,
    DEFAULT_VEHICLE_TYPE,
    DUPLICATE_POLICIES,
    FIELD_SYNONYMS,
    NO_HIERARCHY,
)

LOGGER = logging.getLogger(__name__)


@dataclass
class _BuildingDraft:
    name: str
    city: str
    units: List[Unit] = field(default_factory=list)

    def freeze(self) -> Building:
        return Building(id=self.name, name=self.name, city=self.city, units=tuple(self.units))


@dataclass
class _CityDraft:
    name: str
    buildings: Dict[str, _BuildingDraft] = field(default_factory=dict)

    def building(self, building_name: str) -> _BuildingDraft:
        draft = self.buildings.get(building_name)
        if draft is None:
            draft = self.buildings[building_name] = _BuildingDraft(building_name, self.name)
        return draft

    def freeze(self) -> City:
        return City(name=self.name, buildings=tuple(b.freeze() for b in self.buildings.values()))


@dataclass
class _AreaDraft:
    id: str
    delegate_pc: str
    commander_pm: str
    cities: Dict[str, _CityDraft] = field(default_factory=dict)  # keyed by name_key

    def city(self, city_name: str) -> _CityDraft:
        key = name_key(city_name)
        draft = self.cities.get(key)
        if draft is None:
            draft = self.cities[key] = _CityDraft(city_name)
        return draft

    def freeze(self) -> Area:
        return Area(
            id=self.id,
            name=DEFAULT_AREA if self.id == DEFAULT_AREA else f"AISP {self.id}",
            delegate_pc=self.delegate_pc,
            commander_pm=self.commander_pm,
            cities=tuple(c.freeze() for c in self.cities.values()),
        )


def build_vehicles(rows: Iterable[Row], unit_id: str, fields: Mapping[str, Sequence[str]]) -> Tuple[Vehicle, ...]:
    """Map raw fleet rows to vehicles, substituting placeholders for missing values."""

    vehicles: List[Vehicle] = []
    for position, row in enumerate(rows):
        vehicles.append(
            Vehicle(
                id=pick(row, fields["id"]) or f"fleet-{unit_id}-{position}",
                model=pick(row, fields["model"]) or DEFAULT_VEHICLE_MODEL,
                plate=pick(row, fields["plate"]) or DEFAULT_VEHICLE_PLATE,
                type=pick(row, fields["type"]) or DEFAULT_VEHICLE_TYPE,
                unit_id=unit_id,
            )
        )
    return tuple(vehicles)


def build_people(rows: Iterable[Row], unit_id: str, fields: Mapping[str, Sequence[str]]) -> Tuple[Person, ...]:
    people: List[Person] = []
    for position, row in enumerate(rows):
        people.append(
            Person(
                id=pick(row, fields["id"]) or f"person-{unit_id}-{position}",
                name=pick(row, fields["name"]) or DEFAULT_PERSON_NAME,
                role=pick(row, fields["role"]) or DEFAULT_ROLE,
                unit_id=unit_id,
            )
        )
    return tuple(people)


def build_hierarchy(
    unit_rows: Iterable[Row],
    index: CrossReferenceIndex,
    *,
    synonyms: Mapping[str, Mapping[str, Sequence[str]]] | None = None,
    duplicate_policy: str = "permit",
    report: LoadReport | None = None,
) -> List[Area]:
    """
    Assemble Area -> City -> Building -> Unit from normalized unit rows.

    Rows are visited once, in source order. Rows without a unit key are
    skipped. With ``duplicate_policy="permit"`` a repeated unit key yields a
    second Unit; ``"strict"`` keeps only the first one. Areas, cities and
    buildings come out in first-seen order (see ``finalize_tree`` for sorting).
    """

    if duplicate_policy not in DUPLICATE_POLICIES:
        raise ValueError(f"duplicate_policy must be one of {', '.join(DUPLICATE_POLICIES)}")

    synonyms = synonyms or FIELD_SYNONYMS
    unit_fields = synonyms["units"]
    building_fields = synonyms["buildings"]
    commander_fields = synonyms["commanders"]

    areas: Dict[str, _AreaDraft] = {}
    seen_keys: set[str] = set()
    duplicates: Dict[str, None] = {}  # ordered set
    skipped = 0
    dropped = 0
    built = 0

    for row in unit_rows:
        unit_key = join_key(pick(row, unit_fields["key"]))
        if not unit_key:
            skipped += 1
            continue

        if unit_key in seen_keys:
            duplicates.setdefault(unit_key)
            if duplicate_policy == "strict":
                dropped += 1
                continue
        seen_keys.add(unit_key)

        area_id = join_key(pick(row, unit_fields["area"])) or DEFAULT_AREA
        area = areas.get(area_id)
        if area is None:
            commander = index.commander_for(area_id)
            area = areas[area_id] = _AreaDraft(
                id=area_id,
                delegate_pc=pick(commander, commander_fields["delegate_pc"]),
                commander_pm=pick(commander, commander_fields["commander_pm"]),
            )

        building_name = pick(row, unit_fields["building"]) or DEFAULT_BUILDING
        building_meta = index.building_for(building_name)
        city_name = (
            pick(row, unit_fields["city"])
            or pick(building_meta, building_fields["city"])
            or DEFAULT_CITY
        )
        building = area.city(city_name).building(building_name)

        building.units.append(
            Unit(
                id=unit_key,
                original_id=pick(row, unit_fields["original_id"]),
                name=pick(row, unit_fields["name"]) or f"Unit {unit_key}",
                hierarchy=pick(row, unit_fields["hierarchy"]) or NO_HIERARCHY,
                area_id=area_id,
                building_id=building_name,
                fleet=build_vehicles(index.fleet_for(unit_key), unit_key, synonyms["fleet"]),
                people=build_people(index.personnel_for(unit_key), unit_key, synonyms["personnel"]),
            )
        )
        built += 1

    if report is not None:
        report.units_loaded = built
        report.skipped_missing_id = skipped
        report.duplicate_unit_ids = list(duplicates)
        report.dropped_duplicates = dropped
        report.orphan_fleet_rows = sum(
            len(rows) for key, rows in index.fleet_by_unit.items() if key not in seen_keys
        )
        report.orphan_personnel_rows = sum(
            len(rows) for key, rows in index.personnel_by_unit.items() if key not in seen_keys
        )

    LOGGER.debug("Built %d units across %d areas (%d rows without id)", built, len(areas), skipped)
    return [draft.freeze() for draft in areas.values()]
