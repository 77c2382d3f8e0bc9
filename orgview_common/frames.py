from __future__ import annotations

from dataclasses import asdict, fields
from typing import Dict, Iterable, Sequence, Type

import polars as pl

from .models import Area

HIERARCHY_FRAME_COLUMNS: Sequence[str] = (
    "area_id",
    "area_name",
    "delegate_pc",
    "commander_pm",
    "city",
    "building",
    "unit_id",
    "unit_original_id",
    "unit_name",
    "hierarchy",
    "vehicle_count",
    "person_count",
)


def hierarchy_to_frame(areas: Iterable[Area]) -> pl.DataFrame:
    """
    Flatten the tree to one row per unit, in tree order.

    Columns follow HIERARCHY_FRAME_COLUMNS; an empty tree gives an empty frame
    with the same columns.
    """

    rows = []
    for area in areas:
        for city in area.cities:
            for building in city.buildings:
                for unit in building.units:
                    rows.append(
                        {
                            "area_id": area.id,
                            "area_name": area.name,
                            "delegate_pc": area.delegate_pc,
                            "commander_pm": area.commander_pm,
                            "city": city.name,
                            "building": building.name,
                            "unit_id": unit.id,
                            "unit_original_id": unit.original_id,
                            "unit_name": unit.name,
                            "hierarchy": unit.hierarchy,
                            "vehicle_count": len(unit.fleet),
                            "person_count": len(unit.people),
                        }
                    )

    schema = {col: pl.Utf8 for col in HIERARCHY_FRAME_COLUMNS}
    schema["vehicle_count"] = pl.Int64
    schema["person_count"] = pl.Int64
    return pl.DataFrame(rows, schema=schema)


def records_to_frame(records: Iterable[object], record_type: Type) -> pl.DataFrame:
    """Frame of vehicles or people; keeps the dataclass columns even when empty."""

    columns = [f.name for f in fields(record_type)]
    data = [asdict(record) for record in records]
    return pl.DataFrame(data, schema={col: pl.Utf8 for col in columns})


def hierarchy_counts(areas: Iterable[Area]) -> Dict[str, int]:
    """Totals per level for summary cards."""

    counts = {"Areas": 0, "Cities": 0, "Buildings": 0, "Units": 0, "Vehicles": 0, "People": 0}
    for area in areas:
        counts["Areas"] += 1
        for city in area.cities:
            counts["Cities"] += 1
            for building in city.buildings:
                counts["Buildings"] += 1
                for unit in building.units:
                    counts["Units"] += 1
                    counts["Vehicles"] += len(unit.fleet)
                    counts["People"] += len(unit.people)
    return counts
