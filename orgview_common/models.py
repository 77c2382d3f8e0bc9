from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Vehicle:
    id: str
    model: str
    plate: str
    type: str
    unit_id: str


@dataclass(frozen=True)
class Person:
    id: str
    name: str
    role: str
    unit_id: str


@dataclass(frozen=True)
class Unit:
    """A unit row joined with its fleet and personnel."""

    id: str  # join key
    original_id: str  # as formatted in the source sheet
    name: str
    hierarchy: str
    area_id: str
    building_id: str
    fleet: Tuple[Vehicle, ...] = ()
    people: Tuple[Person, ...] = ()


@dataclass(frozen=True)
class Building:
    id: str
    name: str
    city: str
    units: Tuple[Unit, ...] = ()


@dataclass(frozen=True)
class City:
    name: str
    buildings: Tuple[Building, ...] = ()


@dataclass(frozen=True)
class Area:
    """Top-level territory (AISP) with its commander names."""

    id: str
    name: str
    delegate_pc: str = ""
    commander_pm: str = ""
    cities: Tuple[City, ...] = ()


@dataclass
class LoadReport:
    """Diagnostics collected while loading and assembling the hierarchy."""

    sheet_row_counts: Dict[str, int] = field(default_factory=dict)
    units_loaded: int = 0
    skipped_missing_id: int = 0
    duplicate_unit_ids: List[str] = field(default_factory=list)
    dropped_duplicates: int = 0
    orphan_fleet_rows: int = 0
    orphan_personnel_rows: int = 0
    unindexed_rows: Dict[str, int] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def summary(self) -> str:
        if self.error:
            return f"load failed: {self.error}"
        return (
            f"{self.units_loaded} units loaded; "
            f"{self.skipped_missing_id} rows without unit id; "
            f"{len(self.duplicate_unit_ids)} duplicate ids ({self.dropped_duplicates} dropped); "
            f"{self.orphan_fleet_rows} orphan vehicles; "
            f"{self.orphan_personnel_rows} orphan people"
        )
