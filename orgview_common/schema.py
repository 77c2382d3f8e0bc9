from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Sequence, Tuple


# Placeholders substituted for absent source values.
NO_HIERARCHY = "---"
DEFAULT_ROLE = "---"
DEFAULT_AREA = "No AISP"
DEFAULT_BUILDING = "No Building"
DEFAULT_CITY = "Unknown"
DEFAULT_PERSON_NAME = "Unnamed"
DEFAULT_VEHICLE_MODEL = "Vehicle"
DEFAULT_VEHICLE_PLATE = "—"
DEFAULT_VEHICLE_TYPE = "Patrol Vehicle"

DUPLICATE_POLICIES: Tuple[str, ...] = ("permit", "strict")


@dataclass(frozen=True)
class SheetSchema:
    """Logical sheet with the priority-ordered column candidates for each field."""

    role: str
    sheet_name: str
    fields: Mapping[str, Sequence[str]]  # logical field -> candidate columns


UNIT_FIELDS: Mapping[str, Sequence[str]] = {
    "key": ("id_unidade", "id"),
    "original_id": ("id",),
    "name": ("nome", "unidade"),
    "hierarchy": ("hierarquia", "hierarquia imediata", "dominio"),
    "area": ("aisp",),
    "building": ("predio", "prédio"),
    "city": ("cidade", "municipio", "município"),
}

FLEET_FIELDS: Mapping[str, Sequence[str]] = {
    "owner": ("id_unidade", "cod_unidade"),
    "id": ("id", "placa"),
    "model": ("modelo", "model"),
    "plate": ("placa", "plate"),
    "type": ("tipo", "type"),
}

PERSONNEL_FIELDS: Mapping[str, Sequence[str]] = {
    "owner": ("id_unidade", "cod_unidade"),
    "id": ("id", "matricula", "matrícula"),
    "name": ("nome", "name", "servidor"),
    "role": ("cargo", "funcao", "função", "posto"),
}

BUILDING_FIELDS: Mapping[str, Sequence[str]] = {
    "name": ("predio", "prédio"),
    "city": ("cidade", "municipio", "município"),
}

COMMANDER_FIELDS: Mapping[str, Sequence[str]] = {
    "area": ("aisp",),
    "commander_pm": ("responsavel_pm", "pm"),
    "delegate_pc": ("responsavel_pc", "pc"),
}


def _sheet_schemas() -> Dict[str, SheetSchema]:
    return {
        "units": SheetSchema("units", "UNIDADES", UNIT_FIELDS),
        "fleet": SheetSchema("fleet", "FROTA", FLEET_FIELDS),
        "buildings": SheetSchema("buildings", "PRÉDIOS", BUILDING_FIELDS),
        "commanders": SheetSchema("commanders", "RESPONSÁVEIS POR AISP", COMMANDER_FIELDS),
        "personnel": SheetSchema("personnel", "PESSOAL", PERSONNEL_FIELDS),
    }


SHEET_SCHEMAS: Dict[str, SheetSchema] = _sheet_schemas()
SHEET_ROLES: Tuple[str, ...] = tuple(SHEET_SCHEMAS)
# Roles read from the first workbook; personnel lives in the second one.
ORGANIZATION_ROLES: Tuple[str, ...] = ("units", "fleet", "buildings", "commanders")
PERSONNEL_ROLES: Tuple[str, ...] = ("personnel",)


def clean_column_name(name: object) -> str:
    """Trim and lower-case a column header so lookups are case-insensitive."""

    if name is None:
        return ""
    return str(name).strip().lower()


def _clean_candidates(candidates: Iterable[object]) -> Tuple[str, ...]:
    cleaned = []
    for candidate in candidates:
        col = clean_column_name(candidate)
        if col and col not in cleaned:
            cleaned.append(col)
    return tuple(cleaned)


def merge_column_synonyms(
    overrides: Mapping[str, Mapping[str, Iterable[str] | str]] | None,
    base: Mapping[str, Mapping[str, Sequence[str]]] | None = None,
) -> Dict[str, Dict[str, Tuple[str, ...]]]:
    """
    Merge per-field synonym overrides into the default chains.

    Overrides are role -> field -> candidate list (a bare string is a one-item
    list). An override replaces the whole chain for that field; fields that are
    not mentioned keep their defaults.
    """

    if base is None:
        base = {role: schema.fields for role, schema in SHEET_SCHEMAS.items()}
    merged: Dict[str, Dict[str, Tuple[str, ...]]] = {
        role: {field: _clean_candidates(chain) for field, chain in fields.items()}
        for role, fields in base.items()
    }

    if overrides:
        for role, fields in overrides.items():
            target = merged.setdefault(str(role), {})
            for field, chain in fields.items():
                if isinstance(chain, str):
                    chain = [chain]
                target[str(field)] = _clean_candidates(chain)
    return merged


FIELD_SYNONYMS: Dict[str, Dict[str, Tuple[str, ...]]] = merge_column_synonyms(None)
DEFAULT_SHEET_NAMES: Dict[str, str] = {role: schema.sheet_name for role, schema in SHEET_SCHEMAS.items()}
