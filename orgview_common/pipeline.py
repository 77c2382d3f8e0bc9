from __future__ import annotations

import logging
from typing import Iterable, List, Mapping, Sequence, Tuple

from .finalize import finalize_tree
from .hierarchy import build_hierarchy
from .index import build_cross_reference
from .models import Area, LoadReport
from .normalize import Row, normalize_rows
from .schema import FIELD_SYNONYMS, SHEET_ROLES

LOGGER = logging.getLogger(__name__)


def run_pipeline(
    sheets: Mapping[str, Iterable[Row]],
    *,
    synonyms: Mapping[str, Mapping[str, Sequence[str]]] | None = None,
    duplicate_policy: str = "permit",
) -> Tuple[List[Area], LoadReport]:
    """
    Turn raw sheet rows into the finalized area list.

    ``sheets`` maps a sheet role (units, fleet, buildings, commanders,
    personnel) to its raw rows; missing roles are treated as empty sheets.
    Returns (areas, report). Never raises for row-level problems.
    """

    synonyms = synonyms or FIELD_SYNONYMS
    report = LoadReport()

    normalized = {role: normalize_rows(sheets.get(role)) for role in SHEET_ROLES}
    report.sheet_row_counts = {role: len(rows) for role, rows in normalized.items()}
    for role, count in report.sheet_row_counts.items():
        LOGGER.debug("Sheet %s: %d rows", role, count)

    index = build_cross_reference(
        fleet_rows=normalized["fleet"],
        personnel_rows=normalized["personnel"],
        building_rows=normalized["buildings"],
        commander_rows=normalized["commanders"],
        synonyms=synonyms,
    )
    report.unindexed_rows = dict(index.unindexed)

    areas = build_hierarchy(
        normalized["units"],
        index,
        synonyms=synonyms,
        duplicate_policy=duplicate_policy,
        report=report,
    )
    areas = finalize_tree(areas)

    if report.skipped_missing_id:
        LOGGER.warning("Skipped %d unit rows without an id", report.skipped_missing_id)
    if report.duplicate_unit_ids:
        LOGGER.warning(
            "Duplicate unit ids (%s policy): %s",
            duplicate_policy,
            ", ".join(report.duplicate_unit_ids),
        )
    if report.orphan_fleet_rows or report.orphan_personnel_rows:
        LOGGER.warning(
            "Rows referencing unknown units: %d vehicles, %d people",
            report.orphan_fleet_rows,
            report.orphan_personnel_rows,
        )
    LOGGER.info("Loaded %d areas: %s", len(areas), report.summary())
    return areas, report
