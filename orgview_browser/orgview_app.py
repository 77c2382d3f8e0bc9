from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

import polars as pl
import streamlit as st

from orgview_browser.orgview_data import load_hierarchy
from orgview_common.config import ConfigError, load_app_config
from orgview_common.frames import hierarchy_counts, hierarchy_to_frame, records_to_frame
from orgview_common.models import Area, Building, City, LoadReport, Person, Unit, Vehicle
from orgview_common.schema import NO_HIERARCHY


@dataclass
class Selection:
    """Current drill-down selections."""

    area: Optional[Area] = None
    city: Optional[City] = None
    building: Optional[Building] = None


def polars_to_csv_bytes(df: pl.DataFrame) -> bytes:
    """Serialize a Polars frame to UTF-8 CSV bytes for download."""

    return df.write_csv().encode("utf-8")


def select_child(label: str, options: Sequence, name_of, key: str):
    """Select box over tree children; returns None when there is nothing to pick."""

    if not options:
        return None
    chosen = st.sidebar.selectbox(
        label,
        options=list(range(len(options))),
        format_func=lambda i: name_of(options[i]),
        key=key,
    )
    return options[chosen]


def load_data() -> tuple[List[Area], LoadReport, str]:
    """Handle source selection (config or uploads) and load the tree."""

    st.sidebar.header("Data Source")
    config_path = st.sidebar.text_input(
        "Config file (YAML, optional)", value="", key="config_path"
    ).strip()
    uploaded_org = st.sidebar.file_uploader(
        "Organization workbook", type=["xls", "xlsx"], key="org_upload"
    )
    uploaded_personnel = st.sidebar.file_uploader(
        "Personnel workbook", type=["xls", "xlsx"], key="personnel_upload"
    )

    try:
        config = load_app_config(Path(config_path).expanduser() if config_path else None)
    except ConfigError as exc:
        st.error(f"Config error: {exc}")
        st.stop()

    with st.spinner("Loading workbooks..."):
        areas, report = load_hierarchy(
            config,
            organization=uploaded_org,
            personnel=uploaded_personnel,
            return_report=True,
        )

    source_label = uploaded_org.name if uploaded_org is not None else config.organization_source
    return areas, report, source_label


def render_summary_cards(areas: Sequence[Area]) -> None:
    counts = hierarchy_counts(areas)
    cols = st.columns(len(counts))
    for col, (label, count) in zip(cols, counts.items()):
        col.metric(label, f"{count}")


def render_report(report: LoadReport) -> None:
    with st.expander("Load report"):
        st.write(report.summary())
        st.json(
            {
                "sheet_row_counts": report.sheet_row_counts,
                "unindexed_rows": report.unindexed_rows,
                "duplicate_unit_ids": report.duplicate_unit_ids,
            }
        )


def render_area_header(area: Area) -> None:
    st.subheader(area.name)
    left, right = st.columns(2)
    left.markdown(f"**Civil police delegate:** {area.delegate_pc or 'not recorded'}")
    right.markdown(f"**Military police commander:** {area.commander_pm or 'not recorded'}")


def render_unit(unit: Unit) -> None:
    """Unit card: hierarchy label plus vehicle and personnel tables."""

    title = f"{unit.name} · {len(unit.fleet)} vehicles · {len(unit.people)} people"
    with st.expander(title):
        if unit.hierarchy != NO_HIERARCHY:
            st.caption(f"Reports to: {unit.hierarchy}")
        st.caption(f"Unit id: {unit.original_id or unit.id}")

        st.markdown(f"**Fleet ({len(unit.fleet)})**")
        if unit.fleet:
            st.dataframe(
                records_to_frame(unit.fleet, Vehicle).drop("unit_id").to_pandas(),
                use_container_width=True,
                hide_index=True,
            )
        else:
            st.info("No vehicles assigned.")

        st.markdown(f"**Personnel ({len(unit.people)})**")
        if unit.people:
            st.dataframe(
                records_to_frame(unit.people, Person).drop("unit_id").to_pandas(),
                use_container_width=True,
                hide_index=True,
            )
        else:
            st.info("No personnel assigned.")


def render_drilldown(areas: Sequence[Area]) -> Selection:
    st.sidebar.header("Drill down")
    selection = Selection()
    selection.area = select_child("Territory (AISP)", list(areas), lambda a: a.name, "area_select")
    if selection.area is None:
        return selection
    selection.city = select_child(
        "City", list(selection.area.cities), lambda c: c.name, f"city_select_{selection.area.id}"
    )
    if selection.city is None:
        return selection
    selection.building = select_child(
        "Building",
        list(selection.city.buildings),
        lambda b: f"{b.name} ({len(b.units)} units)",
        f"building_select_{selection.area.id}_{selection.city.name}",
    )
    return selection


def main() -> None:
    st.set_page_config(page_title="Organization Viewer", layout="wide")
    st.title("Organizational Structure")
    st.caption("Drill down: Territory (AISP) → City → Building → Unit → Fleet & Personnel.")

    areas, report, source_label = load_data()

    if not report.ok:
        st.error(f"Failed to load data from {source_label}: {report.error}")
        st.stop()
    if not areas:
        st.warning(
            f"No units found in {source_label}. Check the sheet names and the unit id column."
        )
        render_report(report)
        st.stop()

    st.success(f"Loaded {report.units_loaded} units from {source_label}")
    render_summary_cards(areas)
    render_report(report)

    selection = render_drilldown(areas)
    if selection.area is not None:
        render_area_header(selection.area)
    if selection.building is not None:
        st.markdown(f"### {selection.building.name} · {selection.building.city}")
        for unit in selection.building.units:
            render_unit(unit)

    with st.expander("All units (table)"):
        frame = hierarchy_to_frame(areas)
        st.dataframe(frame.to_pandas(), use_container_width=True, hide_index=True, height=400)
        st.download_button(
            label="Download CSV",
            data=polars_to_csv_bytes(frame),
            file_name="organization_units.csv",
            mime="text/csv",
        )


if __name__ == "__main__":
    main()
