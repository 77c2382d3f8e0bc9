"""
Source loading for the organization viewer.

Two workbooks feed the tree: the organization workbook (units, fleet,
buildings, area commanders) and the personnel workbook. Each source may be a
local path, an http(s) URL, raw bytes, or an uploaded file object.
`load_hierarchy` fetches both, reads every sheet into rows of dicts, and runs
the shared pipeline from `orgview_common`. A source that cannot be fetched or
parsed does not raise: the result is an empty list and the failure is logged
(and recorded on the LoadReport when ``return_report=True``).
"""

from __future__ import annotations

import asyncio
import logging
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, List, Mapping, Tuple

import polars as pl
import requests

from orgview_common.config import AppConfig, is_url, load_app_config
from orgview_common.models import Area, LoadReport
from orgview_common.normalize import fold_accents
from orgview_common.pipeline import run_pipeline
from orgview_common.schema import ORGANIZATION_ROLES, PERSONNEL_ROLES

try:
    import streamlit as st
except ImportError:  # Streamlit is required for the app but keep imports lazy for library usage.
    st = None

LOGGER = logging.getLogger(__name__)

SheetRows = Dict[str, List[Dict[str, Any]]]


class SourceError(RuntimeError):
    """A workbook could not be retrieved or parsed."""


def _cache_data(func):
    """Wrap a function in st.cache_data when Streamlit is available."""

    if st is None:
        return func
    return st.cache_data(show_spinner=False)(func)


def fetch_bytes(source: Any, *, timeout: float = 30.0) -> bytes:
    """
    Return the raw bytes of a workbook source.

    Accepts bytes, BytesIO, objects exposing getvalue() (Streamlit uploads),
    http(s) URLs and filesystem paths. Raises SourceError on failure.
    """

    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    if hasattr(source, "getvalue"):
        return source.getvalue()

    text = str(source)
    if is_url(text):
        try:
            response = requests.get(text, timeout=timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise SourceError(f"Failed to fetch {text}: {exc}") from exc
        return response.content

    path = Path(text).expanduser()
    try:
        return path.read_bytes()
    except OSError as exc:
        raise SourceError(f"Failed to read {path}: {exc}") from exc


@_cache_data
def read_workbook_rows(data: bytes, label: str = "in-memory bytes") -> SheetRows:
    """
    Read every sheet of an Excel workbook into a list of row dicts.

    Uses polars.read_excel when it can, otherwise falls back to pandas. Raises
    SourceError when neither reader can parse the bytes.
    """

    try:
        frames = pl.read_excel(BytesIO(data), sheet_id=0, raise_if_empty=False)
        return {str(name): frame.to_dicts() for name, frame in frames.items()}
    except Exception as exc:
        LOGGER.info("polars.read_excel failed for %s; falling back to pandas. %s", label, exc)

    try:
        import pandas as pd

        sheets = pd.read_excel(BytesIO(data), sheet_name=None, dtype=object)
    except Exception as exc:
        raise SourceError(f"Could not parse workbook {label}: {exc}") from exc

    return {str(name): frame.to_dict(orient="records") for name, frame in sheets.items()}


def select_sheet(sheets: Mapping[str, List[Dict[str, Any]]], name: str) -> List[Dict[str, Any]]:
    """
    Rows of the sheet called ``name``; falls back to an accent/case-insensitive
    match ("PREDIOS" finds "PRÉDIOS"). A missing sheet yields no rows.
    """

    if name in sheets:
        return sheets[name]
    wanted = " ".join(fold_accents(name).split())
    for sheet_name, rows in sheets.items():
        if " ".join(fold_accents(sheet_name).split()) == wanted:
            return rows
    LOGGER.warning("Sheet %r not found; available: %s", name, ", ".join(sheets) or "[]")
    return []


def _source_label(source: Any) -> str:
    return str(getattr(source, "name", None) or (source if isinstance(source, (str, Path)) else "in-memory bytes"))


def _assemble(
    config: AppConfig, organization: Tuple[bytes, str], personnel: Tuple[bytes, str]
) -> Tuple[List[Area], LoadReport]:
    org_sheets = read_workbook_rows(*organization)
    personnel_sheets = read_workbook_rows(*personnel)

    rows: SheetRows = {}
    for role in ORGANIZATION_ROLES:
        rows[role] = select_sheet(org_sheets, config.sheet_names[role])
    for role in PERSONNEL_ROLES:
        rows[role] = select_sheet(personnel_sheets, config.sheet_names[role])

    return run_pipeline(
        rows,
        synonyms=config.column_synonyms,
        duplicate_policy=config.pipeline.duplicate_units,
    )


def _failed(exc: SourceError) -> Tuple[List[Area], LoadReport]:
    LOGGER.error("Could not load organization data: %s", exc)
    return [], LoadReport(error=str(exc))


def load_hierarchy(
    config: AppConfig | None = None,
    *,
    organization: Any | None = None,
    personnel: Any | None = None,
    return_report: bool = False,
) -> List[Area] | Tuple[List[Area], LoadReport]:
    """
    Load both workbooks and return the finalized area list.

    ``organization`` / ``personnel`` override the configured sources (paths,
    URLs, bytes or uploaded files). Returns (areas, report) when
    return_report=True.
    """

    config = config or load_app_config()
    org_source = organization if organization is not None else config.organization_source
    personnel_source = personnel if personnel is not None else config.personnel_source
    timeout = config.pipeline.request_timeout

    try:
        org_bytes = fetch_bytes(org_source, timeout=timeout)
        personnel_bytes = fetch_bytes(personnel_source, timeout=timeout)
        areas, report = _assemble(
            config,
            (org_bytes, _source_label(org_source)),
            (personnel_bytes, _source_label(personnel_source)),
        )
    except SourceError as exc:
        areas, report = _failed(exc)

    if return_report:
        return areas, report
    return areas


async def load_hierarchy_async(
    config: AppConfig | None = None,
    *,
    organization: Any | None = None,
    personnel: Any | None = None,
    return_report: bool = False,
) -> List[Area] | Tuple[List[Area], LoadReport]:
    """Awaitable `load_hierarchy`; both workbooks are fetched in worker threads."""

    config = config or load_app_config()
    org_source = organization if organization is not None else config.organization_source
    personnel_source = personnel if personnel is not None else config.personnel_source
    timeout = config.pipeline.request_timeout

    try:
        org_bytes, personnel_bytes = await asyncio.gather(
            asyncio.to_thread(fetch_bytes, org_source, timeout=timeout),
            asyncio.to_thread(fetch_bytes, personnel_source, timeout=timeout),
        )
        areas, report = _assemble(
            config,
            (org_bytes, _source_label(org_source)),
            (personnel_bytes, _source_label(personnel_source)),
        )
    except SourceError as exc:
        areas, report = _failed(exc)

    if return_report:
        return areas, report
    return areas


__all__ = [
    "SourceError",
    "fetch_bytes",
    "read_workbook_rows",
    "select_sheet",
    "load_hierarchy",
    "load_hierarchy_async",
]
