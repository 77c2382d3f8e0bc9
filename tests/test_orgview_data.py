import asyncio
from io import BytesIO
from pathlib import Path

import pytest
import requests

from orgview_browser import orgview_data
from orgview_browser.orgview_data import (
    SourceError,
    fetch_bytes,
    load_hierarchy,
    load_hierarchy_async,
    read_workbook_rows,
    select_sheet,
)
from orgview_common.config import AppConfig
from orgview_common.pipeline import run_pipeline
from orgview_samples import BUILDING_ROWS, PERSONNEL_ROWS, UNIT_ROWS, write_workbook


def _config(org_path, personnel_path):
    return AppConfig(organization_source=str(org_path), personnel_source=str(personnel_path))


def test_load_hierarchy_from_workbooks(workbooks):
    areas, report = load_hierarchy(_config(*workbooks), return_report=True)

    assert report.ok
    assert [area.id for area in areas] == ["1", "2", "10"]
    unit = next(a for a in areas if a.id == "10").cities[0].buildings[0].units[0]
    assert unit.original_id == "042"
    assert [v.model for v in unit.fleet] == ["Hilux", "Vehicle"]
    assert [p.name for p in unit.people] == ["Ana"]
    assert next(a for a in areas if a.id == "2").cities[0].name == "Parnaíba"


def test_missing_personnel_workbook_returns_empty_list(workbooks, tmp_path):
    org_path, _ = workbooks
    config = _config(org_path, Path(tmp_path) / "missing.xlsx")

    assert load_hierarchy(config) == []

    areas, report = load_hierarchy(config, return_report=True)
    assert areas == []
    assert not report.ok
    assert "missing.xlsx" in report.error


def test_unreachable_url_returns_empty_list(workbooks, monkeypatch):
    def fail(*args, **kwargs):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(orgview_data.requests, "get", fail)
    _, personnel_path = workbooks
    config = _config("https://example.invalid/Dados gerais.xlsx", personnel_path)

    assert load_hierarchy(config) == []


def test_fetch_bytes_accepts_bytes_and_file_objects(workbooks):
    org_path, _ = workbooks
    data = org_path.read_bytes()

    assert fetch_bytes(data) == data
    assert fetch_bytes(BytesIO(data)) == data
    assert fetch_bytes(str(org_path)) == data


def test_read_workbook_rows_rejects_garbage():
    with pytest.raises(SourceError):
        read_workbook_rows(b"definitely not a workbook", "garbage.xlsx")


def test_uploaded_sources_override_config(workbooks, tmp_path):
    org_path, personnel_path = workbooks
    config = _config(Path(tmp_path) / "nope.xlsx", Path(tmp_path) / "nope2.xlsx")

    areas = load_hierarchy(
        config,
        organization=BytesIO(org_path.read_bytes()),
        personnel=personnel_path.read_bytes(),
    )

    assert len(areas) == 3


def test_sheet_lookup_tolerates_accents_and_case(tmp_path):
    org_path = write_workbook(
        Path(tmp_path) / "org.xlsx",
        {"unidades": UNIT_ROWS, "PREDIOS": BUILDING_ROWS},
    )
    personnel_path = write_workbook(Path(tmp_path) / "people.xlsx", {"Pessoal": PERSONNEL_ROWS})

    areas, report = load_hierarchy(_config(org_path, personnel_path), return_report=True)

    assert report.units_loaded == 3
    assert report.sheet_row_counts["fleet"] == 0
    assert next(a for a in areas if a.id == "2").cities[0].name == "Parnaíba"


def test_select_sheet_missing_returns_no_rows():
    assert select_sheet({"UNIDADES": [{"id": 1}]}, "FROTA") == []
    assert select_sheet({"RESPONSÁVEIS POR AISP": [{"aisp": 1}]}, "responsaveis  por aisp") == [{"aisp": 1}]


def test_async_load_matches_sync_load(workbooks):
    config = _config(*workbooks)

    sync_areas = load_hierarchy(config)
    async_areas = asyncio.run(load_hierarchy_async(config))

    assert async_areas == sync_areas


def test_async_load_failure_returns_empty_list(tmp_path):
    config = _config(Path(tmp_path) / "a.xlsx", Path(tmp_path) / "b.xlsx")

    areas, report = asyncio.run(load_hierarchy_async(config, return_report=True))

    assert areas == []
    assert report.error


class _FakeResponse:
    def __init__(self, content, status_code=200):
        self.content = content
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error: Not Found")


def test_url_source_is_downloaded(workbooks, monkeypatch):
    org_path, personnel_path = workbooks
    calls = []

    def fake_get(url, timeout):
        calls.append((url, timeout))
        return _FakeResponse(org_path.read_bytes())

    monkeypatch.setattr(orgview_data.requests, "get", fake_get)
    config = _config("https://example.org/Dados gerais.xlsx", personnel_path)

    areas, report = load_hierarchy(config, return_report=True)

    assert report.ok
    assert [area.id for area in areas] == ["1", "2", "10"]
    assert calls == [("https://example.org/Dados gerais.xlsx", config.pipeline.request_timeout)]


def test_url_http_error_returns_empty_list(workbooks, monkeypatch):
    monkeypatch.setattr(orgview_data.requests, "get", lambda url, timeout: _FakeResponse(b"", 404))
    _, personnel_path = workbooks
    config = _config("https://example.org/missing.xlsx", personnel_path)

    with pytest.raises(SourceError):
        fetch_bytes("https://example.org/missing.xlsx")

    areas, report = load_hierarchy(config, return_report=True)
    assert areas == []
    assert "404" in report.error


def test_pandas_fallback_keeps_blank_cells_missing(tmp_path, monkeypatch):
    path = write_workbook(
        Path(tmp_path) / "fallback.xlsx",
        {
            "UNIDADES": [
                {"ID_UNIDADE": "5", "NOME": "Posto Sul", "AISP": None, "PREDIO": None},
                {"ID_UNIDADE": None, "NOME": "Sem id", "AISP": "3", "PREDIO": "Sede"},
            ],
            "FROTA": [{"ID_UNIDADE": 5, "MODELO": "Gol", "PLACA": None}],
        },
    )

    def no_polars(*args, **kwargs):
        raise RuntimeError("calamine unavailable")

    monkeypatch.setattr(orgview_data.pl, "read_excel", no_polars)
    sheets = read_workbook_rows(path.read_bytes(), "fallback.xlsx")

    areas, report = run_pipeline(
        {"units": select_sheet(sheets, "UNIDADES"), "fleet": select_sheet(sheets, "FROTA")}
    )

    assert report.skipped_missing_id == 1
    assert [area.id for area in areas] == ["No AISP"]
    building = areas[0].cities[0].buildings[0]
    assert building.name == "No Building"
    assert [(v.model, v.plate) for v in building.units[0].fleet] == [("Gol", "—")]
