from pathlib import Path

import pandas as pd

UNIT_ROWS = [
    {
        "ID": "042",
        "id_unidade": "042",
        "NOME": "1º BPM",
        "AISP": "10",
        "PREDIO": "Quartel Central",
        "CIDADE": "Teresina",
        "HIERARQUIA IMEDIATA": "CPC",
    },
    {"ID": "7", "id_unidade": "7", "NOME": "Delegacia Regional", "AISP": "2", "PREDIO": "Sede DP", "CIDADE": ""},
    {"ID": "", "id_unidade": "", "NOME": "Linha sem id", "AISP": "1", "PREDIO": "Nenhum", "CIDADE": "Altos"},
    {"ID": "8", "id_unidade": "", "NOME": "Posto Avançado", "AISP": "1", "PREDIO": "Posto Norte", "CIDADE": ""},
]

FLEET_ROWS = [
    {"ID_UNIDADE": "42", "MODELO": "Hilux", "PLACA": "ABC1234", "TIPO": "Caminhonete"},
    {"ID_UNIDADE": "42", "MODELO": "", "PLACA": "", "TIPO": ""},
    {"ID_UNIDADE": "999", "MODELO": "Orfã", "PLACA": "ZZZ0000", "TIPO": "Moto"},
]

BUILDING_ROWS = [
    {"PREDIO": "sede dp", "CIDADE": "Parnaíba"},
]

COMMANDER_ROWS = [
    {"AISP": "10", "RESPONSAVEL_PM": "Cel. Silva", "RESPONSAVEL_PC": "Dr. Souza"},
]

PERSONNEL_ROWS = [
    {"id_unidade": "0042", "NOME": "Ana", "CARGO": "Soldado"},
    {"id_unidade": "7", "NOME": "Bruno", "CARGO": ""},
]



def sample_sheets_dict():
    """Raw rows keyed by sheet role, as the workbook readers would return them."""

    return {
        "units": [dict(r) for r in UNIT_ROWS],
        "fleet": [dict(r) for r in FLEET_ROWS],
        "buildings": [dict(r) for r in BUILDING_ROWS],
        "commanders": [dict(r) for r in COMMANDER_ROWS],
        "personnel": [dict(r) for r in PERSONNEL_ROWS],
    }


def write_workbook(path: Path, sheets: dict) -> Path:
    with pd.ExcelWriter(path, engine="xlsxwriter") as writer:
        for sheet_name, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=sheet_name, index=False)
    return path


def write_default_workbooks(tmp_path):
    """(organization_path, personnel_path) written with the default sheet names."""

    org_path = write_workbook(
        Path(tmp_path) / "Dados gerais.xlsx",
        {
            "UNIDADES": UNIT_ROWS,
            "FROTA": FLEET_ROWS,
            "PRÉDIOS": BUILDING_ROWS,
            "RESPONSÁVEIS POR AISP": COMMANDER_ROWS,
        },
    )
    personnel_path = write_workbook(Path(tmp_path) / "Pessoal.xlsx", {"PESSOAL": PERSONNEL_ROWS})
    return org_path, personnel_path
