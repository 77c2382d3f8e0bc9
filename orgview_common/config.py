"""
YAML configuration for the organization viewer.

Sample ``orgview.yaml``
-----------------------
```yaml
# Relative paths resolve from the config file location; URLs are used as-is.
sources:
  organization: ./base de dados/Dados gerais.xlsx
  personnel: ./base de dados/Pessoal.xlsx

sheets:
  units: UNIDADES
  fleet: FROTA
  buildings: PRÉDIOS
  commanders: RESPONSÁVEIS POR AISP
  personnel: PESSOAL

pipeline:
  duplicate_units: permit   # permit | strict
  request_timeout: 30       # seconds, for http(s) sources

# Optional: replace the candidate column list of any field.
columns:
  units:
    hierarchy: [hierarquia, hierarquia imediata, dominio]
```
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from .schema import DEFAULT_SHEET_NAMES, DUPLICATE_POLICIES, SHEET_ROLES, merge_column_synonyms

CONFIG_ENV_KEY = "ORGVIEW_CONFIG"
DEFAULT_CONFIG_PATH = Path("orgview.yaml")
DEFAULT_ORGANIZATION_SOURCE = "base de dados/Dados gerais.xlsx"
DEFAULT_PERSONNEL_SOURCE = "base de dados/Pessoal.xlsx"


class ConfigError(ValueError):
    """Raised when the YAML configuration is invalid."""


@dataclass
class PipelineSettings:
    duplicate_units: str = "permit"
    request_timeout: float = 30.0


@dataclass
class AppConfig:
    organization_source: str
    personnel_source: str
    sheet_names: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_SHEET_NAMES))
    pipeline: PipelineSettings = field(default_factory=PipelineSettings)
    column_synonyms: Dict[str, Dict[str, Tuple[str, ...]]] = field(
        default_factory=lambda: merge_column_synonyms(None)
    )
    path: Optional[Path] = None


def is_url(source: str) -> bool:
    return str(source).lower().startswith(("http://", "https://"))


def _resolve_source(base: Path, value: Any) -> str:
    text = str(value).strip()
    if is_url(text):
        return text
    return str((base / text).expanduser().resolve())


def _section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = raw.get(name) or {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"`{name}` must be a mapping")
    return value


def default_config(base: Path | None = None) -> AppConfig:
    """Built-in configuration; sources resolve from ``base`` (default: cwd)."""

    base = base or Path.cwd()
    return AppConfig(
        organization_source=_resolve_source(base, DEFAULT_ORGANIZATION_SOURCE),
        personnel_source=_resolve_source(base, DEFAULT_PERSONNEL_SOURCE),
    )


def parse_config(raw: Mapping[str, Any], base: Path) -> AppConfig:
    """Validate a parsed YAML document and build an AppConfig."""

    if not isinstance(raw, Mapping):
        raise ConfigError("Configuration must be a YAML mapping")

    sources = _section(raw, "sources")
    sheets = _section(raw, "sheets")
    pipeline = _section(raw, "pipeline")
    columns = _section(raw, "columns")

    unknown = sorted(set(sheets) - set(SHEET_ROLES)) + sorted(set(columns) - set(SHEET_ROLES))
    if unknown:
        raise ConfigError(f"Unknown sheet role(s): {', '.join(map(str, unknown))}")

    sheet_names = dict(DEFAULT_SHEET_NAMES)
    sheet_names.update({str(k): str(v) for k, v in sheets.items()})

    policy = str(pipeline.get("duplicate_units", "permit")).strip().lower()
    if policy not in DUPLICATE_POLICIES:
        raise ConfigError(f"pipeline.duplicate_units must be one of: {', '.join(DUPLICATE_POLICIES)}")
    try:
        timeout = float(pipeline.get("request_timeout", 30.0))
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"pipeline.request_timeout must be a number: {exc}") from exc

    for role, role_fields in columns.items():
        if not isinstance(role_fields, Mapping):
            raise ConfigError(f"columns.{role} must map field names to column lists")
        for name, chain in role_fields.items():
            if not isinstance(chain, (str, list)):
                raise ConfigError(f"columns.{role}.{name} must be a column name or a list of names")

    return AppConfig(
        organization_source=_resolve_source(base, sources.get("organization", DEFAULT_ORGANIZATION_SOURCE)),
        personnel_source=_resolve_source(base, sources.get("personnel", DEFAULT_PERSONNEL_SOURCE)),
        sheet_names=sheet_names,
        pipeline=PipelineSettings(duplicate_units=policy, request_timeout=timeout),
        column_synonyms=merge_column_synonyms(columns),
    )


def load_config(path: Path) -> AppConfig:
    """Load and validate the YAML configuration file."""

    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    with path.open("r", encoding="utf-8") as handle:
        try:
            raw = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    config = parse_config(raw, path.resolve().parent)
    config.path = path
    return config


def resolve_config_path(explicit: Path | None = None) -> Optional[Path]:
    """Explicit path, then $ORGVIEW_CONFIG, then ./orgview.yaml when it exists."""

    if explicit is not None:
        return explicit
    env_value = os.environ.get(CONFIG_ENV_KEY)
    if env_value:
        return Path(env_value)
    if DEFAULT_CONFIG_PATH.exists():
        return DEFAULT_CONFIG_PATH
    return None


def load_app_config(explicit: Path | None = None) -> AppConfig:
    path = resolve_config_path(explicit)
    if path is None:
        return default_config()
    return load_config(path)
