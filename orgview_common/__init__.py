"""
Row normalization and tree assembly shared by the Streamlit browser and the CLI.
"""

from .schema import (  # noqa: F401
    DEFAULT_SHEET_NAMES,
    FIELD_SYNONYMS,
    SHEET_ROLES,
    clean_column_name,
    merge_column_synonyms,
)

from .models import (  # noqa: F401
    Area,
    Building,
    City,
    LoadReport,
    Person,
    Unit,
    Vehicle,
)

from .normalize import (  # noqa: F401
    join_key,
    name_key,
    norm_text,
    normalize_row,
    normalize_rows,
    pick,
)

from .index import CrossReferenceIndex, build_cross_reference  # noqa: F401
from .hierarchy import build_hierarchy  # noqa: F401
from .finalize import finalize_tree, locale_sort_key, natural_sort_key  # noqa: F401
from .pipeline import run_pipeline  # noqa: F401

__all__ = [
    "DEFAULT_SHEET_NAMES",
    "FIELD_SYNONYMS",
    "SHEET_ROLES",
    "clean_column_name",
    "merge_column_synonyms",
    "Area",
    "Building",
    "City",
    "LoadReport",
    "Person",
    "Unit",
    "Vehicle",
    "join_key",
    "name_key",
    "norm_text",
    "normalize_row",
    "normalize_rows",
    "pick",
    "CrossReferenceIndex",
    "build_cross_reference",
    "build_hierarchy",
    "finalize_tree",
    "locale_sort_key",
    "natural_sort_key",
    "run_pipeline",
]
