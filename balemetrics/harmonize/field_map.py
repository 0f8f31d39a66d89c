"""Column harmonization: raw telemetry export headers -> canonical field names."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import yaml

_FIELD_MAP: dict[str, dict] | None = None
_DEFINITIONS_PATH = Path(__file__).parent / "field_map.yaml"


def _load_field_map() -> dict[str, dict]:
    """Load the export column map once; entries give each raw header its canonical field name."""
    global _FIELD_MAP
    if _FIELD_MAP is not None:
        return _FIELD_MAP

    with open(_DEFINITIONS_PATH) as f:
        _FIELD_MAP = yaml.safe_load(f) or {}
    return _FIELD_MAP


def get_canonical_name(column: str) -> str:
    """Get the canonical field name for a raw column header."""
    entry = _load_field_map().get(column)
    if entry:
        return entry["canonical"]
    return column


def harmonize_row(row: Mapping[str, Any]) -> dict[str, Any]:
    """Rename the keys of a raw row to canonical names.

    Keys are stripped of surrounding whitespace. When both a raw and a
    canonical spelling are present the first one encountered wins.
    """
    out: dict[str, Any] = {}
    for key, value in row.items():
        name = get_canonical_name(str(key).strip())
        if name not in out:
            out[name] = value
    return out
