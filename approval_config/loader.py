"""
Chain configuration loader (``approval_config.loader``).

Parses YAML chain files into ``approval_config.schema`` dataclasses.
Structural problems (missing keys, wrong shapes) propagate as ``KeyError``
/ ``TypeError`` / ``ValueError``; business rules are left to the validator.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing ``request_type`` / ``levels`` / ``level`` / ``rule``  -> ``KeyError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from approval_config.schema import ChainDef, ChainSet, LevelDef


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file; an empty file yields an empty dict."""
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _optional_int(value: Any) -> int | None:
    if value is None:
        return None
    return int(value)


def parse_level(data: dict[str, Any]) -> LevelDef:
    return LevelDef(
        level_number=int(data["level"]),
        rule=str(data["rule"]),
        is_final_level=bool(data.get("final", False)),
        fixed_approver_id=_optional_int(data.get("fixed_approver_id")),
        remarks=data.get("remarks"),
    )


def parse_chain(data: dict[str, Any]) -> ChainDef:
    return ChainDef(
        request_type=str(data["request_type"]),
        levels=tuple(parse_level(level) for level in data["levels"] or ()),
        department_id=_optional_int(data.get("department_id")),
        project_id=_optional_int(data.get("project_id")),
        description=data.get("description"),
    )


def parse_chain_set(data: dict[str, Any]) -> ChainSet:
    """Parse a whole chain file; the checksum covers the raw parsed content."""
    return ChainSet(
        name=str(data.get("name", "default")),
        version=int(data.get("version", 1)),
        chains=tuple(parse_chain(chain) for chain in data.get("chains") or ()),
        checksum=compute_checksum(data),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON form; key order in the YAML does not matter."""
    canonical = json.dumps(data, sort_keys=True, default=str, ensure_ascii=False)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
