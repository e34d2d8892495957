"""
Schema version detection for declaration and rules files.

Schema versions:
- v1.0: unit, types, impls
- v1.1: v1.0 + per-unit contract declarations (contracts block)

Files without a schema_version field are treated as v1.0.
"""

from typing import Any, Literal

SchemaVersion = Literal["1.0", "1.1"]

SUPPORTED_SCHEMA_VERSIONS: tuple[SchemaVersion, ...] = ("1.0", "1.1")


def detect_schema_version(data: dict[str, Any]) -> str:
    """
    Detect schema version from data.

    Returns "1.0" if no version field is found (backwards compatibility).
    """
    return str(data.get("schema_version", "1.0"))


def is_supported(data: dict[str, Any]) -> bool:
    """Check if data uses a schema version this release can read."""
    return detect_schema_version(data) in SUPPORTED_SCHEMA_VERSIONS


def has_contract_block(data: dict[str, Any]) -> bool:
    """Check if the file may declare contracts (v1.1+)."""
    return detect_schema_version(data) != "1.0"
