"""
JSON I/O and schema validation helpers.
"""

import json

import jsonschema

from .paths import get_schema_path


def load_schema(name: str) -> dict:
    """Load a bundled schema by name."""
    with open(get_schema_path(name), encoding="utf-8") as f:
        return json.load(f)


def validate_against_schema(data: dict, schema: dict) -> list[str]:
    """
    Validate data against a schema.

    Returns a list of error messages (empty when valid), each prefixed
    with the JSON path of the offending value.
    """
    validator = jsonschema.Draft202012Validator(schema)
    errors = []
    for error in sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.path]):
        location = ".".join(str(p) for p in error.path) or "<root>"
        errors.append(f"{location}: {error.message}")
    return errors
