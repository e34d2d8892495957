"""
Shared utilities for the implementor tools.

Modules:
- paths: project root and default directory helpers
- constants: extern doc roots, primitive names, shard layout names
- errors: exception hierarchy
- io: bundled schema loading and jsonschema validation
- schema_version: declaration file schema versions
"""

from .paths import (
    get_project_root,
    get_declarations_dir,
    get_output_dir,
    get_implementors_dir,
    get_schema_dir,
    get_schema_path,
    resolve_path,
)

from .constants import (
    DEFAULT_EXTERN_URLS,
    EXTERN_ITEM_KINDS,
    PRIMITIVE_TYPES,
    SHARD_DIR_NAME,
    REGISTER_FUNCTION,
    PENDING_QUEUE,
)

from .errors import (
    ImplementorToolsError,
    DeclarationError,
    RulesError,
    EmissionError,
    ShardFormatError,
)

from .io import (
    load_schema,
    validate_against_schema,
)

from .schema_version import (
    SchemaVersion,
    SUPPORTED_SCHEMA_VERSIONS,
    detect_schema_version,
    is_supported,
    has_contract_block,
)

__all__ = [
    # paths
    "get_project_root",
    "get_declarations_dir",
    "get_output_dir",
    "get_implementors_dir",
    "get_schema_dir",
    "get_schema_path",
    "resolve_path",
    # constants
    "DEFAULT_EXTERN_URLS",
    "EXTERN_ITEM_KINDS",
    "PRIMITIVE_TYPES",
    "SHARD_DIR_NAME",
    "REGISTER_FUNCTION",
    "PENDING_QUEUE",
    # errors
    "ImplementorToolsError",
    "DeclarationError",
    "RulesError",
    "EmissionError",
    "ShardFormatError",
    # io
    "load_schema",
    "validate_against_schema",
    # schema_version
    "SchemaVersion",
    "SUPPORTED_SCHEMA_VERSIONS",
    "detect_schema_version",
    "is_supported",
    "has_contract_block",
]
