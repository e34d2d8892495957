"""
Declaration store: parsed type, contract and impl declarations per unit.

Each compilation unit is described by one JSON file produced by the
extraction front end:

    {
      "schema_version": "1.1",
      "unit": "chacha",
      "contracts": [{"path": "chacha::KeyStream", "auto": false}],
      "types": [
        {"path": "chacha::ChaCha", "kind": "struct",
         "fields": [{"path": "u32"}, {"path": "alloc::vec::Vec", "args": [{"path": "u8"}]}]}
      ],
      "impls": [
        {"contract": "chacha::KeyStream", "for": {"path": "chacha::ChaCha"}}
      ]
    }

Files are validated against schema/declarations.schema.json before they
are turned into the dataclasses below. A malformed file fails only its
own unit; the rest of the directory still loads.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from implementor_tools.shared import (
    DeclarationError,
    SUPPORTED_SCHEMA_VERSIONS,
    detect_schema_version,
    has_contract_block,
    is_supported,
    load_schema,
    validate_against_schema,
)


# =============================================================================
# Data model
# =============================================================================

@dataclass(frozen=True)
class TypeRef:
    """A reference to a type: a path with generic arguments, or a generic parameter."""
    path: str | None = None
    args: tuple["TypeRef", ...] = ()
    generic: str | None = None

    @property
    def is_generic(self) -> bool:
        return self.generic is not None

    def paths(self) -> list[str]:
        """Pre-order list of every concrete path in this reference."""
        if self.generic is not None:
            return []
        result = [self.path]
        for arg in self.args:
            result.extend(arg.paths())
        return result

    def generics(self) -> list[str]:
        """Generic parameter names used anywhere in this reference."""
        if self.generic is not None:
            return [self.generic]
        names = []
        for arg in self.args:
            for name in arg.generics():
                if name not in names:
                    names.append(name)
        return names

    def substitute(self, mapping: dict[str, "TypeRef"]) -> "TypeRef":
        """Replace generic parameters according to mapping."""
        if self.generic is not None:
            return mapping.get(self.generic, self)
        if not self.args:
            return self
        return TypeRef(path=self.path, args=tuple(a.substitute(mapping) for a in self.args))

    def __str__(self) -> str:
        if self.generic is not None:
            return self.generic
        if not self.args:
            return self.path
        return f"{self.path}<{', '.join(str(a) for a in self.args)}>"


@dataclass(frozen=True)
class Contract:
    """A named capability types may satisfy, e.g. core::marker::Sync."""
    path: str
    auto: bool = False

    @property
    def name(self) -> str:
        return self.path.rsplit("::", 1)[-1]


@dataclass(frozen=True)
class TypeDecl:
    """A type declared by a unit."""
    path: str
    kind: str
    generics: tuple[str, ...] = ()
    fields: tuple[TypeRef, ...] = ()


@dataclass(frozen=True)
class ImplDecl:
    """An explicitly authored impl of a contract."""
    contract: str
    for_type: TypeRef
    generics: tuple[str, ...] = ()
    negative: bool = False


@dataclass
class UnitDeclarations:
    """Everything one compilation unit declares."""
    unit: str
    source: str
    schema_version: str = "1.0"
    contracts: list[Contract] = field(default_factory=list)
    types: list[TypeDecl] = field(default_factory=list)
    impls: list[ImplDecl] = field(default_factory=list)


@dataclass
class DeclarationStore:
    """Declarations of all successfully loaded units, plus per-file failures."""
    units: dict[str, UnitDeclarations] = field(default_factory=dict)
    failures: list[DeclarationError] = field(default_factory=list)

    def add(self, unit: UnitDeclarations) -> None:
        if unit.unit in self.units:
            raise DeclarationError(
                unit.source,
                f"unit '{unit.unit}' already loaded from {self.units[unit.unit].source}",
            )
        self.units[unit.unit] = unit

    def unit_names(self) -> list[str]:
        """Unit names in processing order (sorted)."""
        return sorted(self.units)

    def iter_units(self) -> Iterator[UnitDeclarations]:
        for name in self.unit_names():
            yield self.units[name]

    def declared_contracts(self) -> list[Contract]:
        """Contracts declared or implemented by any unit, first-seen order."""
        seen: dict[str, Contract] = {}
        for unit in self.iter_units():
            for contract in unit.contracts:
                if contract.path not in seen or contract.auto:
                    seen[contract.path] = contract
            for impl in unit.impls:
                seen.setdefault(impl.contract, Contract(impl.contract))
        return list(seen.values())


# =============================================================================
# Parsing
# =============================================================================

def parse_type_ref(data: dict) -> TypeRef:
    """Build a TypeRef from its JSON form."""
    if "generic" in data:
        return TypeRef(generic=data["generic"])
    return TypeRef(
        path=data["path"],
        args=tuple(parse_type_ref(a) for a in data.get("args", [])),
    )


def _check_generics(source: str, owner: str, declared: tuple[str, ...], refs: list[TypeRef]) -> None:
    if len(set(declared)) != len(declared):
        raise DeclarationError(source, f"{owner}: duplicate generic parameter")
    for ref in refs:
        for name in ref.generics():
            if name not in declared:
                raise DeclarationError(
                    source, f"{owner}: generic parameter '{name}' is not declared"
                )


def parse_unit(data: dict, source: str = "<memory>", schema: dict | None = None) -> UnitDeclarations:
    """
    Validate and parse one unit's declaration data.

    Raises DeclarationError for unsupported versions, schema violations and
    inconsistent declarations (duplicate type paths, undeclared generics).
    """
    if not isinstance(data, dict):
        raise DeclarationError(source, "top-level value must be an object")

    if not is_supported(data):
        raise DeclarationError(
            source,
            f"unsupported schema_version '{detect_schema_version(data)}' "
            f"(supported: {', '.join(SUPPORTED_SCHEMA_VERSIONS)})",
        )

    if schema is None:
        schema = load_schema("declarations")
    errors = validate_against_schema(data, schema)
    if errors:
        raise DeclarationError(source, "schema error: " + "; ".join(errors))

    if "contracts" in data and not has_contract_block(data):
        raise DeclarationError(source, "contracts block requires schema_version 1.1")

    unit = UnitDeclarations(
        unit=data["unit"],
        source=source,
        schema_version=detect_schema_version(data),
    )

    for entry in data.get("contracts", []):
        unit.contracts.append(Contract(path=entry["path"], auto=entry.get("auto", False)))

    seen_types = set()
    for entry in data["types"]:
        decl = TypeDecl(
            path=entry["path"],
            kind=entry["kind"],
            generics=tuple(entry.get("generics", [])),
            fields=tuple(parse_type_ref(f) for f in entry.get("fields", [])),
        )
        if decl.path in seen_types:
            raise DeclarationError(source, f"type '{decl.path}' declared twice")
        seen_types.add(decl.path)
        _check_generics(source, decl.path, decl.generics, list(decl.fields))
        unit.types.append(decl)

    for entry in data["impls"]:
        impl = ImplDecl(
            contract=entry["contract"],
            for_type=parse_type_ref(entry["for"]),
            generics=tuple(entry.get("generics", [])),
            negative=entry.get("negative", False),
        )
        _check_generics(
            source, f"impl {impl.contract} for {impl.for_type}", impl.generics, [impl.for_type]
        )
        unit.impls.append(impl)

    return unit


def load_unit_file(path: Path, schema: dict | None = None) -> UnitDeclarations:
    """Load and parse a single declaration file."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise DeclarationError(path, f"cannot read file: {e}") from e

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise DeclarationError(path, f"invalid JSON at line {e.lineno}: {e.msg}") from e

    return parse_unit(data, source=str(path), schema=schema)


def load_declarations_dir(declarations_dir: Path) -> DeclarationStore:
    """
    Load every *.json declaration file in a directory.

    Files are read in sorted order. A file that fails to load is recorded
    in store.failures and skipped; the remaining units still load.
    """
    if not declarations_dir.is_dir():
        raise DeclarationError(declarations_dir, "declarations directory not found")

    schema = load_schema("declarations")
    store = DeclarationStore()

    for path in sorted(declarations_dir.glob("*.json")):
        try:
            store.add(load_unit_file(path, schema=schema))
        except DeclarationError as e:
            store.failures.append(e)

    return store
