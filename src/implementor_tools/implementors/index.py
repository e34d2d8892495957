"""
Index builder: group resolved implementors by owning unit.

An Index maps unit name -> records for a single contract. Units appear
in the order their first record was resolved and records keep their
resolution order, so identical input always yields an identical index.

Units that contributed nothing to a contract are omitted from its index.
A contract nobody implements still gets an (empty) index.
"""

from typing import Iterable

from .records import Implementor, ImplementorRecord
from .resolver import Resolution

Index = dict[str, list[ImplementorRecord]]


def build_index(implementors: Iterable[Implementor], contract: str) -> Index:
    """Build the index of one contract from resolver output."""
    index: Index = {}
    for implementor in implementors:
        if implementor.contract != contract:
            continue
        index.setdefault(implementor.unit, []).append(implementor.record)
    return index


def build_indexes(resolution: Resolution) -> dict[str, Index]:
    """Build one index per resolved contract, keyed by contract path."""
    grouped: dict[str, list[Implementor]] = {c.path: [] for c in resolution.contracts}
    for implementor in resolution.implementors:
        grouped.setdefault(implementor.contract, []).append(implementor)
    return {path: build_index(items, path) for path, items in grouped.items()}


def contributing_units(indexes: dict[str, Index]) -> set[str]:
    """Every unit with at least one record in any index."""
    units = set()
    for index in indexes.values():
        units.update(unit for unit, records in index.items() if records)
    return units


def count_records(index: Index) -> dict[str, int]:
    return {unit: len(records) for unit, records in index.items()}
