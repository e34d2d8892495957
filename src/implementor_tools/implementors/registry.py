"""
Consumer-side model of loading implementor shards.

The documentation page merges every loaded shard into one registry. Shards
may load before the page's merge code does, so each shard either hands its
data to the register function or queues it. ShardHost models that with an
explicit registry handle instead of page globals:

    host = ShardHost()
    host.load(shard_text)          # queued, no registry yet
    host.install(registry)         # queue drained into the registry
    host.load(other_shard_text)    # merged directly

Merging overwrites per unit key, so loading the same shard twice leaves the
registry as loading it once, and shards covering different units can load
in any order.
"""

import json
import re
from typing import Iterable, Mapping

from implementor_tools.shared import ShardFormatError

from .records import ImplementorRecord


_ENTRY_PATTERN = re.compile(r'implementors\[("(?:[^"\\]|\\.)*")\] = \[')
_DECODER = json.JSONDecoder()


# =============================================================================
# Shard parsing
# =============================================================================

def _expect(text: str, pos: int, token: str) -> int:
    if not text.startswith(token, pos):
        snippet = text[pos:pos + 20]
        raise ShardFormatError(f"expected {token!r} at offset {pos}, found {snippet!r}")
    return pos + len(token)


def _parse_records(text: str, pos: int) -> tuple[list[ImplementorRecord], int]:
    """Parse `{text:...,synthetic:...,types:[...]},...];` starting at pos."""
    records = []
    while not text.startswith("];", pos):
        pos = _expect(text, pos, "{text:")
        try:
            markup, pos = _DECODER.raw_decode(text, pos)
        except json.JSONDecodeError as e:
            raise ShardFormatError(f"bad text value at offset {pos}: {e.msg}") from e
        if not isinstance(markup, str):
            raise ShardFormatError(f"text value must be a string at offset {pos}")

        pos = _expect(text, pos, ",synthetic:")
        if text.startswith("true", pos):
            synthetic, pos = True, pos + 4
        elif text.startswith("false", pos):
            synthetic, pos = False, pos + 5
        else:
            raise ShardFormatError(f"synthetic flag must be true or false at offset {pos}")

        pos = _expect(text, pos, ",types:")
        try:
            types, pos = _DECODER.raw_decode(text, pos)
        except json.JSONDecodeError as e:
            raise ShardFormatError(f"bad types value at offset {pos}: {e.msg}") from e
        if not isinstance(types, list) or not all(isinstance(t, str) for t in types):
            raise ShardFormatError(f"types must be a list of strings at offset {pos}")

        pos = _expect(text, pos, "}")
        if text.startswith(",", pos):
            pos += 1
        records.append(ImplementorRecord(text=markup, synthetic=synthetic, types=tuple(types)))
    return records, pos + 2


def parse_shard(text: str) -> dict[str, list[ImplementorRecord]]:
    """
    Read the unit -> records mapping back out of shard text.

    Accepts both the queueing layout written by the emitter and the older
    layout that assigns the mapping to window.pending_implementors. A unit
    assigned twice keeps its last value, as the script would.
    """
    if "var implementors = {};" not in text:
        raise ShardFormatError("missing implementors declaration")

    mapping: dict[str, list[ImplementorRecord]] = {}
    pos = 0
    while True:
        match = _ENTRY_PATTERN.search(text, pos)
        if match is None:
            return mapping
        unit = json.loads(match.group(1))
        mapping[unit], pos = _parse_records(text, match.end())


# =============================================================================
# Registry
# =============================================================================

class ImplementorRegistry:
    """Merged unit -> records view of every shard loaded for a contract."""

    def __init__(self):
        self._units: dict[str, tuple[ImplementorRecord, ...]] = {}

    def register(self, implementors: Mapping[str, Iterable[ImplementorRecord]]) -> None:
        """Merge a shard's mapping; each unit's records replace any earlier ones."""
        for unit, records in implementors.items():
            self._units[unit] = tuple(records)

    def units(self) -> list[str]:
        return sorted(self._units)

    def records(self, unit: str) -> list[ImplementorRecord]:
        return list(self._units.get(unit, ()))

    def snapshot(self) -> dict[str, list[ImplementorRecord]]:
        return {unit: list(self._units[unit]) for unit in self.units()}

    def __len__(self) -> int:
        return len(self._units)

    def __contains__(self, unit: object) -> bool:
        return unit in self._units

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ImplementorRegistry):
            return NotImplemented
        return self._units == other._units


class ShardHost:
    """
    Where shards land when loaded.

    Without an installed registry, loaded mappings wait in pending; they
    stay there, inert, if no registry is ever installed.
    """

    def __init__(self, registry: ImplementorRegistry | None = None):
        self.registry = registry
        self.pending: list[dict[str, list[ImplementorRecord]]] = []

    def load_mapping(self, implementors: dict[str, list[ImplementorRecord]]) -> None:
        if self.registry is not None:
            self.registry.register(implementors)
        else:
            self.pending.append(implementors)

    def load(self, text: str) -> None:
        """Execute a shard: parse it, then register or queue its mapping."""
        self.load_mapping(parse_shard(text))

    def install(self, registry: ImplementorRegistry) -> int:
        """Make a registry available and drain queued mappings in arrival order."""
        self.registry = registry
        drained = len(self.pending)
        for implementors in self.pending:
            registry.register(implementors)
        self.pending = []
        return drained
