"""
Implementor Index Infrastructure

This package computes which types implement which contracts across a set
of compilation units and writes the result as loadable shards:

- declarations: per-unit type, contract and impl declarations
- rules: structural inference rules for auto contracts
- resolver: explicit and inferred implementors per contract
- index: implementors grouped by owning unit
- emitter: one shard per contract, byte-stable across regenerations
- registry: merging loaded shards, with queueing before the page is ready

Tools:
- build-implementors: Regenerate shards from declaration files
- validate-declarations: Check declaration files and references
- list-implementors: Load shards and print the merged registries
"""

from .declarations import DeclarationStore, load_declarations_dir
from .emitter import render_shard, shard_relative_path
from .index import build_index, build_indexes
from .records import ImplementorRecord
from .registry import ImplementorRegistry, ShardHost, parse_shard
from .resolver import ContractResolver, resolve
from .rules import DEFAULT_RULES, load_rules

__all__ = [
    "DeclarationStore",
    "load_declarations_dir",
    "render_shard",
    "shard_relative_path",
    "build_index",
    "build_indexes",
    "ImplementorRecord",
    "ImplementorRegistry",
    "ShardHost",
    "parse_shard",
    "ContractResolver",
    "resolve",
    "DEFAULT_RULES",
    "load_rules",
]
