#!/usr/bin/env python3
"""
list-implementors: Load written shards and print the merged registries.

Shards are loaded the way a documentation page loads them: before the
registry exists (so they queue), then the registry is installed and the
queue drained. Useful to inspect what a page will show.

Usage:
    uv run list-implementors
    uv run list-implementors --contract core::marker::Sync
    uv run list-implementors --output-dir target/doc --json
"""

import argparse
import json
import sys
from pathlib import Path

from implementor_tools.shared import (
    ShardFormatError,
    get_implementors_dir,
    get_output_dir,
    get_project_root,
    resolve_path,
)

from .registry import ImplementorRegistry, ShardHost


def contract_from_shard_path(relative: Path) -> str:
    """core/marker/trait.Sync.js -> core::marker::Sync"""
    name = relative.name
    if not (name.startswith("trait.") and name.endswith(".js")):
        raise ValueError(f"not a shard file name: {name}")
    return "::".join([*relative.parent.parts, name[len("trait."):-len(".js")]])


def load_registries(
    output_dir: Path,
    contracts: list[str] | None = None,
) -> tuple[dict[str, ImplementorRegistry], list[str]]:
    """
    Load every shard under output_dir/implementors.

    Returns (registries by contract, problems); unreadable or malformed
    shards are reported in problems and left out.
    """
    shard_dir = get_implementors_dir(output_dir)
    registries: dict[str, ImplementorRegistry] = {}
    problems: list[str] = []
    if not shard_dir.is_dir():
        return registries, problems

    for path in sorted(shard_dir.rglob("trait.*.js")):
        contract = contract_from_shard_path(path.relative_to(shard_dir))
        if contracts and contract not in contracts:
            continue
        host = ShardHost()
        try:
            host.load(path.read_text(encoding="utf-8"))
        except (OSError, ShardFormatError) as e:
            problems.append(f"{path}: {e}")
            continue
        registry = ImplementorRegistry()
        host.install(registry)
        registries[contract] = registry

    return registries, problems


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Print the implementors recorded in written shards"
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Documentation output root (default: target/doc/)",
    )
    parser.add_argument(
        "--contract",
        action="append",
        default=[],
        metavar="PATH",
        help="Only show this contract (repeatable)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )

    args = parser.parse_args(argv)
    root = get_project_root()
    output_dir = (
        resolve_path(Path(args.output_dir), root)
        if args.output_dir else get_output_dir(root)
    )

    registries, problems = load_registries(output_dir, args.contract or None)
    for problem in problems:
        print(f"WARNING: {problem}", file=sys.stderr)

    if args.json:
        print(json.dumps({
            contract: {
                unit: [r.to_dict() for r in records]
                for unit, records in registry.snapshot().items()
            }
            for contract, registry in sorted(registries.items())
        }, indent=2))
        return 0

    if not registries:
        print(f"No shards found under {get_implementors_dir(output_dir)}")
        return 0

    for contract, registry in sorted(registries.items()):
        print(f"{contract} ({len(registry)} unit(s))")
        for unit in registry.units():
            print(f"  {unit}:")
            for record in registry.records(unit):
                marker = " [synthetic]" if record.synthetic else ""
                print(f"    - {' / '.join(record.types)}{marker}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
