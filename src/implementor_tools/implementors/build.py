#!/usr/bin/env python3
"""
build-implementors: Regenerate the implementor shards for all contracts.

Reads one declaration file per compilation unit, resolves which types
satisfy which contracts (explicit impls plus auto contracts inferred by
structural rules), and writes one shard per contract.

Usage:
    uv run build-implementors                           # Build from declarations/
    uv run build-implementors --output-dir target/doc   # Choose output root
    uv run build-implementors --contract core::marker::Sync
    uv run build-implementors --rules rules.json --extern-url serde=https://docs.rs/serde/latest/
    uv run build-implementors --check                   # Fail if shards are stale
    uv run build-implementors --dry-run                 # Report without writing

Output:
    <output-dir>/implementors/<module path>/trait.<Name>.js

A full build (no --contract) also deletes shards of contracts that no
longer exist; --check counts those as stale.

Exit status is 1 when any declaration file failed to load (the other
units are still written) or when --check finds stale shards.
"""

import argparse
import sys
from pathlib import Path

from implementor_tools.shared import (
    DeclarationError,
    EmissionError,
    RulesError,
    get_declarations_dir,
    get_output_dir,
    get_project_root,
    resolve_path,
)

from .declarations import load_declarations_dir
from .emitter import check_shards, write_shards
from .index import build_indexes, contributing_units, count_records
from .resolver import resolve
from .rules import load_rules


def parse_extern_urls(values: list[str]) -> dict[str, str]:
    """Parse repeated CRATE=URL flags."""
    urls = {}
    for value in values:
        crate, sep, url = value.partition("=")
        if not sep or not crate or not url:
            raise ValueError(f"expected CRATE=URL, got '{value}'")
        urls[crate] = url
    return urls


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Regenerate implementor shards from unit declarations"
    )
    parser.add_argument(
        "--declarations-dir",
        type=str,
        default=None,
        help="Directory of per-unit declaration files (default: declarations/)",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Documentation output root (default: target/doc/)",
    )
    parser.add_argument(
        "--rules",
        type=str,
        default=None,
        help="Structural inference rules file (default: built-in Send/Sync rules)",
    )
    parser.add_argument(
        "--extern-url",
        action="append",
        default=[],
        metavar="CRATE=URL",
        help="External documentation root for a crate (repeatable)",
    )
    parser.add_argument(
        "--contract",
        action="append",
        default=[],
        metavar="PATH",
        help="Only build this contract (repeatable)",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Do not write; exit 1 if any shard differs from the regenerated one",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report which shards would change without writing them",
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only print warnings, errors and the summary",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        extern_urls = parse_extern_urls(args.extern_url)
    except ValueError as e:
        parser.error(str(e))

    root = get_project_root()
    declarations_dir = (
        resolve_path(Path(args.declarations_dir), root)
        if args.declarations_dir else get_declarations_dir(root)
    )
    output_dir = (
        resolve_path(Path(args.output_dir), root)
        if args.output_dir else get_output_dir(root)
    )

    try:
        rules = load_rules(resolve_path(Path(args.rules), root) if args.rules else None)
    except RulesError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    rules = rules.with_extern_urls(extern_urls)

    if not args.quiet:
        print(f"Loading declarations from {declarations_dir}...")
    try:
        store = load_declarations_dir(declarations_dir)
    except DeclarationError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    for failure in store.failures:
        print(f"ERROR: {failure}", file=sys.stderr)
    if not args.quiet:
        for unit in store.iter_units():
            print(f"  {unit.unit}: {len(unit.types)} type(s), {len(unit.impls)} impl(s)")

    resolution = resolve(store, rules, only=args.contract or None)
    for warning in resolution.warnings:
        print(f"WARNING: {warning}", file=sys.stderr)
    resolved = {c.path for c in resolution.contracts}
    for path in args.contract:
        if path not in resolved:
            print(f"WARNING: --contract {path}: no such contract; nothing built", file=sys.stderr)

    # A filtered build leaves the shards of other contracts alone
    prune = not args.contract
    indexes = build_indexes(resolution)
    try:
        if args.check:
            report = check_shards(indexes, output_dir, prune=prune)
        else:
            report = write_shards(indexes, output_dir, dry_run=args.dry_run, prune=prune)
    except EmissionError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    if not args.quiet:
        print()
        for contract, index in sorted(indexes.items()):
            counts = count_records(index)
            detail = ", ".join(f"{u}: {n}" for u, n in sorted(counts.items())) or "no implementors"
            print(f"  {contract}: {detail}")

    # Summary
    print(f"\n{'='*60}")
    if args.check:
        print("CHECK COMPLETE")
    elif args.dry_run:
        print("DRY RUN COMPLETE")
    else:
        print("BUILD COMPLETE")
    print(f"{'='*60}")
    print(f"Units loaded: {len(store.units)}")
    print(f"Units failed: {len(store.failures)}")
    print(f"Contracts: {len(indexes)}")
    print(f"Contributing units: {len(contributing_units(indexes))}")
    print(f"Warnings: {len(resolution.warnings)}")
    if args.check:
        print(f"Stale shards: {len(report.stale)}")
        for path in report.stale:
            print(f"  {path}")
    else:
        verb = "Would write" if args.dry_run else "Written"
        print(f"{verb}: {len(report.written)}")
        print(f"Unchanged: {len(report.unchanged)}")
        verb = "Would remove" if args.dry_run else "Removed"
        print(f"{verb}: {len(report.removed)}")
        for path in report.removed:
            print(f"  {path}")

    if store.failures:
        return 1
    if args.check and report.stale:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
