#!/usr/bin/env python3
"""
validate-declarations: Validate unit declaration files without building.

Validation checks:
1. Every *.json file parses and matches declarations.schema.json
2. Supported schema_version, contracts block only in v1.1+
3. No duplicate unit names or type paths within a unit
4. Generic parameters are declared before use
5. Cross-unit references resolve (reported as warnings)

Usage:
    uv run validate-declarations
    uv run validate-declarations --declarations-dir path/to/declarations
    uv run validate-declarations --strict      # Warnings fail validation too
    uv run validate-declarations --json
"""

import argparse
import json
import sys
from pathlib import Path

from implementor_tools.shared import (
    DeclarationError,
    RulesError,
    get_declarations_dir,
    get_project_root,
    resolve_path,
)

from .declarations import DeclarationStore, load_declarations_dir
from .resolver import resolve
from .rules import InferenceRules, load_rules


def validate_store(store: DeclarationStore, rules: InferenceRules) -> dict:
    """
    Summarize load failures and resolution warnings for a loaded store.

    Returns dict with: units, failures (file, message), warnings (strings).
    """
    resolution = resolve(store, rules)
    return {
        "units": store.unit_names(),
        "failures": [{"file": f.source, "message": f.message} for f in store.failures],
        "warnings": [str(w) for w in resolution.warnings],
    }


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Validate unit declaration files"
    )
    parser.add_argument(
        "--declarations-dir",
        type=str,
        default=None,
        help="Directory of per-unit declaration files (default: declarations/)",
    )
    parser.add_argument(
        "--rules",
        type=str,
        default=None,
        help="Structural inference rules file (default: built-in rules)",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Treat resolution warnings as failures",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output the result as JSON",
    )

    args = parser.parse_args(argv)
    root = get_project_root()

    declarations_dir = (
        resolve_path(Path(args.declarations_dir), root)
        if args.declarations_dir else get_declarations_dir(root)
    )

    try:
        rules = load_rules(resolve_path(Path(args.rules), root) if args.rules else None)
        store = load_declarations_dir(declarations_dir)
    except (RulesError, DeclarationError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    result = validate_store(store, rules)
    failed = bool(result["failures"]) or (args.strict and bool(result["warnings"]))
    result["passed"] = not failed

    if args.json:
        print(json.dumps(result, indent=2))
        return 1 if failed else 0

    print(f"Validating declarations in {declarations_dir}")
    print()
    total = len(result["units"]) + len(result["failures"])
    if total == 0:
        print("No declaration files found.")
        return 0

    print(f"Found {total} declaration file(s)")
    print()

    if result["failures"]:
        print("Load errors:")
        for failure in result["failures"]:
            print(f"  {failure['file']}:")
            print(f"    - {failure['message']}")
        print()

    if result["warnings"]:
        print("Resolution warnings:")
        for warning in result["warnings"]:
            print(f"  - {warning}")
        print()

    print("Summary:")
    print(f"  Valid: {len(result['units'])}/{total}")
    print(f"  Invalid: {len(result['failures'])}/{total}")
    print(f"  Warnings: {len(result['warnings'])}")
    print()
    print("Validation FAILED" if failed else "Validation PASSED")
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
