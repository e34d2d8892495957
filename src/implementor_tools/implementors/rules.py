"""
Structural-inference rules for auto contracts.

An auto contract (Send, Sync, ...) is satisfied by a type without an
explicit impl when all of the type's fields satisfy it. The rules list,
per auto contract, the builtin types known to satisfy it (containers among
them propagate the requirement to their generic arguments) and the builtin
types known not to.

Rules files are JSON, validated against schema/rules.schema.json:

    {
      "auto_contracts": [
        {"contract": "core::marker::Sync",
         "implemented_by": ["u8", "alloc::vec::Vec"],
         "not_implemented_by": ["core::cell::Cell"]}
      ],
      "extern_urls": {"core": "https://doc.rust-lang.org/nightly/"}
    }
"""

import json
from dataclasses import dataclass, field
from pathlib import Path

from implementor_tools.shared import (
    DEFAULT_EXTERN_URLS,
    PRIMITIVE_TYPES,
    RulesError,
    load_schema,
    validate_against_schema,
)


# Builtins shared by Send and Sync; containers propagate to their arguments
_THREAD_SAFE_BUILTINS = sorted(PRIMITIVE_TYPES) + [
    "alloc::boxed::Box",
    "alloc::string::String",
    "alloc::sync::Arc",
    "alloc::vec::Vec",
    "core::option::Option",
    "core::result::Result",
    "core::marker::PhantomData",
    "std::collections::HashMap",
    "std::sync::Mutex",
]

DEFAULT_RULES = {
    "schema_version": "1.0",
    "auto_contracts": [
        {
            "contract": "core::marker::Send",
            "implemented_by": _THREAD_SAFE_BUILTINS + [
                "core::cell::Cell",
                "core::cell::RefCell",
                "core::cell::UnsafeCell",
            ],
            "not_implemented_by": [
                "alloc::rc::Rc",
                "alloc::rc::Weak",
                "std::sync::MutexGuard",
            ],
        },
        {
            "contract": "core::marker::Sync",
            "implemented_by": _THREAD_SAFE_BUILTINS,
            "not_implemented_by": [
                "alloc::rc::Rc",
                "alloc::rc::Weak",
                "core::cell::Cell",
                "core::cell::RefCell",
                "core::cell::UnsafeCell",
            ],
        },
    ],
    "extern_urls": dict(DEFAULT_EXTERN_URLS),
}


@dataclass(frozen=True)
class AutoContractRule:
    """Builtin satisfaction facts for one auto contract."""
    contract: str
    implemented_by: frozenset[str] = frozenset()
    not_implemented_by: frozenset[str] = frozenset()


@dataclass
class InferenceRules:
    """All auto contract rules plus external documentation roots."""
    auto_contracts: dict[str, AutoContractRule] = field(default_factory=dict)
    extern_urls: dict[str, str] = field(default_factory=dict)

    def auto_contract(self, path: str) -> AutoContractRule | None:
        return self.auto_contracts.get(path)

    def builtin_paths(self) -> set[str]:
        """Every builtin named by any rule."""
        paths = set(PRIMITIVE_TYPES)
        for rule in self.auto_contracts.values():
            paths |= rule.implemented_by
            paths |= rule.not_implemented_by
        return paths

    def known_external(self, path: str) -> bool:
        """True if path is a builtin or lives in a crate with a known doc root."""
        if path in PRIMITIVE_TYPES or path in self.builtin_paths():
            return True
        return path.split("::", 1)[0] in self.extern_urls

    def with_extern_urls(self, extra: dict[str, str]) -> "InferenceRules":
        urls = dict(self.extern_urls)
        urls.update(extra)
        return InferenceRules(auto_contracts=dict(self.auto_contracts), extern_urls=urls)


def parse_rules(data: dict, source: str = "<rules>") -> InferenceRules:
    """Validate and parse rules data. Raises RulesError when invalid."""
    errors = validate_against_schema(data, load_schema("rules"))
    if errors:
        raise RulesError(f"{source}: schema error: " + "; ".join(errors))

    rules = InferenceRules(extern_urls=dict(data.get("extern_urls", {})))
    for entry in data["auto_contracts"]:
        path = entry["contract"]
        if path in rules.auto_contracts:
            raise RulesError(f"{source}: auto contract '{path}' listed twice")
        implemented = frozenset(entry.get("implemented_by", []))
        blocked = frozenset(entry.get("not_implemented_by", []))
        overlap = implemented & blocked
        if overlap:
            raise RulesError(
                f"{source}: {path}: types both implement and do not implement: "
                + ", ".join(sorted(overlap))
            )
        rules.auto_contracts[path] = AutoContractRule(path, implemented, blocked)
    return rules


def load_rules(path: Path | None = None) -> InferenceRules:
    """Load rules from a JSON file, or the built-in defaults when path is None."""
    if path is None:
        return parse_rules(DEFAULT_RULES, source="<default rules>")
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise RulesError(f"{path}: cannot read file: {e}") from e
    except json.JSONDecodeError as e:
        raise RulesError(f"{path}: invalid JSON at line {e.lineno}: {e.msg}") from e
    return parse_rules(data, source=str(path))
