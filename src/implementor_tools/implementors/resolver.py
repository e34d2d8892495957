"""
Contract resolver: which concrete types satisfy which contracts.

For every known contract the resolver walks the units in sorted order and
produces, per unit, the explicit impls in declaration order followed by
the impls inferred by structural rules in type-declaration order.

Structural inference only applies to auto contracts. A declared type
satisfies an auto contract when every field satisfies it:
- a type with an explicit impl satisfies it (a negative impl blocks it)
- a builtin listed in implemented_by satisfies it when all its generic
  arguments do; one listed in not_implemented_by blocks it
- a declared type satisfies it when its own fields do; the outcome is
  computed once per type, over its generic parameters, and the arguments
  of each use are then checked against the parameters it needs
- recursive references count as satisfied
- a generic parameter of the type being inferred becomes a where clause

A type that has any explicit record for a contract never gets a synthetic
one, and neither does a type alias. Problems (dangling references,
duplicates, arity mismatches) become ResolutionWarnings and drop the
affected record.
"""

from dataclasses import dataclass, field, replace

from implementor_tools.shared import EXTERN_ITEM_KINDS

from .declarations import Contract, DeclarationStore, ImplDecl, TypeDecl, TypeRef
from .markup import MarkupContext, render_impl_text
from .records import Implementor, ImplementorRecord, ResolutionWarning
from .rules import AutoContractRule, InferenceRules


@dataclass
class Resolution:
    """Resolver output for a whole declaration store."""
    contracts: list[Contract] = field(default_factory=list)
    implementors: list[Implementor] = field(default_factory=list)
    warnings: list[ResolutionWarning] = field(default_factory=list)

    def for_contract(self, path: str) -> list[Implementor]:
        return [i for i in self.implementors if i.contract == path]


@dataclass(frozen=True)
class _Outcome:
    status: str  # "yes", "no" or "unknown"
    conditions: frozenset[str] = frozenset()
    reason: str = ""
    assumed: frozenset[str] = frozenset()  # types assumed to hold while being walked


_NO = _Outcome("no")


def _combine(outcomes: list[_Outcome]) -> _Outcome:
    """All must hold; a definite "no" beats an unknown."""
    unknown = None
    conditions: set[str] = set()
    assumed: set[str] = set()
    for outcome in outcomes:
        if outcome.status == "no":
            return outcome
        if outcome.status == "unknown":
            unknown = unknown or outcome
        else:
            conditions |= outcome.conditions
        assumed |= outcome.assumed
    if unknown is not None:
        return replace(unknown, assumed=frozenset(assumed))
    return _Outcome("yes", frozenset(conditions), assumed=frozenset(assumed))


class ContractResolver:
    """Resolves implementors for the contracts known to a declaration store."""

    def __init__(self, store: DeclarationStore, rules: InferenceRules):
        self.store = store
        self.rules = rules
        self.setup_warnings: list[ResolutionWarning] = []
        self._types: dict[str, tuple[str, TypeDecl]] = {}

        for unit in store.iter_units():
            for decl in unit.types:
                if decl.path in self._types:
                    owner = self._types[decl.path][0]
                    self.setup_warnings.append(ResolutionWarning(
                        unit.unit, "",
                        f"type '{decl.path}' already declared by unit '{owner}'; ignored",
                    ))
                    continue
                self._types[decl.path] = (unit.unit, decl)

        self.markup = MarkupContext(
            extern_urls=dict(rules.extern_urls),
            kinds={
                **EXTERN_ITEM_KINDS,
                **{path: decl.kind for path, (_, decl) in self._types.items()},
            },
            local_units=set(store.units),
        )

    # -------------------------------------------------------------------------
    # Contracts
    # -------------------------------------------------------------------------

    def contracts(self) -> list[Contract]:
        """All known contracts, sorted by path."""
        known: dict[str, Contract] = {}
        for contract in self.store.declared_contracts():
            known[contract.path] = contract
        for path in self.rules.auto_contracts:
            known[path] = Contract(path, auto=True)
        return [known[p] for p in sorted(known)]

    def _rule_for(self, contract: Contract) -> AutoContractRule | None:
        rule = self.rules.auto_contract(contract.path)
        if rule is None and contract.auto:
            rule = AutoContractRule(contract.path)
        return rule

    # -------------------------------------------------------------------------
    # Reference checks
    # -------------------------------------------------------------------------

    def _resolvable(self, path: str) -> bool:
        return path in self._types or self.rules.known_external(path)

    def _arity_error(self, ref: TypeRef) -> str | None:
        if ref.is_generic:
            return None
        entry = self._types.get(ref.path)
        if entry is not None and len(ref.args) != len(entry[1].generics):
            return (
                f"'{ref.path}' takes {len(entry[1].generics)} generic argument(s), "
                f"got {len(ref.args)}"
            )
        for arg in ref.args:
            error = self._arity_error(arg)
            if error:
                return error
        return None

    # -------------------------------------------------------------------------
    # Explicit impls
    # -------------------------------------------------------------------------

    def _explicit(
        self,
        contract: Contract,
        warnings: list[ResolutionWarning],
    ) -> tuple[dict[str, list[ImplementorRecord]], dict[str, bool], set[str]]:
        """
        Collect explicit records per unit.

        Returns (records_by_unit, facts, covered_roots): facts maps a type
        path to True/False for impls covering every instantiation of it;
        covered_roots holds every root path with any explicit record.
        """
        records: dict[str, list[ImplementorRecord]] = {}
        facts: dict[str, bool] = {}
        covered: set[str] = set()
        seen: dict[str, str] = {}

        for unit in self.store.iter_units():
            impls = [i for i in unit.impls if i.contract == contract.path]
            for impl in impls:
                record = self._explicit_record(unit.unit, contract, impl, seen, warnings)
                if record is None:
                    continue
                root = impl.for_type.path
                covered.add(root)
                if all(a.is_generic for a in impl.for_type.args):
                    facts[root] = not impl.negative
                records.setdefault(unit.unit, []).append(record)

        return records, facts, covered

    def _explicit_record(
        self,
        unit: str,
        contract: Contract,
        impl: ImplDecl,
        seen: dict[str, str],
        warnings: list[ResolutionWarning],
    ) -> ImplementorRecord | None:
        target = impl.for_type
        paths = target.paths()

        def warn(message: str) -> None:
            warnings.append(ResolutionWarning(unit, contract.path, message))

        if not paths:
            warn(f"blanket impl for '{target}' names no concrete type; skipped")
            return None

        dangling = [p for p in paths if not self._resolvable(p)]
        if dangling:
            warn(f"unresolved type reference '{dangling[0]}' in impl for '{target}'; record dropped")
            return None

        arity = self._arity_error(target)
        if arity:
            warn(f"impl for '{target}': {arity}; record dropped")
            return None

        key = str(target)
        if key in seen:
            warn(f"duplicate impl for '{target}' (first in unit '{seen[key]}'); record dropped")
            return None
        seen[key] = unit

        text = render_impl_text(
            contract, target, self.markup, generics=impl.generics, negative=impl.negative
        )
        return ImplementorRecord(text=text, synthetic=False, types=tuple(paths))

    # -------------------------------------------------------------------------
    # Structural inference
    # -------------------------------------------------------------------------

    def _satisfies(
        self,
        ref: TypeRef,
        rule: AutoContractRule,
        facts: dict[str, bool],
        summaries: dict[str, _Outcome],
        scope: TypeDecl,
        in_progress: frozenset[str],
    ) -> _Outcome:
        """Does ref satisfy the contract? Conditions name generics of scope."""
        if ref.is_generic:
            return _Outcome("yes", frozenset([ref.generic]))

        path = ref.path
        if path in facts:
            return _Outcome("yes") if facts[path] else _NO

        entry = self._types.get(path)
        if entry is not None:
            decl = entry[1]
            if len(ref.args) != len(decl.generics):
                return _Outcome("unknown", reason=f"'{ref}' has wrong number of generic arguments")
            if path == scope.path and [a.generic for a in ref.args] == list(decl.generics):
                return _Outcome("yes", assumed=frozenset([path]))
            summary = self._summary(decl, rule, facts, summaries, in_progress)
            if summary.status != "yes":
                return summary
            needed = [arg for param, arg in zip(decl.generics, ref.args) if param in summary.conditions]
            return _combine(
                [_Outcome("yes", assumed=summary.assumed)]
                + [self._satisfies(a, rule, facts, summaries, scope, in_progress) for a in needed]
            )

        if path in rule.not_implemented_by:
            return _NO
        if path in rule.implemented_by:
            return _combine([
                self._satisfies(a, rule, facts, summaries, scope, in_progress) for a in ref.args
            ])

        if self.rules.known_external(path):
            return _Outcome("unknown", reason=f"no rule says whether '{path}' is {rule.contract}")
        return _Outcome("unknown", reason=f"unresolved type reference '{path}'")

    def _summary(
        self,
        decl: TypeDecl,
        rule: AutoContractRule,
        facts: dict[str, bool],
        summaries: dict[str, _Outcome],
        in_progress: frozenset[str] = frozenset(),
    ) -> _Outcome:
        """
        Whether decl satisfies the contract for all arguments, and which of
        its generic parameters must satisfy it too.

        A type reached again while its own fields are being walked is
        assumed to hold, requiring all of its parameters. Outcomes resting
        on such an assumption for another type are not cached. A "no" is
        always cached.
        """
        if decl.path in summaries:
            return summaries[decl.path]
        if decl.path in in_progress:
            return _Outcome("yes", frozenset(decl.generics), assumed=frozenset([decl.path]))

        walking = in_progress | {decl.path}
        outcome = _combine([
            self._satisfies(f, rule, facts, summaries, decl, walking) for f in decl.fields
        ])
        outcome = replace(outcome, assumed=outcome.assumed - {decl.path})
        if outcome.status == "no" or not outcome.assumed:
            summaries[decl.path] = outcome
        return outcome

    def _synthetic_record(
        self,
        contract: Contract,
        decl: TypeDecl,
        rule: AutoContractRule,
        facts: dict[str, bool],
        summaries: dict[str, _Outcome],
    ) -> tuple[ImplementorRecord | None, str]:
        outcome = self._summary(decl, rule, facts, summaries)
        if outcome.status != "yes":
            return None, outcome.reason

        own = TypeRef(path=decl.path, args=tuple(TypeRef(generic=g) for g in decl.generics))
        where = tuple(g for g in decl.generics if g in outcome.conditions)
        text = render_impl_text(contract, own, self.markup, generics=decl.generics, where=where)
        return ImplementorRecord(text=text, synthetic=True, types=(decl.path,)), ""

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def resolve_contract(self, contract: Contract) -> tuple[list[Implementor], list[ResolutionWarning]]:
        """Resolve one contract. A contract nobody satisfies yields an empty list."""
        warnings: list[ResolutionWarning] = []
        explicit, facts, covered = self._explicit(contract, warnings)
        rule = self._rule_for(contract)
        summaries: dict[str, _Outcome] = {}

        implementors = []
        for unit in self.store.iter_units():
            for record in explicit.get(unit.unit, []):
                implementors.append(Implementor(contract.path, unit.unit, record))
            if rule is None:
                continue
            for decl in unit.types:
                if self._types[decl.path][0] != unit.unit or decl.path in covered:
                    continue
                if decl.kind == "type":
                    continue
                record, reason = self._synthetic_record(contract, decl, rule, facts, summaries)
                if record is not None:
                    implementors.append(Implementor(contract.path, unit.unit, record))
                elif reason:
                    warnings.append(ResolutionWarning(
                        unit.unit, contract.path,
                        f"cannot infer {contract.name} for '{decl.path}': {reason}; record dropped",
                    ))

        return implementors, warnings

    def resolve_all(self, only: list[str] | None = None) -> Resolution:
        """Resolve every known contract, or just those listed in only."""
        resolution = Resolution(warnings=list(self.setup_warnings))
        for contract in self.contracts():
            if only and contract.path not in only:
                continue
            implementors, warnings = self.resolve_contract(contract)
            resolution.contracts.append(contract)
            resolution.implementors.extend(implementors)
            resolution.warnings.extend(warnings)
        return resolution


def resolve(
    store: DeclarationStore,
    rules: InferenceRules,
    only: list[str] | None = None,
) -> Resolution:
    """Resolve all contracts of a store with the given rules."""
    return ContractResolver(store, rules).resolve_all(only=only)
