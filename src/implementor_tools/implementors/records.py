"""
Implementor records and the resolver's output types.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ImplementorRecord:
    """One recorded satisfaction of a contract by a concrete type."""
    text: str  # Display markup, not parsed downstream
    synthetic: bool  # True when inferred by a structural rule
    types: tuple[str, ...]  # Fully-qualified paths, outermost first

    def to_dict(self) -> dict:
        return {"text": self.text, "synthetic": self.synthetic, "types": list(self.types)}


@dataclass(frozen=True)
class Implementor:
    """A record together with the contract it satisfies and its owning unit."""
    contract: str
    unit: str
    record: ImplementorRecord


@dataclass(frozen=True)
class ResolutionWarning:
    """A non-fatal resolution problem; the affected record was dropped."""
    unit: str
    contract: str
    message: str

    def __str__(self) -> str:
        if not self.contract:
            return f"{self.unit}: {self.message}"
        return f"{self.unit}: {self.contract}: {self.message}"
