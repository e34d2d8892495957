"""
Exception types shared by the implementor tools.

Only generation-input problems are raised as exceptions. Resolution
problems (dangling references, ambiguous declarations) are reported as
warnings by the resolver and never escape the index builder.
"""

from pathlib import Path


class ImplementorToolsError(Exception):
    """Base class for all tool errors."""


class DeclarationError(ImplementorToolsError):
    """A declaration file is unreadable or malformed."""

    def __init__(self, source: Path | str, message: str):
        self.source = str(source)
        self.message = message
        super().__init__(f"{self.source}: {message}")


class RulesError(ImplementorToolsError):
    """The structural-inference rules file is invalid."""


class EmissionError(ImplementorToolsError):
    """A record cannot be serialized into a shard."""


class ShardFormatError(ImplementorToolsError):
    """Shard text does not follow the implementors shard layout."""
