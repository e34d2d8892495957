"""
Implementor index tooling.

Builds the "Implementors" data used by API documentation pages: which
types implement which contracts, grouped by compilation unit and written
as one loadable shard per contract.

Subpackages:
- shared: paths, constants, errors, JSON I/O and schema version helpers
- implementors: declaration store, resolver, index builder, shard emitter,
  registry model and the command-line tools
"""

__version__ = "0.3.0"
