"""
Shard emitter: serialize one contract's index into a loadable script.

A shard registers its data with the documentation page when the page's
register function already exists, and otherwise queues it for the page
to pick up once it loads:

    (function() {var implementors = {};
    implementors["chacha"] = [{text:"...",synthetic:false,types:["chacha::ChaCha"]},];
    if (window.register_implementors) {
        window.register_implementors(implementors);
    } else {
        window.pending_implementors = window.pending_implementors || [];
        window.pending_implementors.push(implementors);
    }
    })()

Output is byte-identical for identical input: unit keys are sorted and
strings are JSON-encoded with ASCII escapes.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path

from implementor_tools.shared import (
    EmissionError,
    PENDING_QUEUE,
    REGISTER_FUNCTION,
    SHARD_DIR_NAME,
    get_implementors_dir,
)

from .index import Index
from .records import ImplementorRecord


SHARD_PREAMBLE = "(function() {var implementors = {};\n"

SHARD_EPILOGUE = (
    f"if (window.{REGISTER_FUNCTION}) {{\n"
    f"    window.{REGISTER_FUNCTION}(implementors);\n"
    "} else {\n"
    f"    window.{PENDING_QUEUE} = window.{PENDING_QUEUE} || [];\n"
    f"    window.{PENDING_QUEUE}.push(implementors);\n"
    "}\n"
    "})()\n"
)


def shard_relative_path(contract: str) -> Path:
    """implementors/core/marker/trait.Sync.js for core::marker::Sync."""
    segments = contract.split("::")
    return Path(SHARD_DIR_NAME, *segments[:-1], f"trait.{segments[-1]}.js")


def render_record(record: ImplementorRecord) -> str:
    """Serialize one record; rejects records without type paths."""
    if not record.types:
        raise EmissionError(f"record has an empty type path: {record.text!r}")
    if not isinstance(record.synthetic, bool):
        raise EmissionError(f"synthetic flag must be a bool: {record.text!r}")
    return (
        "{text:" + json.dumps(record.text)
        + ",synthetic:" + ("true" if record.synthetic else "false")
        + ",types:" + json.dumps(list(record.types), separators=(",", ":"))
        + "}"
    )


def render_shard(index: Index) -> str:
    """Render the full shard text for one contract's index."""
    lines = [SHARD_PREAMBLE]
    for unit in sorted(index):
        records = "".join(render_record(r) + "," for r in index[unit])
        lines.append(f"implementors[{json.dumps(unit)}] = [{records}];\n")
    lines.append(SHARD_EPILOGUE)
    return "".join(lines)


@dataclass
class ShardWriteReport:
    """Outcome of writing (or checking) a set of shards."""
    written: list[Path] = field(default_factory=list)
    unchanged: list[Path] = field(default_factory=list)
    stale: list[Path] = field(default_factory=list)
    removed: list[Path] = field(default_factory=list)


def render_shards(indexes: dict[str, Index]) -> dict[Path, str]:
    """Render every index, keyed by shard path relative to the output dir."""
    return {shard_relative_path(contract): render_shard(index) for contract, index in indexes.items()}


def existing_shards(output_dir: Path) -> list[Path]:
    """Shard files already below output_dir, relative to it."""
    shard_dir = get_implementors_dir(output_dir)
    if not shard_dir.is_dir():
        return []
    return sorted(p.relative_to(output_dir) for p in shard_dir.rglob("trait.*.js"))


def _orphans(rendered: dict[Path, str], output_dir: Path) -> list[Path]:
    return [output_dir / p for p in existing_shards(output_dir) if p not in rendered]


def write_shards(
    indexes: dict[str, Index],
    output_dir: Path,
    dry_run: bool = False,
    prune: bool = False,
) -> ShardWriteReport:
    """
    Write one shard per contract below output_dir.

    Files whose content is already current are left untouched. With prune,
    shards of contracts that are no longer in indexes are deleted, so a
    full rebuild replaces everything written by earlier builds.
    """
    report = ShardWriteReport()
    rendered = render_shards(indexes)
    for relative, text in sorted(rendered.items()):
        path = output_dir / relative
        if path.exists() and path.read_text(encoding="utf-8") == text:
            report.unchanged.append(path)
            continue
        if not dry_run:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8", newline="\n")
        report.written.append(path)

    if prune:
        for path in _orphans(rendered, output_dir):
            if not dry_run:
                path.unlink()
            report.removed.append(path)
    return report


def check_shards(indexes: dict[str, Index], output_dir: Path, prune: bool = False) -> ShardWriteReport:
    """
    Compare rendered shards with those on disk without writing anything.

    With prune, shards on disk that a full rebuild would delete count as
    stale too.
    """
    report = ShardWriteReport()
    rendered = render_shards(indexes)
    for relative, text in sorted(rendered.items()):
        path = output_dir / relative
        if path.exists() and path.read_text(encoding="utf-8") == text:
            report.unchanged.append(path)
        else:
            report.stale.append(path)
    if prune:
        report.stale.extend(_orphans(rendered, output_dir))
    return report
