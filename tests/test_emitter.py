"""Unit tests for the shard emitter."""

from pathlib import Path

import pytest

from implementor_tools.shared import EmissionError
from implementor_tools.implementors.declarations import load_declarations_dir
from implementor_tools.implementors.emitter import (
    SHARD_EPILOGUE,
    check_shards,
    render_record,
    render_shard,
    shard_relative_path,
    write_shards,
)
from implementor_tools.implementors.index import build_indexes
from implementor_tools.implementors.records import ImplementorRecord
from implementor_tools.implementors.resolver import resolve

from conftest import SYNC


@pytest.fixture
def indexes(declarations_dir: Path, rules) -> dict:
    return build_indexes(resolve(load_declarations_dir(declarations_dir), rules))


class TestShardPath:
    """Tests for shard file locations."""

    def test_module_path_becomes_directories(self) -> None:
        assert shard_relative_path(SYNC) == Path("implementors/core/marker/trait.Sync.js")

    def test_crate_level_contract(self) -> None:
        assert shard_relative_path("byteorder::ByteOrder") == Path("implementors/byteorder/trait.ByteOrder.js")


class TestRenderRecord:
    """Tests for single record serialization."""

    def test_layout(self) -> None:
        r = ImplementorRecord(text='impl <a href="x">X</a>', synthetic=True, types=("a::X", "a::Y"))
        assert render_record(r) == '{text:"impl <a href=\\"x\\">X</a>",synthetic:true,types:["a::X","a::Y"]}'

    def test_empty_type_path_rejected(self) -> None:
        with pytest.raises(EmissionError, match="empty type path"):
            render_record(ImplementorRecord(text="impl X for T", synthetic=False, types=()))

    def test_non_ascii_is_escaped(self) -> None:
        r = ImplementorRecord(text="impl X for Ünicode", synthetic=False, types=("a::X",))
        assert "\\u00dc" in render_record(r)


class TestRenderShard:
    """Tests for full shard text."""

    def test_matches_reference_layout(self, indexes: dict, fixtures_dir: Path) -> None:
        """Unit lines match the published rustdoc shard, with explicit records."""
        legacy = (fixtures_dir / "legacy_trait.Sync.js").read_text(encoding="utf-8").split("\n")
        expected_lines = [line.replace("synthetic:true", "synthetic:false") for line in legacy[1:4]]

        shard = render_shard(indexes[SYNC])
        lines = shard.split("\n")
        assert lines[0] == legacy[0]
        assert lines[1:4] == expected_lines
        assert shard.endswith(SHARD_EPILOGUE)

    def test_queues_when_register_function_missing(self, indexes: dict) -> None:
        shard = render_shard(indexes[SYNC])
        assert "if (window.register_implementors) {" in shard
        assert "window.pending_implementors = window.pending_implementors || [];" in shard
        assert "window.pending_implementors.push(implementors);" in shard

    def test_units_sorted(self) -> None:
        index = {
            "zeta": [ImplementorRecord("z", False, ("zeta::Z",))],
            "alpha": [ImplementorRecord("a", False, ("alpha::A",))],
        }
        shard = render_shard(index)
        assert shard.index('implementors["alpha"]') < shard.index('implementors["zeta"]')

    def test_empty_index(self) -> None:
        shard = render_shard({})
        assert "implementors[" not in shard.replace("var implementors = {}", "")
        assert shard.startswith("(function() {var implementors = {};\n")

    def test_regeneration_is_byte_identical(self, declarations_dir: Path, rules) -> None:
        first = build_indexes(resolve(load_declarations_dir(declarations_dir), rules))
        second = build_indexes(resolve(load_declarations_dir(declarations_dir), rules))
        for contract in first:
            assert render_shard(first[contract]) == render_shard(second[contract])


class TestWriteShards:
    """Tests for writing and checking shard files."""

    def test_writes_one_file_per_contract(self, indexes: dict, output_dir: Path) -> None:
        report = write_shards(indexes, output_dir)
        assert len(report.written) == 3
        assert (output_dir / "implementors/core/marker/trait.Sync.js").exists()
        assert (output_dir / "implementors/core/marker/trait.Send.js").exists()
        assert (output_dir / "implementors/byteorder/trait.ByteOrder.js").exists()

    def test_second_write_leaves_files_unchanged(self, indexes: dict, output_dir: Path) -> None:
        write_shards(indexes, output_dir)
        report = write_shards(indexes, output_dir)
        assert report.written == []
        assert len(report.unchanged) == 3

    def test_dry_run_writes_nothing(self, indexes: dict, output_dir: Path) -> None:
        report = write_shards(indexes, output_dir, dry_run=True)
        assert len(report.written) == 3
        assert not output_dir.exists()

    def test_check_reports_stale(self, indexes: dict, output_dir: Path) -> None:
        assert len(check_shards(indexes, output_dir).stale) == 3
        write_shards(indexes, output_dir)
        assert check_shards(indexes, output_dir).stale == []

        sync_path = output_dir / "implementors/core/marker/trait.Sync.js"
        sync_path.write_text("stale", encoding="utf-8")
        assert check_shards(indexes, output_dir).stale == [sync_path]

    def test_prune_removes_shards_of_vanished_contracts(self, indexes: dict, output_dir: Path) -> None:
        write_shards(indexes, output_dir)
        byteorder = output_dir / "implementors/byteorder/trait.ByteOrder.js"
        remaining = {c: i for c, i in indexes.items() if c != "byteorder::ByteOrder"}

        assert check_shards(remaining, output_dir).stale == []
        assert check_shards(remaining, output_dir, prune=True).stale == [byteorder]

        report = write_shards(remaining, output_dir, prune=True)
        assert report.removed == [byteorder]
        assert not byteorder.exists()
        assert check_shards(remaining, output_dir, prune=True).stale == []

    def test_without_prune_other_shards_are_kept(self, indexes: dict, output_dir: Path) -> None:
        write_shards(indexes, output_dir)
        report = write_shards({SYNC: indexes[SYNC]}, output_dir)
        assert report.removed == []
        assert (output_dir / "implementors/byteorder/trait.ByteOrder.js").exists()

    def test_dry_run_prune_deletes_nothing(self, indexes: dict, output_dir: Path) -> None:
        write_shards(indexes, output_dir)
        report = write_shards({}, output_dir, dry_run=True, prune=True)
        assert len(report.removed) == 3
        assert all(p.exists() for p in report.removed)
