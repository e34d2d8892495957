"""Unit tests for shard loading and the registry merge."""

from pathlib import Path

import pytest

from implementor_tools.shared import ShardFormatError
from implementor_tools.implementors.declarations import load_declarations_dir
from implementor_tools.implementors.emitter import render_shard
from implementor_tools.implementors.index import build_indexes
from implementor_tools.implementors.records import ImplementorRecord
from implementor_tools.implementors.registry import (
    ImplementorRegistry,
    ShardHost,
    parse_shard,
)
from implementor_tools.implementors.resolver import resolve

from conftest import SYNC


def shard_for(units: dict[str, int]) -> str:
    """A shard with the given number of records per unit."""
    return render_shard({
        unit: [
            ImplementorRecord(f"impl Sync for {unit}::T{i}", False, (f"{unit}::T{i}",))
            for i in range(count)
        ]
        for unit, count in units.items()
    })


def loaded(*shards: str) -> ImplementorRegistry:
    registry = ImplementorRegistry()
    host = ShardHost(registry)
    for shard in shards:
        host.load(shard)
    return registry


class TestParseShard:
    """Tests for reading shard text back."""

    def test_round_trips_emitted_shard(self, declarations_dir: Path, rules) -> None:
        index = build_indexes(resolve(load_declarations_dir(declarations_dir), rules))[SYNC]
        assert parse_shard(render_shard(index)) == index

    def test_reads_legacy_layout(self, fixtures_dir: Path) -> None:
        text = (fixtures_dir / "legacy_trait.Sync.js").read_text(encoding="utf-8")
        mapping = parse_shard(text)
        assert list(mapping) == ["byteorder", "chacha", "keystream"]
        assert {u: len(r) for u, r in mapping.items()} == {"byteorder": 2, "chacha": 1, "keystream": 1}
        assert all(r.synthetic for records in mapping.values() for r in records)
        assert mapping["chacha"][0].types == ("chacha::ChaCha",)

    def test_empty_shard(self) -> None:
        assert parse_shard(render_shard({})) == {}

    def test_not_a_shard(self) -> None:
        with pytest.raises(ShardFormatError, match="missing implementors declaration"):
            parse_shard("console.log('hi')")

    def test_truncated_record(self) -> None:
        text = 'var implementors = {};\nimplementors["a"] = [{text:"x",synthetic:maybe,types:["a::X"]},];'
        with pytest.raises(ShardFormatError, match="synthetic flag"):
            parse_shard(text)

    def test_repeated_unit_keeps_last(self) -> None:
        text = (
            'var implementors = {};\n'
            'implementors["a"] = [{text:"one",synthetic:false,types:["a::X"]},];\n'
            'implementors["a"] = [{text:"two",synthetic:false,types:["a::Y"]},];\n'
        )
        assert [r.text for r in parse_shard(text)["a"]] == ["two"]


class TestRegistryMerge:
    """Merging is idempotent and independent of load order."""

    def test_loading_twice_equals_loading_once(self) -> None:
        shard = shard_for({"a": 2, "b": 1})
        assert loaded(shard, shard) == loaded(shard)

    def test_order_independent(self) -> None:
        first = shard_for({"a": 2})
        second = shard_for({"b": 1, "c": 3})
        assert loaded(first, second) == loaded(second, first)

    def test_reload_overwrites_unit(self) -> None:
        registry = loaded(shard_for({"a": 3}), shard_for({"a": 1}))
        assert len(registry.records("a")) == 1

    def test_sync_scenario_in_any_order(self, declarations_dir: Path, rules) -> None:
        index = build_indexes(resolve(load_declarations_dir(declarations_dir), rules))[SYNC]
        shards = [render_shard({unit: records}) for unit, records in index.items()]

        forward = loaded(*shards)
        backward = loaded(*reversed(shards))
        assert forward == backward
        assert forward.units() == ["byteorder", "chacha", "keystream"]
        assert {u: len(forward.records(u)) for u in forward.units()} == {
            "byteorder": 2, "chacha": 1, "keystream": 1,
        }
        assert not any(r.synthetic for u in forward.units() for r in forward.records(u))

    def test_zero_implementors_adds_no_entries(self) -> None:
        registry = loaded(render_shard({}))
        assert len(registry) == 0
        assert registry.snapshot() == {}


class TestShardHost:
    """Shards loaded before a registry exists are queued."""

    def test_queues_without_registry(self) -> None:
        host = ShardHost()
        host.load(shard_for({"a": 1}))
        host.load(shard_for({"b": 2}))
        assert len(host.pending) == 2
        assert host.registry is None

    def test_install_drains_queue(self) -> None:
        host = ShardHost()
        host.load(shard_for({"a": 1}))
        registry = ImplementorRegistry()
        assert host.install(registry) == 1
        assert host.pending == []
        assert "a" in registry

        host.load(shard_for({"b": 1}))
        assert host.pending == []
        assert registry.units() == ["a", "b"]

    def test_queued_and_direct_loads_agree(self) -> None:
        shards = [shard_for({"a": 1}), shard_for({"b": 2})]

        early = ShardHost()
        for shard in shards:
            early.load(shard)
        early_registry = ImplementorRegistry()
        early.install(early_registry)

        assert early_registry == loaded(*shards)
