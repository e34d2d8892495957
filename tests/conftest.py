"""Shared fixtures for implementor-tools tests.

Provides the byteorder/chacha/keystream declaration fixtures, the default
inference rules, and a factory for building in-memory declaration stores.
"""

import shutil
from pathlib import Path
from typing import Callable

import pytest

from implementor_tools.implementors.declarations import DeclarationStore, parse_unit
from implementor_tools.implementors.rules import InferenceRules, load_rules

SYNC = "core::marker::Sync"
SEND = "core::marker::Send"


def unit_data(name: str, types=(), impls=(), contracts=None) -> dict:
    """Build a declaration dict for one unit."""
    data = {
        "schema_version": "1.1" if contracts is not None else "1.0",
        "unit": name,
        "types": list(types),
        "impls": list(impls),
    }
    if contracts is not None:
        data["contracts"] = list(contracts)
    return data


def impl(contract: str, for_type: dict, **extra) -> dict:
    return {"contract": contract, "for": for_type, **extra}


def ref(path: str, *args: dict) -> dict:
    data = {"path": path}
    if args:
        data["args"] = list(args)
    return data


def gen(name: str) -> dict:
    return {"generic": name}


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def declarations_dir(fixtures_dir: Path, tmp_path: Path) -> Path:
    """Copy the fixture declarations into a writable temporary directory."""
    target = tmp_path / "declarations"
    shutil.copytree(fixtures_dir / "declarations", target)
    return target


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    return tmp_path / "doc"


@pytest.fixture
def rules() -> InferenceRules:
    """The built-in Send/Sync rules."""
    return load_rules()


@pytest.fixture
def make_store() -> Callable[..., DeclarationStore]:
    """Factory building a DeclarationStore from unit dicts."""

    def _make(*units: dict) -> DeclarationStore:
        store = DeclarationStore()
        for data in units:
            store.add(parse_unit(data, source=f"{data['unit']}.json"))
        return store

    return _make
