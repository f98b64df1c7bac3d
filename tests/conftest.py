"""Shared pytest fixtures and test helpers for flatgoose tests."""

from __future__ import annotations

import itertools
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from flatgoose import FieldType, Schema, connect
from flatgoose.infrastructure.filesystem import write_collection
from flatgoose.infrastructure.store import Store
from flatgoose.services.model import Model


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep stray env vars and config files out of every test."""
    for var in ("FLATGOOSE_CONFIG", "FLATGOOSE_ROOT", "FLATGOOSE_JSON_OUTPUT", "FLATGOOSE_VERBOSE"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def store_root(tmp_path: Path) -> Path:
    return tmp_path / "data"


@pytest.fixture
def id_factory() -> Callable[[], str]:
    """Deterministic identifiers: id-1, id-2, ..."""
    counter = itertools.count(1)
    return lambda: f"id-{next(counter)}"


@pytest.fixture
def store(store_root: Path, id_factory: Callable[[], str]) -> Iterator[Store]:
    """A store on a temp root with predictable identifiers."""
    yield connect(store_root, id_factory=id_factory)


def make_user_schema(**options: Any) -> Schema:
    """The schema most service tests share."""
    return Schema(
        {
            "name": {"type": FieldType.STRING, "required": True, "unique": True},
            "age": {"type": FieldType.NUMBER, "min": 0, "default": 0},
            "status": {"type": str, "enum": ["active", "inactive"]},
            "address": {"city": str, "zip": str},
            "tags": [str],
        },
        **options,
    )


@pytest.fixture
def users(store: Store) -> Model:
    return store.model("User", make_user_schema())


def seed_collection(root: Path, name: str, documents: list[dict[str, Any]]) -> Path:
    """Write *documents* straight to ``<root>/<name>.yaml``."""
    path = root / f"{name}.yaml"
    write_collection(path, documents)
    return path
