from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from dsmutate.config import StoreConfig
from dsmutate.keys import Key
from dsmutate.store import LocalStore


@pytest.fixture
def engine(tmp_path: Path) -> Iterator[Engine]:
    """
    Per-test SQLAlchemy engine over a temporary SQLite file.
    """
    eng = create_engine(f"sqlite:///{tmp_path / 'store.db'}")
    yield eng
    eng.dispose()


@pytest.fixture
def store(engine: Engine) -> LocalStore:
    s = LocalStore(engine, StoreConfig(table_name="entities"))
    s.create_schema()
    return s


@pytest.fixture
def key_k() -> Key:
    return Key("Task", name="K")


@pytest.fixture
def key_l() -> Key:
    return Key("Task", name="L")


@pytest.fixture
def incomplete_key() -> Key:
    return Key("Task")


@pytest.fixture
def invalid_key() -> Key:
    # name and id are mutually exclusive
    return Key("Task", name="x", id=7)
