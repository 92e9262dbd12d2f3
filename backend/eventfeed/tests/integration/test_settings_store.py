from __future__ import annotations

import pytest
from sqlalchemy import create_engine

from eventfeed.infra.db.settings_store import InMemorySettingsStore, SqlSettingsStore
from eventfeed.infra.db.tables import metadata


@pytest.fixture()
def engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'settings.db'}", future=True)
    metadata.create_all(engine)
    return engine


def test_sql_settings_round_trip(engine):
    store = SqlSettingsStore(engine)
    assert store.get("selected_city") is None
    store.set("selected_city", "Chicago")
    store.set("selected_city", "Boston")
    assert store.get("selected_city") == "Boston"
    assert SqlSettingsStore(engine).get("selected_city") == "Boston"


def test_in_memory_settings():
    store = InMemorySettingsStore({"a": "1"})
    store.set("b", "2")
    assert store.get("a") == "1"
    assert store.get("b") == "2"
    assert store.get("missing") is None
