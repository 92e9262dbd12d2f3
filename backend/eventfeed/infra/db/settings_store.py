from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Optional, Protocol

from sqlalchemy import insert, select, update
from sqlalchemy.engine import Engine

from .tables import settings_table


class SettingsStore(Protocol):
    """String key/value preferences."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class InMemorySettingsStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value


class SqlSettingsStore:
    def __init__(self, engine: Engine):
        if engine is None:
            raise ValueError("engine is required")
        self.engine = engine

    def get(self, key: str) -> Optional[str]:
        with self.engine.begin() as conn:
            return conn.execute(
                select(settings_table.c.value).where(settings_table.c.key == key)
            ).scalar_one_or_none()

    def set(self, key: str, value: str) -> None:
        now = datetime.now(timezone.utc)
        with self.engine.begin() as conn:
            existing = conn.execute(
                select(settings_table.c.key).where(settings_table.c.key == key)
            ).scalar_one_or_none()
            if existing is not None:
                conn.execute(
                    update(settings_table)
                    .where(settings_table.c.key == key)
                    .values(value=value, updated_at=now)
                )
            else:
                conn.execute(insert(settings_table).values(key=key, value=value, updated_at=now))
