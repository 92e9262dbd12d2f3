from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Protocol

from sqlalchemy import delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine

from eventfeed.domain.models import Event

from .tables import events_table

EVENT_COLUMNS = [
    "name",
    "image_url",
    "start_date",
    "end_date",
    "city",
    "location",
]


def _dialect_insert(dialect_name: str):
    if dialect_name == "sqlite":
        return sqlite.insert
    if dialect_name == "postgresql":
        return postgresql.insert
    raise ValueError(f"Unsupported database dialect for event upserts: {dialect_name}")


class EventsCache(Protocol):
    """Local, city-indexed store of normalized events."""

    def list_events_for_city(self, city: str) -> List[Event]:
        ...

    def upsert_events(self, events: Iterable[Event]) -> dict:
        ...

    def clear(self) -> int:
        ...


class SqlEventsCache:
    def __init__(self, engine: Engine):
        if engine is None:
            raise ValueError("engine is required")
        self.engine = engine

    def list_events_for_city(self, city: str) -> List[Event]:
        start_date = events_table.c.start_date
        stmt = (
            select(events_table)
            .where(func.upper(events_table.c.city) == func.upper(city))
            .order_by(start_date.is_(None), start_date.asc(), events_table.c.id.asc())
        )
        with self.engine.begin() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [self._to_event(row) for row in rows]

    def upsert_events(self, events: Iterable[Event]) -> dict:
        """Insert or overwrite every event in one transaction.

        Each row is written with a single ``INSERT .. ON CONFLICT DO UPDATE``
        so concurrent writers of the same ids never collide on the primary
        key. The inserted/updated split is read before the write starts.
        """
        event_list = list(events)
        stats = {"inserted": 0, "updated": 0, "total": len(event_list)}
        if not event_list:
            return stats
        with self.engine.connect() as conn:
            existing = set(
                conn.execute(
                    select(events_table.c.id).where(events_table.c.id.in_([event.id for event in event_list]))
                ).scalars()
            )

        now = datetime.now(timezone.utc)
        with self.engine.begin() as conn:
            insert = _dialect_insert(conn.dialect.name)
            for event in event_list:
                values = {**self._build_payload(event), "cached_at": now}
                stmt = insert(events_table).values(id=event.id, **values)
                conn.execute(stmt.on_conflict_do_update(index_elements=[events_table.c.id], set_=values))
                if event.id in existing:
                    stats["updated"] += 1
                else:
                    existing.add(event.id)
                    stats["inserted"] += 1
        return stats

    def get_event(self, event_id: str) -> Event | None:
        with self.engine.begin() as conn:
            row = conn.execute(
                select(events_table).where(events_table.c.id == event_id)
            ).mappings().first()
        return self._to_event(row) if row else None

    def count(self) -> int:
        with self.engine.begin() as conn:
            return conn.execute(select(func.count()).select_from(events_table)).scalar_one()

    def clear(self) -> int:
        with self.engine.begin() as conn:
            result = conn.execute(delete(events_table))
        return result.rowcount or 0

    @staticmethod
    def _build_payload(event: Event) -> Dict[str, Any]:
        return {col: getattr(event, col) for col in EVENT_COLUMNS}

    @staticmethod
    def _to_event(row) -> Event:
        return Event(id=row["id"], **{col: row[col] for col in EVENT_COLUMNS})
