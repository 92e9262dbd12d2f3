from __future__ import annotations

import threading

import pytest
from sqlalchemy import create_engine, func, select

from eventfeed.domain.models import Event
from eventfeed.infra.db.events_cache import SqlEventsCache
from eventfeed.infra.db.tables import events_table, metadata


@pytest.fixture()
def engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'events_cache.db'}", future=True)
    metadata.create_all(engine)
    yield engine
    metadata.drop_all(engine)


def make_event(event_id: str, start_date: str | None = "2025-03-15", city: str | None = "Chicago", name: str = "Concert"):
    return Event(
        id=event_id,
        name=name,
        image_url=f"https://example.com/{event_id}.jpg",
        start_date=start_date,
        end_date=None,
        city=city,
        location=f"Venue {event_id}, {city}, IL" if city else None,
    )


def test_round_trip_sorted_by_start_date(engine):
    cache = SqlEventsCache(engine)
    events = [make_event("b", "2025-03-20"), make_event("a", "2025-03-10"), make_event("c", "2025-03-15")]
    cache.upsert_events(events)
    stored = cache.list_events_for_city("Chicago")
    assert [event.id for event in stored] == ["a", "c", "b"]
    assert stored[0] == events[1]


def test_city_lookup_is_case_insensitive(engine):
    cache = SqlEventsCache(engine)
    cache.upsert_events([make_event("1"), make_event("2", city="New York")])
    assert [event.id for event in cache.list_events_for_city("cHiCaGo")] == ["1"]
    assert [event.id for event in cache.list_events_for_city("NEW YORK")] == ["2"]



def test_city_lookup_handles_accented_names(engine):
    cache = SqlEventsCache(engine)
    cache.upsert_events([make_event("1", city="Montréal", name="Jazz")])
    assert [event.id for event in cache.list_events_for_city("Montréal")] == ["1"]
    assert [event.id for event in cache.list_events_for_city("montréal")] == ["1"]

def test_unknown_city_returns_empty_list(engine):
    cache = SqlEventsCache(engine)
    assert cache.list_events_for_city("Atlantis") == []


def test_missing_start_dates_sort_last(engine):
    cache = SqlEventsCache(engine)
    cache.upsert_events([make_event("x", None), make_event("y", "2025-01-01"), make_event("w", None)])
    assert [event.id for event in cache.list_events_for_city("Chicago")] == ["y", "w", "x"]


def test_upsert_overwrites_every_field(engine):
    cache = SqlEventsCache(engine)
    cache.upsert_events([make_event("1", name="Initial")])
    replacement = Event(id="1", name="Updated", city="Chicago")
    stats = cache.upsert_events([replacement])
    assert stats == {"inserted": 0, "updated": 1, "total": 1}
    assert cache.get_event("1") == replacement


def test_repeated_writes_are_idempotent(engine):
    cache = SqlEventsCache(engine)
    events = [make_event(f"evt-{i}", f"2025-03-1{i}") for i in range(3)]
    first = cache.upsert_events(events)
    before = cache.list_events_for_city("Chicago")
    second = cache.upsert_events(events)
    assert first["inserted"] == 3
    assert second == {"inserted": 0, "updated": 3, "total": 3}
    assert cache.list_events_for_city("Chicago") == before
    with engine.begin() as conn:
        count = conn.execute(select(func.count()).select_from(events_table)).scalar()
    assert count == 3


def test_empty_write_is_noop(engine):
    cache = SqlEventsCache(engine)
    assert cache.upsert_events([]) == {"inserted": 0, "updated": 0, "total": 0}
    assert cache.count() == 0


def test_clear_removes_everything(engine):
    cache = SqlEventsCache(engine)
    cache.upsert_events([make_event("1"), make_event("2", city="Boston")])
    assert cache.clear() == 2
    assert cache.count() == 0
    assert cache.list_events_for_city("Chicago") == []


def test_cache_requires_engine():
    with pytest.raises(ValueError):
        SqlEventsCache(None)  # type: ignore[arg-type]


def test_concurrent_writes_of_same_events_both_succeed(engine):
    cache = SqlEventsCache(engine)
    events = [make_event(f"evt-{i:03d}", f"2025-04-{i % 28 + 1:02d}") for i in range(200)]
    barrier = threading.Barrier(2)
    errors = []

    def write():
        barrier.wait()
        try:
            stats = cache.upsert_events(events)
            assert stats["total"] == 200
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=write) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert errors == []
    assert cache.count() == 200
    assert {event.id for event in cache.list_events_for_city("Chicago")} == {event.id for event in events}
