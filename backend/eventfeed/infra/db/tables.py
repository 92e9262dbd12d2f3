from __future__ import annotations

from sqlalchemy import Column, DateTime, Index, MetaData, Table, Text

metadata = MetaData()

events_table = Table(
    "events",
    metadata,
    Column("id", Text, primary_key=True),
    Column("name", Text, nullable=False),
    Column("image_url", Text),
    Column("start_date", Text),
    Column("end_date", Text),
    Column("city", Text),
    Column("location", Text),
    Column("cached_at", DateTime(timezone=True)),
)

Index("ix_events_city_start", events_table.c.city, events_table.c.start_date)

settings_table = Table(
    "settings",
    metadata,
    Column("key", Text, primary_key=True),
    Column("value", Text, nullable=False),
    Column("updated_at", DateTime(timezone=True)),
)
