from __future__ import annotations

import asyncio
from typing import Optional

import typer

from eventfeed.domain.models import Event
from eventfeed.hub.events_feed import SELECTED_CITY_KEY, EventsLoaded
from eventfeed.infra.database import init_db
from eventfeed.infra.db.events_cache import SqlEventsCache
from eventfeed.logging import setup_logging
from eventfeed.main import Components, build_components, create_feed

app = typer.Typer(help="Browse city events with offline cache fallback")


def _format_row(event: Event) -> str:
    return f"{event.formatted_start_date or '-'}\t{event.name}\t{event.location or '-'}"


async def _collect(components: Components, city: str, pages: int, query: Optional[str]) -> tuple[list[Event], Optional[str]]:
    components.settings_store.set(SELECTED_CITY_KEY, city)
    feed = create_feed(components)
    try:
        await feed.join()
        for _ in range(max(0, pages - 1)):
            task = feed.load_more()
            if task is None:
                break
            await task
            if feed.error_message.value:
                break
        if query:
            feed.set_search_query(query)
        state = await feed.ui_state.first()
        events = state.events if isinstance(state, EventsLoaded) else []
        error = feed.error_message.value
    finally:
        await feed.close()
        await components.shutdown()
    return events, error


@app.command("events")
def cli_events(
    city: Optional[str] = typer.Option(None, help="City to list events for"),
    pages: int = typer.Option(1, min=1, help="Number of pages to load"),
    query: Optional[str] = typer.Option(None, help="Filter by name or location"),
):
    setup_logging()
    components = build_components()
    events, error = asyncio.run(_collect(components, city or components.settings.default_city, pages, query))
    if error:
        typer.echo(error, err=True)
    if not events:
        raise typer.Exit(code=1 if error else 0)
    for event in events:
        typer.echo(_format_row(event))


@app.command("cached")
def cli_cached(city: str = typer.Option(..., help="City to read from the local cache")):
    setup_logging()
    cache = SqlEventsCache(init_db())
    events = cache.list_events_for_city(city)
    if not events:
        typer.echo(f"No cached events for {city} ({cache.count()} cached in total)")
        raise typer.Exit(code=0)
    for event in events:
        typer.echo(_format_row(event))


@app.command("clear-cache")
def cli_clear_cache():
    setup_logging()
    cache = SqlEventsCache(init_db())
    removed = cache.clear()
    typer.echo(f"Removed {removed} cached events")


if __name__ == "__main__":
    app()
