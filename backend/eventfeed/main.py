from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from eventfeed.config import Settings, get_settings
from eventfeed.hub.events_feed import EventsFeedController
from eventfeed.hub.state_flow import WhileSubscribed
from eventfeed.infra.database import init_db
from eventfeed.infra.db.events_cache import EventsCache, SqlEventsCache
from eventfeed.infra.db.settings_store import SettingsStore, SqlSettingsStore
from eventfeed.providers.events.base import EventsProvider
from eventfeed.providers.events.ticketmaster import TicketmasterEventsProvider
from eventfeed.services.background import TaskScope
from eventfeed.services.events_repository import EventsRepository
from eventfeed.services.get_events import GetEventsUseCase


@dataclass
class Components:
    settings: Settings
    engine: Engine
    cache: EventsCache
    settings_store: SettingsStore
    provider: EventsProvider
    repository: EventsRepository
    get_events: GetEventsUseCase
    background: TaskScope

    async def shutdown(self) -> None:
        # let pending cache writes land before the process exits
        await self.background.join()


def build_components(
    settings: Optional[Settings] = None,
    *,
    engine: Optional[Engine] = None,
    provider: Optional[EventsProvider] = None,
    settings_store: Optional[SettingsStore] = None,
) -> Components:
    settings = settings or get_settings()
    if engine is None:
        engine = create_engine(settings.database_url, future=True)
    init_db(engine)
    cache = SqlEventsCache(engine)
    if provider is None:
        provider = TicketmasterEventsProvider(
            api_key=settings.api_key,
            base_url=settings.api_base_url,
            timeout=settings.api_timeout,
        )
    background = TaskScope("events-cache")
    repository = EventsRepository(provider, cache, background=background, page_size=settings.page_size)
    return Components(
        settings=settings,
        engine=engine,
        cache=cache,
        settings_store=settings_store or SqlSettingsStore(engine),
        provider=provider,
        repository=repository,
        get_events=GetEventsUseCase(repository),
        background=background,
    )


def create_feed(components: Components) -> EventsFeedController:
    """Must be called from inside a running event loop."""
    return EventsFeedController(
        components.get_events,
        components.settings_store,
        default_city=components.settings.default_city,
        sharing=WhileSubscribed(stop_timeout=components.settings.state_stop_timeout),
    )
