from __future__ import annotations

import asyncio
from typing import List, Optional

import httpx

from eventfeed.domain.errors import ApiError, HttpError, NetworkError
from eventfeed.domain.models import Event
from eventfeed.domain.result import Err, Ok, Result
from eventfeed.infra.db.events_cache import EventsCache
from eventfeed.logging import get_logger
from eventfeed.providers.events.base import EventsProvider

from .background import TaskScope

logger = get_logger(__name__)


class EventsRepository:
    """Remote-first event retrieval with write-through cache and offline fallback.

    A successful fetch is returned as soon as it is normalized; the cache
    write runs on ``background`` and its outcome never reaches the caller.
    Connectivity shaped failures (``OSError``, ``httpx.TransportError``) and
    malformed-input failures (``ValueError``) fall back to whatever the cache
    holds for the city. Anything else surfaces as ``HttpError`` untouched by
    the cache.
    """

    def __init__(
        self,
        provider: EventsProvider,
        cache: EventsCache,
        *,
        background: Optional[TaskScope] = None,
        page_size: int = 10,
    ):
        self.provider = provider
        self.cache = cache
        self.background = background or TaskScope("events-cache")
        self.page_size = page_size

    async def get_events(self, city: str, page: int) -> Result[List[Event], ApiError]:
        try:
            response = await self.provider.fetch_events(city=city, page=page, page_size=self.page_size)
        except (ValueError, OSError, httpx.TransportError) as exc:
            logger.warning("events_fetch_offline", city=city, page=page, error=str(exc), kind=type(exc).__name__)
            return await self._offline_fallback(city)
        except Exception as exc:
            logger.error("events_fetch_unexpected", city=city, page=page, error=str(exc), exc_info=exc)
            return Err(HttpError(f"Unexpected error: {exc}"))

        events = [Event.from_api_event(item) for item in response.events]
        logger.debug("events_fetched", city=city, page=page, count=len(events))
        if events:
            self.background.launch(self._save(events), label=f"save:{city}:{page}")
        return Ok(events)

    async def _save(self, events: List[Event]) -> None:
        stats = await asyncio.to_thread(self.cache.upsert_events, events)
        logger.debug("events_cached", **stats)

    async def _offline_fallback(self, city: str) -> Result[List[Event], ApiError]:
        try:
            cached = await asyncio.to_thread(self.cache.list_events_for_city, city)
        except Exception as exc:
            logger.error("events_cache_read_failed", city=city, error=str(exc), exc_info=exc)
            cached = []
        if cached:
            logger.info("events_cache_fallback", city=city, count=len(cached))
            return Ok(cached)
        logger.warning("events_cache_empty", city=city)
        return Err(NetworkError(f"No internet and no cached events for city: {city}"))
