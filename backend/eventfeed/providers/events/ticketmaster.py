from __future__ import annotations

import os
from typing import Optional

import httpx

from eventfeed.config import DEFAULT_BASE_URL
from eventfeed.logging import get_logger

from .base import EventsNetworkError, EventsProvider, EventsProviderError, EventsResponse

logger = get_logger(__name__)


class TicketmasterEventsProvider(EventsProvider):
    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key or os.getenv("TICKETMASTER_API_KEY")
        if not self.api_key:
            raise RuntimeError("TICKETMASTER_API_KEY is required for TicketmasterEventsProvider")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    @property
    def events_url(self) -> str:
        return f"{self.base_url}/events.json"

    async def fetch_events(self, *, city: str, page: int, page_size: int = 10) -> EventsResponse:
        if page < 0:
            raise ValueError(f"page must be >= 0, got {page}")
        if page_size <= 0:
            raise ValueError(f"page_size must be > 0, got {page_size}")
        params = {
            "apikey": self.api_key,
            "city": city,
            "page": page,
            "size": page_size,
            "sort": "date,asc",
        }
        try:
            if self._client is not None:
                resp = await self._client.get(self.events_url, params=params)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    resp = await client.get(self.events_url, params=params)
        except httpx.TransportError as exc:
            raise EventsNetworkError(f"Could not reach events API: {exc}") from exc

        if resp.is_error:
            raise EventsProviderError(f"Events API returned HTTP {resp.status_code}")
        try:
            data = resp.json()
        except ValueError as exc:
            raise EventsProviderError("Events API returned a malformed payload") from exc
        if not isinstance(data, dict):
            raise EventsProviderError("Events API returned a malformed payload")

        response = EventsResponse.from_dict(data)
        logger.debug("events_page_fetched", city=city, page=page, count=len(response.events))
        return response
