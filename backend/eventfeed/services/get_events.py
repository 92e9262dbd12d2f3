from __future__ import annotations

from typing import List, Protocol

from eventfeed.domain.errors import ApiError, HttpError, NetworkError
from eventfeed.domain.models import Event
from eventfeed.domain.result import Result

NETWORK_UNAVAILABLE = "Network unavailable"
GENERIC_FAILURE = "Error getting events, try again later"


class EventsSource(Protocol):
    async def get_events(self, city: str, page: int) -> Result[List[Event], ApiError]:
        ...


def describe_error(error: ApiError) -> str:
    if isinstance(error, NetworkError):
        return NETWORK_UNAVAILABLE
    if isinstance(error, HttpError):
        return GENERIC_FAILURE
    raise TypeError(f"Unknown error kind: {type(error).__name__}")


class GetEventsUseCase:
    """Turns repository error kinds into user-facing messages."""

    def __init__(self, repository: EventsSource):
        self.repository = repository

    async def __call__(self, city: str, page: int) -> Result[List[Event], str]:
        result = await self.repository.get_events(city, page)
        return result.map_err(describe_error)
