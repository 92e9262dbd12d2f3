from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Protocol


class EventsProviderError(RuntimeError):
    """Remote source failure that is not connectivity related."""


class EventsNetworkError(EventsProviderError, OSError):
    """The remote endpoint could not be reached."""


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _as_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _as_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _as_bool(value: Any) -> Optional[bool]:
    return value if isinstance(value, bool) else None


@dataclass
class ApiImage:
    url: Optional[str] = None
    ratio: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    fallback: Optional[bool] = None

    @classmethod
    def from_dict(cls, payload: dict) -> "ApiImage":
        return cls(
            url=_as_str(payload.get("url")),
            ratio=_as_str(payload.get("ratio")),
            width=_as_int(payload.get("width")),
            height=_as_int(payload.get("height")),
            fallback=_as_bool(payload.get("fallback")),
        )


@dataclass
class ApiDateTime:
    local_date: Optional[str] = None
    local_time: Optional[str] = None
    date_time: Optional[str] = None
    no_specific_time: Optional[bool] = None

    @classmethod
    def from_dict(cls, payload: dict) -> "ApiDateTime":
        return cls(
            local_date=_as_str(payload.get("localDate")),
            local_time=_as_str(payload.get("localTime")),
            date_time=_as_str(payload.get("dateTime")),
            no_specific_time=_as_bool(payload.get("noSpecificTime")),
        )


@dataclass
class ApiVenue:
    id: Optional[str] = None
    name: Optional[str] = None
    city_name: Optional[str] = None
    state_name: Optional[str] = None
    state_code: Optional[str] = None
    country_name: Optional[str] = None
    country_code: Optional[str] = None
    address_line1: Optional[str] = None
    postal_code: Optional[str] = None
    timezone: Optional[str] = None
    latitude: Optional[str] = None
    longitude: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: dict) -> "ApiVenue":
        city = _as_dict(payload.get("city"))
        state = _as_dict(payload.get("state"))
        country = _as_dict(payload.get("country"))
        location = _as_dict(payload.get("location"))
        return cls(
            id=_as_str(payload.get("id")),
            name=_as_str(payload.get("name")),
            city_name=_as_str(city.get("name")),
            state_name=_as_str(state.get("name")),
            state_code=_as_str(state.get("stateCode")),
            country_name=_as_str(country.get("name")),
            country_code=_as_str(country.get("countryCode")),
            address_line1=_as_str(_as_dict(payload.get("address")).get("line1")),
            postal_code=_as_str(payload.get("postalCode")),
            timezone=_as_str(payload.get("timezone")),
            latitude=_as_str(location.get("latitude")),
            longitude=_as_str(location.get("longitude")),
        )


@dataclass
class ApiEvent:
    id: str
    name: str = ""
    type: Optional[str] = None
    url: Optional[str] = None
    locale: Optional[str] = None
    images: List[ApiImage] = field(default_factory=list)
    start: Optional[ApiDateTime] = None
    end: Optional[ApiDateTime] = None
    timezone: Optional[str] = None
    status: Optional[str] = None
    venues: List[ApiVenue] = field(default_factory=list)

    @classmethod
    def from_dict(cls, payload: dict) -> Optional["ApiEvent"]:
        """Lenient parse; ``None`` when the payload has no usable id."""
        event_id = _as_str(payload.get("id"))
        if not event_id:
            return None
        dates = _as_dict(payload.get("dates"))
        start = dates.get("start")
        end = dates.get("end")
        embedded = _as_dict(payload.get("_embedded"))
        return cls(
            id=event_id,
            name=_as_str(payload.get("name")) or "",
            type=_as_str(payload.get("type")),
            url=_as_str(payload.get("url")),
            locale=_as_str(payload.get("locale")),
            images=[ApiImage.from_dict(item) for item in _as_list(payload.get("images")) if isinstance(item, dict)],
            start=ApiDateTime.from_dict(start) if isinstance(start, dict) else None,
            end=ApiDateTime.from_dict(end) if isinstance(end, dict) else None,
            timezone=_as_str(dates.get("timezone")),
            status=_as_str(_as_dict(dates.get("status")).get("code")),
            venues=[ApiVenue.from_dict(item) for item in _as_list(embedded.get("venues")) if isinstance(item, dict)],
        )


@dataclass
class PageInfo:
    size: int = 0
    total_elements: int = 0
    total_pages: int = 0
    number: int = 0

    @classmethod
    def from_dict(cls, payload: dict) -> "PageInfo":
        return cls(
            size=_as_int(payload.get("size")) or 0,
            total_elements=_as_int(payload.get("totalElements")) or 0,
            total_pages=_as_int(payload.get("totalPages")) or 0,
            number=_as_int(payload.get("number")) or 0,
        )


@dataclass
class PageLinks:
    first: Optional[str] = None
    self: Optional[str] = None
    next: Optional[str] = None
    last: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: dict) -> "PageLinks":
        def href(key: str) -> Optional[str]:
            return _as_str(_as_dict(payload.get(key)).get("href"))

        return cls(first=href("first"), self=href("self"), next=href("next"), last=href("last"))


@dataclass
class EventsResponse:
    events: List[ApiEvent] = field(default_factory=list)
    links: Optional[PageLinks] = None
    page: Optional[PageInfo] = None

    @classmethod
    def from_dict(cls, payload: dict) -> "EventsResponse":
        embedded = _as_dict(payload.get("_embedded"))
        events: List[ApiEvent] = []
        for item in _as_list(embedded.get("events")):
            if not isinstance(item, dict):
                continue
            event = ApiEvent.from_dict(item)
            if event is not None:
                events.append(event)
        links = payload.get("_links")
        page = payload.get("page")
        return cls(
            events=events,
            links=PageLinks.from_dict(links) if isinstance(links, dict) else None,
            page=PageInfo.from_dict(page) if isinstance(page, dict) else None,
        )


class EventsProvider(Protocol):
    """Contract for the paginated remote events source."""

    async def fetch_events(self, *, city: str, page: int, page_size: int = 10) -> EventsResponse:
        """Fetch one page of events for ``city``, sorted by date ascending.

        Raises ``EventsNetworkError`` when the endpoint is unreachable and
        ``EventsProviderError`` for error statuses or malformed payloads.
        """
        raise NotImplementedError
