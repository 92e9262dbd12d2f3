from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from eventfeed.providers.events.base import ApiEvent

_MONTHS = ("JAN", "FEB", "MAR", "APR", "MAY", "JUN", "JUL", "AUG", "SEP", "OCT", "NOV", "DEC")


def format_event_date(value: Optional[str]) -> Optional[str]:
    """Render an ISO date as ``"MAR 15, 2025"``; ``None`` if it does not parse."""
    if not value:
        return None
    try:
        parsed = date.fromisoformat(value)
    except ValueError:
        return None
    return f"{_MONTHS[parsed.month - 1]} {parsed.day}, {parsed.year}"


@dataclass(frozen=True)
class Event:
    id: str
    name: str
    image_url: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    city: Optional[str] = None
    location: Optional[str] = None

    @property
    def formatted_start_date(self) -> Optional[str]:
        return format_event_date(self.start_date)

    @property
    def formatted_end_date(self) -> Optional[str]:
        return format_event_date(self.end_date)

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match on name or location."""
        needle = query.lower()
        if not needle:
            return True
        if needle in self.name.lower():
            return True
        return bool(self.location) and needle in self.location.lower()

    @classmethod
    def from_api_event(cls, payload: "ApiEvent") -> "Event":
        # only the first venue counts for city and location
        venue = payload.venues[0] if payload.venues else None
        city = None
        location = None
        if venue is not None:
            parts = [venue.name] if venue.name and venue.name.strip() else []
            if venue.city_name is not None and venue.state_code is not None:
                parts.extend([venue.city_name, venue.state_code])
                city = venue.city_name
            location = ", ".join(parts) or None
        return cls(
            id=payload.id,
            name=payload.name,
            image_url=payload.images[0].url if payload.images else None,
            start_date=payload.start.local_date if payload.start else None,
            end_date=payload.end.local_date if payload.end else None,
            city=city,
            location=location,
        )
