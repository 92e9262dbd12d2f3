from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

DEFAULT_BASE_URL = "https://app.ticketmaster.com/discovery/v2"
DEFAULT_DATABASE_URL = "sqlite:///eventfeed.db"
DEFAULT_CITY = "Chicago"


@dataclass(frozen=True)
class Settings:
    api_key: Optional[str] = None
    api_base_url: str = DEFAULT_BASE_URL
    api_timeout: float = 10.0
    page_size: int = 10
    database_url: str = DEFAULT_DATABASE_URL
    default_city: str = DEFAULT_CITY
    state_stop_timeout: float = 5.0
    log_level: str = "INFO"
    log_format: str = "console"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            api_key=os.getenv("TICKETMASTER_API_KEY") or None,
            api_base_url=os.getenv("EVENTS_API_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
            api_timeout=float(os.getenv("EVENTS_API_TIMEOUT", "10.0")),
            page_size=int(os.getenv("EVENTS_PAGE_SIZE", "10")),
            database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
            default_city=os.getenv("DEFAULT_CITY", DEFAULT_CITY),
            state_stop_timeout=float(os.getenv("STATE_STOP_TIMEOUT", "5.0")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "console").lower(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
