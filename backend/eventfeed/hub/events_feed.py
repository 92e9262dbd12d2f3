from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, List, Optional, Union

from eventfeed.config import DEFAULT_CITY
from eventfeed.domain.models import Event
from eventfeed.domain.result import Err, Ok, Result
from eventfeed.infra.db.settings_store import SettingsStore
from eventfeed.logging import get_logger
from eventfeed.services.background import TaskScope

from .state_flow import SharedStateFlow, StateFlow, WhileSubscribed

logger = get_logger(__name__)

SELECTED_CITY_KEY = "selected_city"
ERROR_PREFIX = "Failed to load events: "

GetEvents = Callable[[str, int], Awaitable[Result[List[Event], str]]]


@dataclass(frozen=True)
class Loading:
    pass


@dataclass(frozen=True)
class Empty:
    pass


@dataclass(frozen=True)
class EventsLoaded:
    events: List[Event]
    is_loading_more: bool = False


@dataclass(frozen=True)
class ActionCompleted:
    action_id: str


UiState = Union[Loading, Empty, EventsLoaded, ActionCompleted]


def filter_events(events: List[Event], query: str) -> List[Event]:
    if not query:
        return list(events)
    return [event for event in events if event.matches(query)]


class EventsFeedController:
    """Owns the event list state for one city session.

    Loads run as tasks on the controller's own scope. Each refresh bumps a
    generation number; a page load that finishes after a newer refresh
    started is discarded without touching state.
    """

    def __init__(
        self,
        get_events: GetEvents,
        settings: SettingsStore,
        *,
        default_city: str = DEFAULT_CITY,
        sharing: Optional[WhileSubscribed] = None,
    ):
        self._get_events = get_events
        self._settings = settings
        self._scope = TaskScope("events-feed")
        self._ui_state: StateFlow[UiState] = StateFlow(Loading())
        self.ui_state: SharedStateFlow[UiState] = SharedStateFlow(
            self._ui_state, initial=Loading(), policy=sharing or WhileSubscribed()
        )
        self.is_refreshing: StateFlow[bool] = StateFlow(False)
        self.error_message: StateFlow[Optional[str]] = StateFlow(None)
        self.selected_city: StateFlow[str] = StateFlow(settings.get(SELECTED_CITY_KEY) or default_city)
        self.search_query: StateFlow[str] = StateFlow("")
        self._all_events: List[Event] = []
        self._current_page = 0
        self._generation = 0

        logger.debug("events_feed_init", city=self.selected_city.value)
        self.refresh()

    @property
    def current_page(self) -> int:
        return self._current_page

    @property
    def all_events(self) -> List[Event]:
        return list(self._all_events)

    def set_city(self, city: str) -> asyncio.Task:
        self.selected_city.value = city
        self._settings.set(SELECTED_CITY_KEY, city)
        return self.refresh()

    def set_search_query(self, query: str) -> None:
        self.search_query.value = query
        logger.debug("events_feed_filter", query=query)
        state = self._ui_state.value
        if isinstance(state, EventsLoaded):
            self._ui_state.value = replace(state, events=filter_events(self._all_events, query))

    def refresh(self) -> asyncio.Task:
        self._generation += 1
        return self._scope.launch(self._refresh(self._generation), label="refresh")

    def load_more(self) -> Optional[asyncio.Task]:
        state = self._ui_state.value
        if not isinstance(state, EventsLoaded) or state.is_loading_more:
            return None
        self._ui_state.value = replace(state, is_loading_more=True)
        self._current_page += 1
        return self._scope.launch(self._load_page(self._generation), label="load-more")

    def complete_action(self, action_id: str) -> asyncio.Task:
        self._ui_state.value = ActionCompleted(action_id)
        return self.refresh()

    def dismiss_error(self) -> None:
        self.error_message.value = None

    async def join(self) -> None:
        await self._scope.join()

    async def close(self) -> None:
        await self._scope.close()
        self.ui_state.close()

    async def _refresh(self, generation: int) -> None:
        if generation != self._generation:
            return
        self.is_refreshing.value = True
        self.error_message.value = None
        self._ui_state.value = Loading()
        self._current_page = 0
        self._all_events = []
        try:
            await self._load_page(generation)
        finally:
            if generation == self._generation:
                self.is_refreshing.value = False

    async def _load_page(self, generation: int) -> None:
        city = self.selected_city.value
        page = self._current_page
        logger.debug("events_feed_load", city=city, page=page)
        result = await self._get_events(city, page)
        if generation != self._generation:
            logger.debug("events_feed_stale_result", city=city, page=page)
            return

        if isinstance(result, Ok):
            new_events = list(result.value)
            logger.info("events_feed_loaded", city=city, page=page, ids=[event.id for event in new_events])
            self._all_events = new_events if page == 0 else self._all_events + new_events
            self._ui_state.value = EventsLoaded(
                filter_events(self._all_events, self.search_query.value), is_loading_more=False
            )
        elif isinstance(result, Err):
            message = f"{ERROR_PREFIX}{result.error}"
            logger.error("events_feed_failed", city=city, page=page, error=result.error)
            self.error_message.value = message
            if page > 0:
                self._current_page = page - 1
            if not self._all_events:
                self._ui_state.value = Empty()
            else:
                # keep what was already shown, unfiltered
                self._ui_state.value = EventsLoaded(list(self._all_events), is_loading_more=False)
        else:
            raise TypeError(f"Unexpected result type: {type(result).__name__}")
