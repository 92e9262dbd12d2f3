from __future__ import annotations

import httpx
import pytest
from sqlalchemy import create_engine

from eventfeed.config import Settings
from eventfeed.domain.errors import NetworkError
from eventfeed.domain.result import Err, Ok
from eventfeed.hub.events_feed import Empty, EventsLoaded
from eventfeed.main import build_components, create_feed
from eventfeed.providers.events.ticketmaster import TicketmasterEventsProvider


def _page(*names: str) -> dict:
    return {
        "_embedded": {
            "events": [
                {
                    "id": f"evt-{idx}",
                    "name": name,
                    "dates": {"start": {"localDate": f"2025-04-{idx + 1:02d}"}},
                    "_embedded": {
                        "venues": [
                            {"id": "v1", "name": "United Center", "city": {"name": "Chicago"}, "state": {"stateCode": "IL", "name": "Illinois"}}
                        ]
                    },
                }
                for idx, name in enumerate(names)
            ]
        },
        "page": {"size": 10, "totalElements": len(names), "totalPages": 1, "number": 0},
    }


class _SwitchableApi:
    def __init__(self) -> None:
        self.online = True
        self.payload = _page("Concert A", "Theater B")

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if not self.online:
            raise httpx.ConnectError("offline", request=request)
        return httpx.Response(200, json=self.payload)


@pytest.fixture()
def api():
    return _SwitchableApi()


@pytest.fixture()
def components(tmp_path, api):
    engine = create_engine(f"sqlite:///{tmp_path / 'feed.db'}", future=True)
    provider = TicketmasterEventsProvider(
        api_key="secret",
        base_url="https://api.test/discovery/v2",
        client=httpx.AsyncClient(transport=httpx.MockTransport(api)),
    )
    settings = Settings(api_key="secret", database_url=str(engine.url), state_stop_timeout=0)
    return build_components(settings, engine=engine, provider=provider)


@pytest.mark.asyncio
async def test_cached_events_served_when_offline(components, api):
    online = await components.repository.get_events("Chicago", 0)
    assert isinstance(online, Ok)
    await components.shutdown()

    api.online = False
    offline = await components.repository.get_events("chicago", 0)

    assert offline == online
    assert [event.location for event in offline.value] == ["United Center, Chicago, IL"] * 2


@pytest.mark.asyncio
async def test_offline_with_empty_cache(components, api):
    api.online = False
    result = await components.repository.get_events("Chicago", 0)
    assert result == Err(NetworkError("No internet and no cached events for city: Chicago"))
    assert await components.get_events("Chicago", 0) == Err("Network unavailable")


@pytest.mark.asyncio
async def test_feed_end_to_end(components, api):
    feed = create_feed(components)
    await feed.join()
    state = await feed.ui_state.first()
    assert isinstance(state, EventsLoaded)
    assert [event.name for event in state.events] == ["Concert A", "Theater B"]

    feed.set_search_query("concert")
    state = await feed.ui_state.first()
    assert [event.name for event in state.events] == ["Concert A"]

    await components.shutdown()
    api.online = False
    await feed.set_city("Springfield")
    assert await feed.ui_state.first() == Empty()
    assert feed.error_message.value == "Failed to load events: Network unavailable"
    assert components.settings_store.get("selected_city") == "Springfield"
    await feed.close()
