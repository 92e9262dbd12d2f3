"""Observable state holders.

``StateFlow`` keeps a single current value and pushes changes to its
subscribers. Every subscriber first receives the current value, then each
distinct new value; slow subscribers only ever see the latest one.

``SharedStateFlow`` mirrors a source ``StateFlow`` only while somebody is
listening. When the last subscriber leaves, the mirror stays attached for
``WhileSubscribed.stop_timeout`` seconds and is then detached. The last
value is kept for late readers; with ``reset_on_stop`` it falls back to the
initial one until the next subscriber re-attaches the mirror.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Optional, TypeVar

T = TypeVar("T")


class Subscription(Generic[T]):
    def __init__(self, flow: "StateFlow[T]", on_close: Optional[Callable[[], None]] = None) -> None:
        self._latest: T = flow.value
        self._ready = asyncio.Event()
        self._ready.set()
        self._closed = False
        self._on_close = on_close
        self._detach = flow.add_listener(self._push)

    @property
    def closed(self) -> bool:
        return self._closed

    def _push(self, value: T) -> None:
        self._latest = value
        self._ready.set()

    async def get(self) -> T:
        """Wait for the next unseen value."""
        await self._ready.wait()
        if self._closed:
            raise StopAsyncIteration
        self._ready.clear()
        return self._latest

    def __aiter__(self) -> "Subscription[T]":
        return self

    async def __anext__(self) -> T:
        if self._closed:
            raise StopAsyncIteration
        return await self.get()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._detach()
        self._ready.set()
        if self._on_close is not None:
            self._on_close()

    async def __aenter__(self) -> "Subscription[T]":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()


class StateFlow(Generic[T]):
    def __init__(self, initial: T) -> None:
        self._value = initial
        self._listeners: List[Callable[[T], None]] = []

    @property
    def value(self) -> T:
        return self._value

    @value.setter
    def value(self, new_value: T) -> None:
        if new_value == self._value:
            return
        self._value = new_value
        for listener in list(self._listeners):
            listener(new_value)

    def update(self, func: Callable[[T], T]) -> None:
        self.value = func(self._value)

    def add_listener(self, listener: Callable[[T], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def subscribe(self) -> Subscription[T]:
        return Subscription(self)

    async def first(self) -> T:
        async with self.subscribe() as subscription:
            return await subscription.get()


@dataclass(frozen=True)
class WhileSubscribed:
    stop_timeout: float = 5.0
    reset_on_stop: bool = False


class SharedStateFlow(Generic[T]):
    def __init__(self, source: StateFlow[T], *, initial: T, policy: Optional[WhileSubscribed] = None) -> None:
        self._source = source
        self._initial = initial
        self.policy = policy or WhileSubscribed()
        self._replay: StateFlow[T] = StateFlow(initial)
        self._subscribers = 0
        self._detach_source: Optional[Callable[[], None]] = None
        self._stop_handle: Optional[asyncio.TimerHandle] = None

    @property
    def value(self) -> T:
        return self._replay.value

    @property
    def subscriber_count(self) -> int:
        return self._subscribers

    @property
    def is_active(self) -> bool:
        return self._detach_source is not None

    def subscribe(self) -> Subscription[T]:
        self._subscribers += 1
        self._cancel_stop()
        if self._detach_source is None:
            self._detach_source = self._source.add_listener(self._mirror)
            self._replay.value = self._source.value
        return Subscription(self._replay, on_close=self._release)

    async def first(self) -> T:
        async with self.subscribe() as subscription:
            return await subscription.get()

    def close(self) -> None:
        self._cancel_stop()
        self._stop()

    def _mirror(self, value: T) -> None:
        self._replay.value = value

    def _release(self) -> None:
        self._subscribers -= 1
        if self._subscribers > 0:
            return
        if self.policy.stop_timeout <= 0:
            self._stop()
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._stop()
            return
        self._stop_handle = loop.call_later(self.policy.stop_timeout, self._stop)

    def _cancel_stop(self) -> None:
        if self._stop_handle is not None:
            self._stop_handle.cancel()
            self._stop_handle = None

    def _stop(self) -> None:
        self._stop_handle = None
        if self._subscribers > 0 or self._detach_source is None:
            return
        self._detach_source()
        self._detach_source = None
        if self.policy.reset_on_stop:
            self._replay.value = self._initial
