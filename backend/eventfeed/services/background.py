from __future__ import annotations

import asyncio
from typing import Any, Coroutine, Optional, Set

from eventfeed.logging import get_logger

logger = get_logger(__name__)


class TaskScope:
    """Owns fire-and-forget coroutines, independent of whoever launched them.

    Tasks are held until they finish so they are not garbage collected
    mid-flight. Failures are logged and dropped.
    """

    def __init__(self, name: str = "detached") -> None:
        self.name = name
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def launch(self, coro: Coroutine[Any, Any, Any], *, label: Optional[str] = None) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro, name=f"{self.name}:{label or 'task'}")
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.debug("detached_task_cancelled", task=task.get_name())
            return
        exc = task.exception()
        if exc is not None:
            logger.error("detached_task_failed", task=task.get_name(), error=str(exc), exc_info=exc)

    async def join(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        await self.join()
