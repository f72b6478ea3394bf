"""
Request de-duplication for async calls.
"""
import asyncio
from typing import Any, Awaitable, Dict, Hashable, Optional, Set


class SingleFlight:
    """Keeps at most one running task per key and tracks background tasks.

    Must be used from a running event loop. A key is released as soon as its
    task finishes, before any awaiter of that task resumes.
    """

    def __init__(self):
        self._calls: Dict[Hashable, asyncio.Task] = {}
        self._tasks: Set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._calls)

    def get(self, key: Hashable) -> Optional[asyncio.Task]:
        return self._calls.get(key)

    def start(self, key: Hashable, coro: Awaitable[Any]) -> asyncio.Task:
        """Run `coro` under `key`. The caller checks `get(key)` first."""
        task = self.spawn(coro)
        self._calls[key] = task
        task.add_done_callback(lambda done, key=key: self._release(key, done))
        return task

    def spawn(self, coro: Awaitable[Any]) -> asyncio.Task:
        """Run `coro` in the background without a key."""
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def forget(self):
        """Drop all keys; running tasks finish but no longer block new calls."""
        self._calls.clear()

    async def wait_idle(self):
        """Wait until every task started here, including ones started meanwhile, is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    def _release(self, key: Hashable, task: asyncio.Task):
        if self._calls.get(key) is task:
            del self._calls[key]
