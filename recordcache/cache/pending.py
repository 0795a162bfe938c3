"""Registry of in-flight computations, one per cache key.

Everything here runs on a single event loop. ``join_or_start`` never
awaits, so the check and the registration happen without a suspension
point in between and two callers can never both start the same key.
A threaded port would need a lock around that method.
"""

import asyncio
from typing import Any, Callable, Dict, Optional, Tuple

from recordcache.logging_config import get_logger

logger = get_logger(name=__name__)


class PendingCallRegistry:
    """Maps a cache key to the task computing it."""

    def __init__(self):
        self._calls: Dict[str, "asyncio.Task[Any]"] = {}

    def get(self, key: str) -> Optional["asyncio.Task[Any]"]:
        return self._calls.get(key)

    def join_or_start(
        self,
        key: str,
        start: Callable[[], "asyncio.Task[Any]"],
    ) -> Tuple["asyncio.Task[Any]", bool]:
        """Return the in-flight task for ``key``, starting one if needed.

        Returns:
            (task, started) where ``started`` is True if this call created it.
        """
        task = self._calls.get(key)
        if task is not None:
            logger.debug("Cache COALESCE: {}", key)
            return task, False

        task = start()
        self._calls[key] = task
        return task, True

    def discard(self, key: str) -> None:
        self._calls.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._calls

    def __len__(self) -> int:
        return len(self._calls)


async def wait_for(task: "asyncio.Task[Any]") -> Any:
    """Await a shared task without letting a cancelled waiter cancel it."""
    return await asyncio.shield(task)
