"""
Per-connection debounce timers backed by asyncio tasks
"""

import asyncio
from typing import Awaitable, Callable, Dict
from .logger import get_logger

logger = get_logger()

TimerCallback = Callable[[], Awaitable[None]]

class TimerManager:
    """One cancellable one-shot timer per connection"""

    def __init__(self):
        # connection_id -> pending task
        self._timers: Dict[str, asyncio.Task] = {}

    def arm(self, connection_id: str, delay: float, on_fire: TimerCallback):
        """
        Schedule on_fire after delay, replacing any pending timer for the connection

        Args:
            connection_id: Connection identifier
            delay: Seconds to wait before firing
            on_fire: Coroutine function called once when the timer expires
        """
        self.disarm(connection_id)
        task = asyncio.create_task(self._run(connection_id, delay, on_fire))
        self._timers[connection_id] = task

    def disarm(self, connection_id: str) -> bool:
        """
        Cancel the pending timer for a connection

        Args:
            connection_id: Connection identifier

        Returns:
            True if a pending timer was cancelled
        """
        task = self._timers.pop(connection_id, None)
        if task is None or task.done():
            return False

        task.cancel()
        return True

    def disarm_all(self) -> int:
        """Cancel every pending timer, returning how many were cancelled"""
        cancelled = 0
        for connection_id in list(self._timers):
            if self.disarm(connection_id):
                cancelled += 1
        return cancelled

    def is_armed(self, connection_id: str) -> bool:
        task = self._timers.get(connection_id)
        return task is not None and not task.done()

    def __len__(self) -> int:
        return sum(1 for task in self._timers.values() if not task.done())

    async def _run(self, connection_id: str, delay: float, on_fire: TimerCallback):
        await asyncio.sleep(delay)

        # Fired; drop our own entry before running the callback so it may re-arm
        if self._timers.get(connection_id) is asyncio.current_task():
            del self._timers[connection_id]

        try:
            await on_fire()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Timer callback failed for {connection_id}: {e}")
