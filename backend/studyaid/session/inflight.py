"""
In-flight operation memoization.

Funnels concurrent callers of an async operation onto one shared pending
result, so at most one instance of the operation runs at a time. This is
how refresh and warm-up get mutual exclusion without locks.

Usage:
    refresh = InFlight[Optional[Session]]("session refresh")

    pending = refresh.pending
    if pending is None:
        pending = refresh.start(do_refresh)
    result = await asyncio.shield(pending)
"""

import asyncio
import logging
from typing import Awaitable, Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class InFlight(Generic[T]):
    """
    Explicit ``{in_progress, pending}`` state holder.

    The pending task is cleared in a ``finally`` block inside the task
    itself, so the holder returns to idle whether the operation succeeds,
    fails or is cancelled.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._pending: Optional[asyncio.Task[T]] = None

    @property
    def in_progress(self) -> bool:
        return self._pending is not None

    @property
    def pending(self) -> Optional[asyncio.Task[T]]:
        """The shared task, or None when idle."""
        return self._pending

    def start(self, factory: Callable[[], Awaitable[T]]) -> asyncio.Task[T]:
        """
        Start the operation and publish it as the shared pending result.

        Args:
            factory: Zero-argument coroutine function performing the operation

        Returns:
            The task every concurrent caller should await

        Raises:
            RuntimeError: If an instance is already in flight
        """
        if self._pending is not None:
            raise RuntimeError(f"{self.name} already in progress")

        async def run() -> T:
            try:
                return await factory()
            finally:
                self._pending = None

        # The task body cannot run before this assignment: create_task only
        # schedules it on the loop.
        self._pending = asyncio.get_running_loop().create_task(run())
        logger.debug(f"{self.name} started")
        return self._pending
