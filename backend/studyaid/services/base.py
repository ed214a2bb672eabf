"""
Base class for the study services.

Every service reads through the resilient executor (timeout, cancellation,
auth refresh and warm-up retries) and writes through its pre-flight-only
path. The signed-in user id comes from the session coordinator.
"""

from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, TypeVar

from studyaid.clients.protocols import DataClient
from studyaid.session.cancellation import CancellationToken
from studyaid.session.coordinator import SessionCoordinator
from studyaid.session.executor import ResilientQueryExecutor

T = TypeVar("T")

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BackendService:
    """
    Shared plumbing for services backed by the data collaborator.

    Args:
        data: Row access collaborator
        executor: Resilient executor (carries the session coordinator)
        clock: Source of "now" as an aware UTC datetime
    """

    def __init__(
        self,
        data: DataClient,
        executor: ResilientQueryExecutor,
        clock: Clock = utcnow,
    ) -> None:
        self.data = data
        self.executor = executor
        self.clock = clock

    @property
    def coordinator(self) -> SessionCoordinator:
        return self.executor.coordinator

    async def user_id(self) -> str:
        return await self.coordinator.get_current_user_id()

    async def read(
        self,
        operation: Callable[[CancellationToken], Awaitable[T]],
        *,
        name: str,
        signal: Optional[CancellationToken] = None,
    ) -> T:
        return await self.executor.run(operation, signal=signal, name=name)

    async def write(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        name: str,
        critical: bool = False,
    ) -> T:
        return await self.executor.run_write(operation, critical=critical, name=name)
