"""
Collaborator Contracts

Structural interfaces for the hosted backend this app talks to. The session
layer and the study services depend only on these; the httpx adapters in
this package implement them, and tests substitute in-memory fakes.

    AuthProvider     - current session, refresh, session-change events
    DataClient       - filtered select, single fetch, insert, update, delete
    StorageClient    - upload, signed URL, remove
    FunctionsClient  - remote procedure call into the AI pipeline
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Optional, Protocol, Sequence

from studyaid.enums.session import AuthEvent
from studyaid.models.session import Session

if TYPE_CHECKING:
    from studyaid.session.cancellation import CancellationToken

SessionListener = Callable[[AuthEvent, Optional[Session]], None]

FILTER_OPERATORS = ("eq", "neq", "lt", "lte", "gt", "gte", "is", "not.is", "in")


@dataclass(frozen=True)
class Filter:
    """Column predicate, e.g. ``Filter("user_id", "eq", uid)``."""

    column: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in FILTER_OPERATORS:
            raise ValueError(f"Unsupported filter operator: {self.op}")


@dataclass(frozen=True)
class Order:
    column: str
    ascending: bool = True


class AuthProvider(Protocol):
    async def get_current_session(self) -> Optional[Session]:
        ...

    async def refresh_session(self) -> Optional[Session]:
        ...

    def on_session_change(self, listener: SessionListener) -> Callable[[], None]:
        """Subscribe to auth events; returns the unsubscribe function."""
        ...


class DataClient(Protocol):
    async def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Sequence[Filter] = (),
        order: Optional[Order] = None,
        limit: Optional[int] = None,
        token: Optional["CancellationToken"] = None,
    ) -> list[dict[str, Any]]:
        ...

    async def select_one(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Sequence[Filter] = (),
        token: Optional["CancellationToken"] = None,
    ) -> dict[str, Any]:
        """Fetch exactly one row; raises NoRowsError when none match."""
        ...

    async def insert(self, table: str, values: dict[str, Any] | list[dict[str, Any]]) -> list[dict[str, Any]]:
        ...

    async def update(
        self, table: str, values: dict[str, Any], *, filters: Sequence[Filter]
    ) -> list[dict[str, Any]]:
        ...

    async def delete(self, table: str, *, filters: Sequence[Filter]) -> None:
        ...


class StorageClient(Protocol):
    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        """Store bytes and return the stored path."""
        ...

    async def create_signed_url(self, path: str, expires_in: int) -> str:
        ...

    async def remove(self, paths: Sequence[str]) -> None:
        ...


class FunctionsClient(Protocol):
    async def invoke(self, name: str, body: dict[str, Any]) -> dict[str, Any]:
        ...
