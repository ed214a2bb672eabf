"""
Shared Test Fixtures and Configuration

This module provides pytest fixtures used across unit and integration tests:
controllable clocks, session factories, a fake auth provider and an
in-memory stand-in for the hosted database's REST interface.
"""

import itertools
import os
import sys
import time
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Callable, Generator, Optional, Sequence
from unittest.mock import AsyncMock

import pytest
from dotenv import load_dotenv

# Add the backend directory to the path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load .env file from project root BEFORE any fixtures run
_project_root = Path(__file__).parent.parent.parent
_env_file = _project_root / ".env"
if _env_file.exists():
    load_dotenv(_env_file)
else:
    # Try backend directory
    _backend_env = Path(__file__).parent.parent / ".env"
    if _backend_env.exists():
        load_dotenv(_backend_env)

from studyaid.clients.protocols import Filter, Order  # noqa: E402
from studyaid.enums.session import AuthEvent  # noqa: E402
from studyaid.middleware.error_handling import DataError, NoRowsError, QueryCancelledError  # noqa: E402
from studyaid.models.session import Session, SessionUser  # noqa: E402
from studyaid.session.cache import SessionCache  # noqa: E402
from studyaid.session.coordinator import SessionCoordinator  # noqa: E402
from studyaid.session.executor import ResilientQueryExecutor  # noqa: E402
from studyaid.session.classifier import AuthErrorClassifier  # noqa: E402
from studyaid.session.warmup import ConnectionWarmUp  # noqa: E402

# Fixed "now" for tests that need deterministic dates
NOW = datetime(2024, 3, 15, 12, 0, 0, tzinfo=timezone.utc)
USER_ID = "user-1234-5678"


# ============================================================================
# Environment Configuration
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment() -> Generator[None, None, None]:
    """
    Set up test environment variables before any tests run.

    Points every adapter at a local URL so nothing can reach a real
    project by accident.
    """
    original_env = os.environ.copy()

    test_env = {
        "SUPABASE_URL": "http://localhost:54321",
        "SUPABASE_ANON_KEY": "test-anon-key",
        "SUPABASE_SERVICE_ROLE_KEY": "test-service-key",
        "GEMINI_API_KEY": "test-gemini-key",
        "DEBUG": "false",
    }
    os.environ.update(test_env)

    yield

    os.environ.clear()
    os.environ.update(original_env)


# ============================================================================
# Clocks
# ============================================================================


class FakeClock:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, start: Optional[float] = None) -> None:
        self.now = start if start is not None else time.time()

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(start=NOW.timestamp())


@pytest.fixture
def monotonic() -> FakeClock:
    return FakeClock(start=1000.0)


# ============================================================================
# Sessions and auth
# ============================================================================


def make_session(
    expires_in: int = 3600,
    now: Optional[float] = None,
    user_id: str = USER_ID,
    access_token: str = "access-token",
) -> Session:
    """Build a session expiring ``expires_in`` seconds after ``now``."""
    current = int(now if now is not None else time.time())
    return Session(
        access_token=access_token,
        refresh_token="refresh-token",
        expires_at=current + expires_in,
        expires_in=expires_in,
        user=SessionUser(id=user_id, email="ada@example.com"),
    )


@pytest.fixture
def session_factory(clock: FakeClock) -> Callable[..., Session]:
    """Sessions relative to the test clock."""

    def factory(expires_in: int = 3600, **kwargs: Any) -> Session:
        return make_session(expires_in=expires_in, now=clock(), **kwargs)

    return factory


class FakeAuthProvider:
    """
    AuthProvider double.

    ``refresh_session`` is an AsyncMock so tests can script results,
    failures or hangs with ``side_effect``.
    """

    def __init__(self, session: Optional[Session] = None) -> None:
        self.session = session
        self.refresh_session = AsyncMock(return_value=session)
        self.listeners: list = []

    async def get_current_session(self) -> Optional[Session]:
        return self.session

    def on_session_change(self, listener) -> Callable[[], None]:
        self.listeners.append(listener)
        listener(AuthEvent.INITIAL_SESSION, self.session)
        return lambda: self.listeners.remove(listener)

    def emit(self, event: AuthEvent, session: Optional[Session]) -> None:
        self.session = session
        for listener in list(self.listeners):
            listener(event, session)


@pytest.fixture
def auth() -> FakeAuthProvider:
    return FakeAuthProvider()


@pytest.fixture
def probe() -> AsyncMock:
    """Warm-up probe that succeeds immediately."""
    return AsyncMock(return_value=[])


@pytest.fixture
def coordinator(auth, probe, clock, monotonic) -> SessionCoordinator:
    """Coordinator with fake collaborators and default policy values."""
    warm_up = ConnectionWarmUp(probe=probe, cooldown=30.0, probe_timeout=3.0, clock=monotonic)
    return SessionCoordinator(
        auth,
        warm_up,
        cache=SessionCache(clock=clock),
        classifier=AuthErrorClassifier(),
        clock=clock,
    )


@pytest.fixture
def signed_in(coordinator, session_factory) -> Session:
    """Put a fresh session into the coordinator's cache via a sign-in event."""
    session = session_factory(expires_in=3600)
    coordinator.handle_auth_event(AuthEvent.SIGNED_IN, session)
    return session


@pytest.fixture
def executor(coordinator) -> ResilientQueryExecutor:
    return ResilientQueryExecutor(coordinator, attempt_timeout=0.2, max_attempts=2)


# ============================================================================
# In-memory data client
# ============================================================================


def _comparable(value: Any) -> Any:
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    return value


def _matches(row: dict[str, Any], f: Filter) -> bool:
    actual = row.get(f.column)
    if f.op == "is":
        return actual is f.value if f.value is None else actual == f.value
    if f.op == "not.is":
        return actual is not None if f.value is None else actual != f.value
    if f.op == "in":
        return actual in f.value
    if actual is None:
        return False

    left, right = _comparable(actual), _comparable(f.value)
    return {
        "eq": lambda: left == right,
        "neq": lambda: left != right,
        "lt": lambda: left < right,
        "lte": lambda: left <= right,
        "gt": lambda: left > right,
        "gte": lambda: left >= right,
    }[f.op]()


class FakeDataClient:
    """
    DataClient backed by dicts.

    Inserted rows get an id and per-table column defaults (mirroring the
    database defaults the services rely on). ``calls`` records every
    operation as ``(method, table)`` for assertions.
    """

    def __init__(self, now: datetime = NOW) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.calls: list[tuple[str, str]] = []
        self.now = now
        self._ids = itertools.count(1)

    def _defaults(self, table: str) -> dict[str, Any]:
        stamp = self.now.isoformat()
        return {
            "documents": {"is_starred": False, "is_draft": True, "created_at": stamp},
            "flashcards": {
                "ease_factor": 2.5,
                "interval_days": 0,
                "repetitions": 0,
                "next_review_date": stamp,
                "created_at": stamp,
            },
            "study_sessions": {"started_at": stamp, "cards_studied": 0, "cards_correct": 0},
            "summaries": {"processing_status": "pending", "created_at": stamp},
        }.get(table, {})

    def seed(self, table: str, *rows: dict[str, Any]) -> list[dict[str, Any]]:
        stored = []
        for row in rows:
            record = {**self._defaults(table), "id": f"{table}-{next(self._ids)}", **row}
            self.tables.setdefault(table, []).append(record)
            stored.append(record)
        return stored

    def rows(self, table: str) -> list[dict[str, Any]]:
        return self.tables.get(table, [])

    def _filter(self, table: str, filters: Sequence[Filter]) -> list[dict[str, Any]]:
        return [row for row in self.rows(table) if all(_matches(row, f) for f in filters)]

    async def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Sequence[Filter] = (),
        order: Optional[Order] = None,
        limit: Optional[int] = None,
        token=None,
    ) -> list[dict[str, Any]]:
        self.calls.append(("select", table))
        if token is not None and token.cancelled:
            raise QueryCancelledError(f"select {table} cancelled")
        rows = [dict(row) for row in self._filter(table, filters)]
        if order is not None:
            rows.sort(
                key=lambda r: _comparable(r.get(order.column)),
                reverse=not order.ascending,
            )
        return rows[:limit] if limit is not None else rows

    async def select_one(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Sequence[Filter] = (),
        token=None,
    ) -> dict[str, Any]:
        self.calls.append(("select_one", table))
        rows = self._filter(table, filters)
        if not rows:
            raise NoRowsError("JSON object requested, multiple (or no) rows returned")
        if len(rows) > 1:
            raise DataError("JSON object requested, multiple (or no) rows returned")
        return dict(rows[0])

    async def insert(self, table: str, values) -> list[dict[str, Any]]:
        self.calls.append(("insert", table))
        batch = values if isinstance(values, list) else [values]
        return [dict(row) for row in self.seed(table, *batch)]

    async def update(
        self, table: str, values: dict[str, Any], *, filters: Sequence[Filter]
    ) -> list[dict[str, Any]]:
        self.calls.append(("update", table))
        matched = self._filter(table, filters)
        for row in matched:
            row.update(values)
        return [dict(row) for row in matched]

    async def delete(self, table: str, *, filters: Sequence[Filter]) -> None:
        self.calls.append(("delete", table))
        doomed = self._filter(table, filters)
        self.tables[table] = [row for row in self.rows(table) if row not in doomed]


@pytest.fixture
def data() -> FakeDataClient:
    return FakeDataClient()
