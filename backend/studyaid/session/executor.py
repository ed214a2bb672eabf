"""
Resilient Query Executor

Wraps reads against the data collaborator with a pre-flight session check,
a per-attempt deadline composed with the caller's cancellation signal, and
a single recovery retry:

    auth-classified failure      → force a session refresh, retry once
    internal deadline exceeded   → warm up the connection, retry once
    caller cancellation          → QueryCancelledError, never retried
    anything else                → surfaced immediately

Writes only get the pre-flight check. They are not assumed safe to repeat,
so a failed write is left to fail visibly.

Usage:
    executor = create_query_executor(coordinator)

    async def fetch(token):
        return await data.select("documents", filters=[Filter("id", "eq", doc_id)], token=token)

    rows = await executor.run(fetch, signal=caller_token, name="get_document")
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from studyaid.config import Settings, settings as default_settings
from studyaid.enums.session import CancelReason
from studyaid.middleware.error_handling import (
    AuthenticationError,
    QueryCancelledError,
    QueryTimeoutError,
)
from studyaid.models.session import Session
from studyaid.session.cancellation import CancellationToken
from studyaid.session.coordinator import SessionCoordinator

logger = logging.getLogger(__name__)

T = TypeVar("T")

ReadOperation = Callable[[CancellationToken], Awaitable[T]]
WriteOperation = Callable[[], Awaitable[T]]


class ResilientQueryExecutor:
    """
    Timeout, cancellation and retry policy for data operations.

    Independent runs share nothing but the coordinator: each attempt owns
    its own cancellation token and deadline.
    """

    def __init__(
        self,
        coordinator: SessionCoordinator,
        attempt_timeout: float = 10.0,
        max_attempts: int = 2,
    ) -> None:
        self.coordinator = coordinator
        self.attempt_timeout = attempt_timeout
        self.max_attempts = max_attempts

    async def run(
        self,
        operation: ReadOperation[T],
        *,
        signal: Optional[CancellationToken] = None,
        name: str = "query",
    ) -> T:
        """
        Execute a read with the full retry policy.

        Args:
            operation: ``async def op(token)``; must stop work when the
                token fires (it is also cancelled as an asyncio task)
            signal: Optional caller cancellation token
            name: Operation name for logs and error messages

        Returns:
            The operation's result

        Raises:
            AuthenticationError: No session, or auth failure after the retry
            QueryTimeoutError: Every attempt hit the deadline
            QueryCancelledError: The caller cancelled
        """
        self._check_signal(signal, name)
        self._require_session(self.coordinator.get_valid_session(), name)

        for attempt in range(1, self.max_attempts + 1):
            self._check_signal(signal, name)
            can_retry = attempt < self.max_attempts

            try:
                return await self._attempt(operation, signal, name)
            except QueryCancelledError:
                logger.info(f"{name} cancelled by caller")
                raise
            except QueryTimeoutError:
                if not can_retry:
                    logger.error(f"{name} timed out after {attempt} attempts")
                    raise
                logger.warning(f"{name} timed out (attempt {attempt}), warming up and retrying")
                await self.coordinator.warm_up_connection()
            except Exception as e:
                if not self.coordinator.classifier.is_auth_error(e):
                    raise
                if not can_retry:
                    logger.error(f"{name} failed auth after refresh: {e}")
                    raise AuthenticationError(
                        "Your session has expired. Please sign in again.",
                        details={"operation": name, "cause": str(e)},
                    ) from e
                logger.warning(f"{name} hit an auth error (attempt {attempt}), refreshing session")
                await self.coordinator.refresh_session()

        # Only reachable with max_attempts < 1
        raise RuntimeError(f"{name}: executor configured with no attempts")

    async def run_write(
        self,
        operation: WriteOperation[T],
        *,
        critical: bool = False,
        name: str = "write",
    ) -> T:
        """
        Execute a write after the pre-flight session check only.

        Args:
            operation: Zero-argument coroutine function performing the write
            critical: Demand the long validity buffer, refreshing if needed
            name: Operation name for logs and error messages
        """
        if critical:
            session = await self.coordinator.ensure_valid_session()
        else:
            session = self.coordinator.get_valid_session()
        self._require_session(session, name)
        return await operation()

    async def _attempt(
        self,
        operation: ReadOperation[T],
        signal: Optional[CancellationToken],
        name: str,
    ) -> T:
        token = CancellationToken.linked(signal, reason=CancelReason.EXTERNAL)
        loop = asyncio.get_running_loop()
        timer = loop.call_later(self.attempt_timeout, token.cancel, CancelReason.TIMEOUT)
        op_task = loop.create_task(operation(token))
        cancel_task = loop.create_task(token.wait())

        try:
            done, _ = await asyncio.wait(
                {op_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED
            )
            if op_task in done and not self._failed_from_cancel(op_task, token):
                return op_task.result()

            if token.reason == CancelReason.TIMEOUT:
                raise QueryTimeoutError(
                    f"{name} timed out after {self.attempt_timeout}s",
                    details={"operation": name, "timeout": self.attempt_timeout},
                )
            raise QueryCancelledError(f"{name} was cancelled", details={"operation": name})
        finally:
            timer.cancel()
            token.detach()
            for task in (op_task, cancel_task):
                if not task.done():
                    task.cancel()

    @staticmethod
    def _failed_from_cancel(task: asyncio.Task, token: CancellationToken) -> bool:
        # An operation that noticed the token and bailed out is reported by
        # the token's reason, not by whatever it raised.
        if not token.cancelled:
            return False
        return task.cancelled() or task.exception() is not None

    @staticmethod
    def _check_signal(signal: Optional[CancellationToken], name: str) -> None:
        if signal is not None and signal.cancelled:
            raise QueryCancelledError(f"{name} was cancelled", details={"operation": name})

    @staticmethod
    def _require_session(session: Optional[Session], name: str) -> None:
        if session is None:
            logger.error(f"{name}: no session available")
            raise AuthenticationError("Not authenticated. Please sign in again.")


def create_query_executor(
    coordinator: SessionCoordinator,
    settings: Optional[Settings] = None,
) -> ResilientQueryExecutor:
    """Create an executor configured from settings."""
    config = settings or default_settings
    return ResilientQueryExecutor(
        coordinator,
        attempt_timeout=config.QUERY_ATTEMPT_TIMEOUT,
        max_attempts=config.QUERY_MAX_ATTEMPTS,
    )
