"""
Cancellation Tokens

A cancellation token with a reason tag, and composition of several tokens
into one that fires when any source fires. The reason tells the executor
whether a cancelled attempt came from its own deadline (retry) or from
the caller (propagate).

Usage:
    external = CancellationToken()
    attempt = CancellationToken.linked(external)
    loop.call_later(10, attempt.cancel, CancelReason.TIMEOUT)

    external.cancel()           # attempt.reason == CancelReason.EXTERNAL
"""

import asyncio
from typing import Callable, Optional

from studyaid.enums.session import CancelReason

CancelCallback = Callable[[CancelReason], None]


class CancellationToken:
    """
    One-shot cancellation signal.

    The first ``cancel()`` wins; later calls are ignored so the original
    reason is preserved.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: Optional[CancelReason] = None
        self._callbacks: list[CancelCallback] = []
        self._detachers: list[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._reason is not None

    @property
    def reason(self) -> Optional[CancelReason]:
        return self._reason

    def cancel(self, reason: CancelReason = CancelReason.EXTERNAL) -> None:
        """Fire the token and notify registered callbacks."""
        if self._reason is not None:
            return
        self._reason = reason
        self._event.set()
        for callback in list(self._callbacks):
            callback(reason)
        self._callbacks.clear()

    def add_callback(self, callback: CancelCallback) -> Callable[[], None]:
        """
        Register a callback invoked with the reason when the token fires.

        Fires immediately if the token is already cancelled.

        Returns:
            A function that unregisters the callback
        """
        if self._reason is not None:
            callback(self._reason)
            return lambda: None

        self._callbacks.append(callback)

        def remove() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return remove

    async def wait(self) -> CancelReason:
        """Block until the token fires and return the reason."""
        await self._event.wait()
        return self._reason

    @classmethod
    def linked(
        cls,
        *sources: Optional["CancellationToken"],
        reason: Optional[CancelReason] = None,
    ) -> "CancellationToken":
        """
        Build a token that fires when any source fires.

        The child inherits the reason of whichever source fired first,
        unless ``reason`` is given, in which case every source-triggered
        cancellation is tagged with it. ``None`` sources are skipped so
        optional caller signals compose without special casing.
        """
        child = cls()
        if reason is None:
            forward = child.cancel
        else:

            def forward(_source_reason: CancelReason) -> None:
                child.cancel(reason)

        for source in sources:
            if source is not None:
                child._detachers.append(source.add_callback(forward))
        return child

    def detach(self) -> None:
        """Stop listening to the sources this token was linked to."""
        for remove in self._detachers:
            remove()
        self._detachers.clear()
