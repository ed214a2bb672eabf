"""
Session Cache

Holds the last known authentication session. Pure in-memory store: reads
never touch the network and never validate, so hot read paths pay nothing
for session handling.

Writers:
    - the auth-event listener (SessionCoordinator.handle_auth_event)
    - a successful refresh (SessionCoordinator.refresh_session)

Everything else only reads.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Callable, Optional

from studyaid.models.session import Session

logger = logging.getLogger(__name__)


class SessionCache:
    """
    Single-slot session store.

    Attributes:
        cached_at: Clock reading of the last write (0.0 when empty)
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._session: Optional[Session] = None
        self.cached_at: float = 0.0

    def get_session(self) -> Optional[Session]:
        """Return the cached session as-is. It may be expired."""
        return self._session

    def set_session(self, session: Optional[Session]) -> None:
        """Overwrite the cache unconditionally and stamp the write time."""
        self._session = session
        self.cached_at = self._clock()
        if session is None:
            logger.info("Session cache cleared")
            return

        expires = "unknown"
        if session.expires_at:
            expires = datetime.fromtimestamp(session.expires_at, tz=timezone.utc).isoformat()
        logger.info(f"Session cache set (expires: {expires})")

    def clear_session(self) -> None:
        """Drop the cached session (sign-out)."""
        self._session = None
        self.cached_at = 0.0
        logger.info("Session cache cleared")
