"""
Session Coordinator

Keeps authenticated requests working across token expiry, tab idling and
stale connections. One explicitly constructed object owns all the
process-wide mutable state involved:

    - SessionCache: last known session (written only by auth events and
      successful refreshes)
    - refresh InFlight: at most one refresh against the auth provider
    - ConnectionWarmUp: cooldown + deduplicated connection probe
    - user-id cache: short-lived cache of the signed-in user's id

Two validity buffers are used on purpose:

    SESSION_READ_BUFFER_SECONDS (60s)    get_valid_session(): reads go ahead
        with a near-expiry or even expired token and let the backend reject
        it. Blocking reads on a refresh reintroduces the idle-tab hang this
        layer exists to avoid.
    SESSION_EXPIRY_BUFFER_SECONDS (300s) ensure_valid_session(): critical
        writes refresh proactively.

Refresh state machine (per cycle):
    Idle → Refreshing → Succeeded (cache updated)
                      → Failed    (cache unchanged, stale session returned)
                      → TimedOut  (cache unchanged, stale session returned)
         → Idle

Usage:
    coordinator = create_session_coordinator(auth_client, probe)
    unsubscribe = coordinator.bind(auth_client)

    session = coordinator.get_valid_session()          # never blocks
    session = await coordinator.ensure_valid_session() # may refresh
"""

import asyncio
import logging
import time
from typing import Callable, Optional

from studyaid.clients.protocols import AuthProvider
from studyaid.config import Settings, settings as default_settings
from studyaid.enums.session import AuthEvent
from studyaid.middleware.error_handling import AuthenticationError
from studyaid.models.session import Session
from studyaid.session.cache import SessionCache
from studyaid.session.classifier import AuthErrorClassifier
from studyaid.session.inflight import InFlight
from studyaid.session.warmup import ConnectionWarmUp, Probe

logger = logging.getLogger(__name__)

# Only log remaining lifetime when it gets this close, to avoid noise
_EXPIRY_LOG_THRESHOLD_SECONDS = 600


def is_session_expired(
    session: Optional[Session],
    buffer_seconds: float,
    now: Optional[float] = None,
) -> bool:
    """
    Check whether a session is unusable within the given buffer.

    Args:
        session: Session to check (None counts as expired)
        buffer_seconds: Required remaining lifetime in seconds
        now: Current epoch seconds (defaults to time.time())

    Returns:
        True if the session is missing, has no expiry, or
        ``expires_at - now < buffer_seconds``. Exactly ``buffer_seconds``
        remaining is NOT expired.
    """
    if session is None:
        return True

    if not session.expires_at:
        logger.warning("Session has no expires_at, assuming expired")
        return True

    current = int(now if now is not None else time.time())
    time_until_expiry = session.expires_at - current

    if time_until_expiry < _EXPIRY_LOG_THRESHOLD_SECONDS:
        logger.debug(f"Token expires in {time_until_expiry}s (buffer: {buffer_seconds}s)")

    return time_until_expiry < buffer_seconds


class SessionCoordinator:
    """
    Session validation, refresh and connection warm-up for one client.

    Tests construct isolated instances; production code builds one per
    process with create_session_coordinator().
    """

    def __init__(
        self,
        auth: AuthProvider,
        warm_up: ConnectionWarmUp,
        *,
        cache: Optional[SessionCache] = None,
        classifier: Optional[AuthErrorClassifier] = None,
        expiry_buffer: float = 300,
        read_buffer: float = 60,
        refresh_timeout: float = 10.0,
        refresh_wait_timeout: float = 5.0,
        user_id_ttl: float = 30.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.auth = auth
        self.warm_up = warm_up
        self.cache = cache or SessionCache(clock=clock)
        self.classifier = classifier or AuthErrorClassifier.from_config()
        self.expiry_buffer = expiry_buffer
        self.read_buffer = read_buffer
        self.refresh_timeout = refresh_timeout
        self.refresh_wait_timeout = refresh_wait_timeout
        self.user_id_ttl = user_id_ttl
        self._clock = clock
        self._refresh: InFlight[Optional[Session]] = InFlight("session refresh")
        self._user_id: Optional[str] = None
        self._user_id_cached_at: float = 0.0

    # =========================================================================
    # Auth events (cache writes)
    # =========================================================================

    def handle_auth_event(self, event: AuthEvent, session: Optional[Session]) -> None:
        """
        Apply an auth-provider session change.

        This listener is the cache's feed: the cache never populates itself.
        """
        event = AuthEvent(event)
        logger.info(f"Auth state changed: {event.value}")

        if event == AuthEvent.SIGNED_OUT:
            self.cache.clear_session()
            self._forget_user_id()
            return

        self.cache.set_session(session)

        if event == AuthEvent.TOKEN_REFRESHED or session is None:
            self._forget_user_id()
        else:
            self._remember_user_id(session.user.id)

    def bind(self, auth: Optional[AuthProvider] = None) -> Callable[[], None]:
        """
        Subscribe to the auth provider's session-change events.

        Returns:
            Unsubscribe function
        """
        provider = auth or self.auth
        return provider.on_session_change(self.handle_auth_event)

    # =========================================================================
    # Session access
    # =========================================================================

    def is_expired(self, session: Optional[Session], buffer_seconds: float) -> bool:
        return is_session_expired(session, buffer_seconds, now=self._clock())

    def get_valid_session(self) -> Optional[Session]:
        """
        Return the cached session without any I/O.

        A near-expiry or expired session is still returned: the backend may
        accept it, and if not the executor's auth-retry path refreshes.
        """
        session = self.cache.get_session()
        if session is None:
            logger.info("No cached session available")
            return None

        if self.is_expired(session, self.read_buffer):
            logger.info("Cached session is expired, proceeding and letting the backend decide")

        return session

    async def ensure_valid_session(self) -> Optional[Session]:
        """
        Return a session with at least the long buffer of lifetime left,
        refreshing first if needed. Use before critical writes.
        """
        session = self.cache.get_session()
        if session is not None and not self.is_expired(session, self.expiry_buffer):
            logger.debug("Using valid cached session")
            return session

        logger.info("Session needs refresh")
        return await self.refresh_session()

    async def refresh_session(self) -> Optional[Session]:
        """
        Refresh the session against the auth provider.

        The only call site of ``auth.refresh_session()``. At most one refresh
        is in flight; concurrent callers await the same result, but give up
        after ``refresh_wait_timeout`` and fall back to the cached session.
        Never raises for provider failures: stale credentials are preferred
        over blocking the caller.
        """
        pending = self._refresh.pending
        if pending is not None:
            logger.info("Waiting for existing refresh")
            try:
                return await asyncio.wait_for(
                    asyncio.shield(pending), timeout=self.refresh_wait_timeout
                )
            except asyncio.TimeoutError:
                logger.warning(
                    f"Refresh wait timed out after {self.refresh_wait_timeout}s, "
                    f"using cached session"
                )
                return self.cache.get_session()

        logger.info("Refreshing session")
        return await asyncio.shield(self._refresh.start(self._run_refresh))

    async def _run_refresh(self) -> Optional[Session]:
        # Fallbacks read the cache at the time of failure: an auth event may
        # have stored a newer session while the refresh was in flight
        try:
            refreshed = await asyncio.wait_for(
                self.auth.refresh_session(), timeout=self.refresh_timeout
            )
        except asyncio.TimeoutError:
            logger.warning(f"Refresh timed out after {self.refresh_timeout}s")
            return self.cache.get_session()
        except Exception as e:
            logger.error(f"Refresh failed: {type(e).__name__}: {e}")
            return self.cache.get_session()

        if refreshed is None:
            logger.warning("Refresh returned no session")
            return self.cache.get_session()

        logger.info("Session refreshed successfully")
        self.cache.set_session(refreshed)
        return refreshed

    # =========================================================================
    # Connection warm-up
    # =========================================================================

    async def warm_up_connection(self) -> bool:
        """Best-effort connection probe (cooldown and dedup applied)."""
        return await self.warm_up.warm_up()

    # =========================================================================
    # Current user
    # =========================================================================

    async def get_current_user_id(self) -> str:
        """
        Return the signed-in user's id.

        Served from a short-lived cache; on a miss the session is validated
        (and refreshed if close to expiry) first.

        Raises:
            AuthenticationError: If no usable session exists
        """
        now = self._clock()
        if self._user_id and now - self._user_id_cached_at < self.user_id_ttl:
            return self._user_id

        logger.debug("Validating session before operation")
        session = await self.ensure_valid_session()
        if session is None:
            logger.error("No valid session after validation")
            raise AuthenticationError("Not authenticated. Please sign in again.")

        self._remember_user_id(session.user.id)
        logger.debug(f"Session validated, user: {session.user.id[:8]}...")
        return session.user.id

    def _remember_user_id(self, user_id: str) -> None:
        self._user_id = user_id
        self._user_id_cached_at = self._clock()

    def _forget_user_id(self) -> None:
        self._user_id = None
        self._user_id_cached_at = 0.0


def create_session_coordinator(
    auth: AuthProvider,
    probe: Probe,
    settings: Optional[Settings] = None,
    clock: Callable[[], float] = time.time,
    monotonic: Callable[[], float] = time.monotonic,
) -> SessionCoordinator:
    """
    Create a coordinator configured from settings.

    Args:
        auth: Auth provider collaborator
        probe: Cheap request used to warm up the connection
        settings: Settings override (defaults to the global settings)
        clock: Epoch-seconds clock for expiry checks
        monotonic: Monotonic clock for the warm-up cooldown

    Returns:
        Configured SessionCoordinator
    """
    config = settings or default_settings
    warm_up = ConnectionWarmUp(
        probe=probe,
        cooldown=config.WARM_UP_COOLDOWN_SECONDS,
        probe_timeout=config.WARM_UP_PROBE_TIMEOUT,
        clock=monotonic,
    )
    return SessionCoordinator(
        auth,
        warm_up,
        classifier=AuthErrorClassifier.from_config(),
        expiry_buffer=config.SESSION_EXPIRY_BUFFER_SECONDS,
        read_buffer=config.SESSION_READ_BUFFER_SECONDS,
        refresh_timeout=config.SESSION_REFRESH_TIMEOUT,
        refresh_wait_timeout=config.SESSION_REFRESH_WAIT_TIMEOUT,
        user_id_ttl=config.USER_ID_CACHE_TTL_SECONDS,
        clock=clock,
    )
