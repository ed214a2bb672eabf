"""
Auth Adapter

httpx client for the hosted auth service (GoTrue-style REST API). Holds the
signed-in session in memory and notifies subscribers on every change; the
SessionCoordinator subscribes through ``on_session_change`` and those events
are the only thing that writes its cache.

Usage:
    auth = SupabaseAuthClient(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY)
    coordinator.bind(auth)
    await auth.sign_in_with_password("ada@example.com", "secret")
"""

import logging
import time
from typing import Any, Callable, Optional

import httpx

from studyaid.clients.base import BackendHTTPClient
from studyaid.clients.protocols import SessionListener
from studyaid.enums.session import AuthEvent
from studyaid.middleware.error_handling import AuthenticationError
from studyaid.models.session import Session

logger = logging.getLogger(__name__)


class SupabaseAuthClient(BackendHTTPClient):
    """Password sign-in, refresh-token grant, sign-out and change events."""

    SERVICE_PATH = "/auth/v1"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        http: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(base_url, api_key, access_token=self._current_token, http=http)
        self._clock = clock
        self._session: Optional[Session] = None
        self._listeners: list[SessionListener] = []

    def _current_token(self) -> Optional[str]:
        return self._session.access_token if self._session else None

    # =========================================================================
    # AuthProvider contract
    # =========================================================================

    async def get_current_session(self) -> Optional[Session]:
        return self._session

    async def refresh_session(self) -> Optional[Session]:
        """
        Exchange the refresh token for a new session.

        Returns:
            The new session, or None when there is nothing to refresh

        Raises:
            AuthenticationError: If the auth service rejects the refresh token
        """
        if self._session is None or not self._session.refresh_token:
            logger.info("No refresh token available")
            return None

        session = await self._token_grant(
            "refresh_token", {"refresh_token": self._session.refresh_token}
        )
        self._set_session(AuthEvent.TOKEN_REFRESHED, session)
        return session

    def on_session_change(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)
        listener(AuthEvent.INITIAL_SESSION, self._session)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # =========================================================================
    # Sign-in / sign-out
    # =========================================================================

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        session = await self._token_grant("password", {"email": email, "password": password})
        self._set_session(AuthEvent.SIGNED_IN, session)
        return session

    async def sign_out(self) -> None:
        if self._session is not None:
            response = await self.http.post(self.url("logout"), headers=self.headers())
            if response.status_code >= 400 and response.status_code != 401:
                payload = self.error_payload(response)
                logger.warning(f"Sign-out request failed: {payload.get('msg') or payload}")
        self._set_session(AuthEvent.SIGNED_OUT, None)

    # =========================================================================
    # Internals
    # =========================================================================

    async def _token_grant(self, grant_type: str, body: dict[str, Any]) -> Session:
        response = await self.http.post(
            self.url("token"),
            params={"grant_type": grant_type},
            json=body,
            headers={"apikey": self.api_key},
        )
        if response.status_code >= 400:
            payload = self.error_payload(response)
            message = (
                payload.get("error_description")
                or payload.get("msg")
                or payload.get("message")
                or "Authentication failed"
            )
            raise AuthenticationError(
                message,
                error_code=payload.get("error_code") or payload.get("error"),
                details={"status": response.status_code},
            )

        data = response.json()
        if not data.get("expires_at") and data.get("expires_in"):
            data["expires_at"] = int(self._clock()) + int(data["expires_in"])
        return Session.model_validate(data)

    def _set_session(self, event: AuthEvent, session: Optional[Session]) -> None:
        self._session = session
        for listener in list(self._listeners):
            try:
                listener(event, session)
            except Exception as e:
                logger.error(f"Auth listener failed on {event.value}: {e}")
