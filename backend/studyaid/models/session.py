"""
Session Models

The authenticated session as delivered by the auth provider. Sessions are
treated as opaque credential bundles: only the access token, expiry and
user identity are interpreted by this codebase.
"""

from typing import Optional

from pydantic import Field

from studyaid.models.base import StrictResponse


class SessionUser(StrictResponse):
    """Identity reference attached to a session."""

    id: str
    email: Optional[str] = None


class Session(StrictResponse):
    """
    Bearer credential + expiry + identity.

    A session is usable for a request while ``now < expires_at - buffer``.
    ``expires_at`` is absolute epoch seconds; providers that omit it produce
    a session that is always treated as expired.
    """

    access_token: str = Field(..., repr=False)
    refresh_token: Optional[str] = Field(default=None, repr=False)
    expires_at: Optional[int] = None
    expires_in: Optional[int] = None
    token_type: str = "bearer"
    user: SessionUser
