"""
Session Coordination Enums

Defines the auth-provider event vocabulary and the error taxonomy used by
the resilient query executor to decide whether a failure is retryable.
"""

from enum import Enum


class AuthEvent(str, Enum):
    """
    Events emitted by the auth provider's session-change subscription.

    These are the only triggers allowed to write the session cache (apart
    from a successful refresh).
    """

    INITIAL_SESSION = "INITIAL_SESSION"  # First event after subscribing
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"


class CancelReason(str, Enum):
    """
    Why a cancellation token fired.

    TIMEOUT cancellations are retried after a connection warm-up;
    EXTERNAL cancellations propagate immediately.
    """

    EXTERNAL = "external"  # Requested by the caller
    TIMEOUT = "timeout"  # Per-attempt deadline exceeded


class ErrorKind(str, Enum):
    """
    Error taxonomy for wrapped data operations.

    - AUTH: credential rejected, force a refresh and retry once
    - TIMEOUT: internal deadline exceeded, warm up and retry once
    - CANCELLED: caller cancelled, never retried
    - DATA: any other collaborator failure, surfaced as-is
    """

    AUTH = "auth"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"
    DATA = "data"
