"""
Session coordination: cache, refresh, warm-up, cancellation and the
resilient query executor.
"""

from studyaid.session.cache import SessionCache
from studyaid.session.cancellation import CancellationToken
from studyaid.session.classifier import (
    AuthErrorClassifier,
    classify_error,
    is_auth_error,
)
from studyaid.session.coordinator import (
    SessionCoordinator,
    create_session_coordinator,
    is_session_expired,
)
from studyaid.session.executor import ResilientQueryExecutor, create_query_executor
from studyaid.session.inflight import InFlight
from studyaid.session.visibility import VisibilityMonitor
from studyaid.session.warmup import ConnectionWarmUp

__all__ = [
    "AuthErrorClassifier",
    "CancellationToken",
    "ConnectionWarmUp",
    "InFlight",
    "ResilientQueryExecutor",
    "SessionCache",
    "SessionCoordinator",
    "VisibilityMonitor",
    "classify_error",
    "create_query_executor",
    "create_session_coordinator",
    "is_auth_error",
    "is_session_expired",
]
