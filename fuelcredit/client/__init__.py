"""Client-side session management over the auth HTTP API."""

from fuelcredit.client.api import NETWORK_ERROR_MESSAGE, ApiResult, AuthApiClient
from fuelcredit.client.session import (
    AuthOutcome,
    MemorySecureStore,
    SecureStore,
    SessionManager,
    SessionState,
)

__all__ = [
    "NETWORK_ERROR_MESSAGE",
    "ApiResult",
    "AuthApiClient",
    "AuthOutcome",
    "MemorySecureStore",
    "SecureStore",
    "SessionManager",
    "SessionState",
]
