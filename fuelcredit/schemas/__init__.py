"""Pydantic request/response schemas."""

from fuelcredit.schemas.auth import (
    AuthResponse,
    FuelAccountSnapshot,
    LoginRequest,
    LogoutRequest,
    MeResponse,
    MessageResponse,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    Tokens,
    UserSnapshot,
)
from fuelcredit.schemas.health import HealthResponse

__all__ = [
    "AuthResponse",
    "FuelAccountSnapshot",
    "HealthResponse",
    "LoginRequest",
    "LogoutRequest",
    "MeResponse",
    "MessageResponse",
    "RefreshRequest",
    "RefreshResponse",
    "RegisterRequest",
    "Tokens",
    "UserSnapshot",
]
