"""Auth endpoints and bearer-token dependencies (get_current_user, get_optional_user)."""

import logging
from datetime import timedelta
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fuelcredit.core.config import Settings, get_settings
from fuelcredit.core.database import get_db
from fuelcredit.core.security import TokenIssuer, TokenKind
from fuelcredit.schemas.auth import (
    AuthResponse,
    LoginRequest,
    LogoutRequest,
    MeResponse,
    MessageResponse,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    UserSnapshot,
)
from fuelcredit.services import auth as auth_service
from fuelcredit.services.credentials import get_user_by_id, user_snapshot
from fuelcredit.services.errors import (
    AuthServiceError,
    InvalidTokenError,
    TokenConfigurationError,
    UnauthorizedError,
)
from fuelcredit.services.rate_limit import record_auth_attempt

logger = logging.getLogger(__name__)
router = APIRouter()
security = HTTPBearer(auto_error=False)


def get_token_issuer(settings: Annotated[Settings, Depends(get_settings)]) -> TokenIssuer:
    """Dependency: token issuer built from settings. Fails closed with 500 if secrets are missing."""
    return TokenIssuer.from_settings(settings)


def get_optional_token_issuer(
    settings: Annotated[Settings, Depends(get_settings)],
) -> TokenIssuer | None:
    try:
        return TokenIssuer.from_settings(settings)
    except TokenConfigurationError:
        return None


def authenticate_access_token(db: Session, issuer: TokenIssuer, token: str | None) -> UserSnapshot:
    """
    Resolve a bearer access token to a live user snapshot.

    Missing token -> 401, bad or expired token -> 403, vanished user -> 401.
    The fuel account is re-read from the store, never taken from the token.
    """
    if not token:
        raise UnauthorizedError("Access token required")
    try:
        user_id = issuer.verify(token, TokenKind.ACCESS)
    except InvalidTokenError as e:
        raise InvalidTokenError("Invalid or expired token") from e
    user = get_user_by_id(db, user_id)
    if user is None:
        raise UnauthorizedError("User not found")
    return user_snapshot(user)


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
    issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
) -> UserSnapshot:
    """Dependency: require a valid Bearer access token and return the current user."""
    token = credentials.credentials if credentials is not None else None
    return authenticate_access_token(db, issuer, token)


def get_optional_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
    issuer: Annotated[TokenIssuer | None, Depends(get_optional_token_issuer)],
) -> UserSnapshot | None:
    """Dependency: like get_current_user, but anonymous or invalid callers get None instead of an error."""
    if credentials is None or issuer is None:
        return None
    try:
        return authenticate_access_token(db, issuer, credentials.credentials)
    except AuthServiceError:
        return None
    except SQLAlchemyError:
        logger.warning("Optional auth lookup failed; continuing anonymously", exc_info=True)
        return None


def client_key(request: Request) -> str:
    """Rate-limit key for the caller: its IP as seen by the server."""
    return request.client.host if request.client is not None else "unknown"


def enforce_auth_rate_limit(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> None:
    """Dependency: shared attempt budget for /register and /login. 429 once spent."""
    if not settings.AUTH_RATE_LIMIT_ENABLED:
        return
    record_auth_attempt(
        db,
        client_key(request),
        limit=settings.AUTH_RATE_LIMIT_ATTEMPTS,
        window=timedelta(minutes=settings.AUTH_RATE_LIMIT_WINDOW_MINUTES),
    )


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(enforce_auth_rate_limit)],
)
def register(
    body: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
    issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AuthResponse:
    """Create an account with a zero-balance fuel account and return a token pair."""
    result = auth_service.register(
        db,
        issuer,
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        bcrypt_rounds=settings.BCRYPT_ROUNDS,
    )
    return AuthResponse(message="User created successfully", user=result.user, tokens=result.tokens)


@router.post(
    "/login",
    response_model=AuthResponse,
    dependencies=[Depends(enforce_auth_rate_limit)],
)
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
    issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AuthResponse:
    """
    Authenticate with email and password; returns the user and a new token pair.
    Include the access token in the Authorization header as: Bearer <accessToken>
    """
    result = auth_service.login(
        db,
        issuer,
        email=body.email,
        password=body.password,
        bcrypt_rounds=settings.BCRYPT_ROUNDS,
    )
    return AuthResponse(message="Login successful", user=result.user, tokens=result.tokens)


@router.get("/me", response_model=MeResponse)
def me(current_user: Annotated[UserSnapshot, Depends(get_current_user)]) -> MeResponse:
    return MeResponse(user=current_user)


@router.post("/refresh", response_model=RefreshResponse)
def refresh(
    body: RefreshRequest,
    db: Annotated[Session, Depends(get_db)],
    issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
) -> RefreshResponse:
    """Exchange a refresh token for a new pair. The submitted token is invalidated."""
    tokens = auth_service.refresh(db, issuer, refresh_token=body.refresh_token)
    return RefreshResponse(tokens=tokens)


@router.post("/logout", response_model=MessageResponse)
def logout(
    current_user: Annotated[UserSnapshot, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    body: LogoutRequest | None = None,
) -> MessageResponse:
    """Revoke the supplied refresh token. The access token expires on its own."""
    auth_service.logout(
        db,
        user_id=current_user.id,
        refresh_token=body.refresh_token if body is not None else None,
    )
    return MessageResponse(message="Logout successful")
