"""Client-side session: secure token storage, bootstrap revalidation and logout."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

from fuelcredit.client.api import ApiResult, AuthApiClient
from fuelcredit.schemas.auth import UserSnapshot

logger = logging.getLogger(__name__)

ACCESS_TOKEN_KEY = "fuel_credit_access_token"
REFRESH_TOKEN_KEY = "fuel_credit_refresh_token"
USER_DATA_KEY = "fuel_credit_user_data"
SESSION_KEYS = (ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY, USER_DATA_KEY)

INVALID_CREDENTIALS_MESSAGE = (
    "Email or password is incorrect. Please check your credentials and try again."
)
AUTH_IN_PROGRESS_MESSAGE = "Another sign-in is already in progress."


class SecureStore(Protocol):
    """Device key/value storage for the three session entries."""

    async def get_item(self, key: str) -> str | None: ...

    async def set_item(self, key: str, value: str) -> None: ...

    async def delete_item(self, key: str) -> None: ...


class MemorySecureStore:
    """In-process SecureStore, for tests and headless clients."""

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    async def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    async def delete_item(self, key: str) -> None:
        self._items.pop(key, None)


@dataclass
class SessionState:
    user: UserSnapshot | None = None
    is_loading: bool = True

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None


@dataclass(frozen=True)
class AuthOutcome:
    success: bool
    error: str | None = None


def _friendly_login_error(error: str | None) -> str:
    message = error or "Login failed"
    if "Invalid credentials" in message:
        return INVALID_CREDENTIALS_MESSAGE
    return message


class SessionManager:
    """
    Owns the signed-in identity for one client.

    Call init() once at startup and teardown() at shutdown. Auth operations are
    serialized; a login or register submitted while another is running is
    rejected rather than queued.
    """

    def __init__(self, api: AuthApiClient, store: SecureStore) -> None:
        self._api = api
        self._store = store
        self._lock = asyncio.Lock()
        self.state = SessionState()

    @property
    def user(self) -> UserSnapshot | None:
        return self.state.user

    async def init(self) -> None:
        """
        Restore a cached session, then revalidate it against /auth/me.
        Any failure leaves the client logged out with storage cleared.
        """
        async with self._lock:
            self.state.is_loading = True
            try:
                stored_user = await self._store.get_item(USER_DATA_KEY)
                access_token = await self._store.get_item(ACCESS_TOKEN_KEY)
                if not stored_user or not access_token:
                    logger.info("No stored session found")
                    self.state.user = None
                    return
                try:
                    self.state.user = UserSnapshot.model_validate_json(stored_user)
                except ValueError:
                    logger.warning("Stored user snapshot is unreadable; clearing session")
                    await self._clear_local()
                    return
                await self._revalidate(access_token)
            finally:
                self.state.is_loading = False

    async def teardown(self) -> None:
        """Release the HTTP client and forget the in-memory identity. Storage is kept."""
        async with self._lock:
            self.state = SessionState(user=None, is_loading=False)
            await self._api.aclose()

    async def register(
        self, *, first_name: str, last_name: str, email: str, password: str
    ) -> AuthOutcome:
        """Create an account. Does not sign in; the user logs in afterwards."""
        if self._lock.locked():
            return AuthOutcome(success=False, error=AUTH_IN_PROGRESS_MESSAGE)
        async with self._lock:
            result = await self._api.register(
                first_name=first_name, last_name=last_name, email=email, password=password
            )
        if result.success:
            return AuthOutcome(success=True)
        return AuthOutcome(success=False, error=result.error or "Registration failed")

    async def login(self, email: str, password: str) -> AuthOutcome:
        if self._lock.locked():
            return AuthOutcome(success=False, error=AUTH_IN_PROGRESS_MESSAGE)
        async with self._lock:
            result = await self._api.login(email=email, password=password)
            if not result.success or result.data is None:
                return AuthOutcome(success=False, error=_friendly_login_error(result.error))
            await self._store_session(result)
        return AuthOutcome(success=True)

    async def logout(self) -> None:
        """
        Tell the server to revoke the refresh token, then clear local state.
        Local state is cleared even if the server call fails.
        """
        async with self._lock:
            try:
                access_token = await self._store.get_item(ACCESS_TOKEN_KEY)
                refresh_token = await self._store.get_item(REFRESH_TOKEN_KEY)
                if access_token and refresh_token:
                    result = await self._api.logout(access_token, refresh_token)
                    if not result.success:
                        logger.warning("Server logout failed: %s", result.error)
            finally:
                await self._clear_local()
                self.state.user = None
                self.state.is_loading = False

    async def refresh_user(self) -> None:
        """Re-read the profile from the server; a rejection logs the client out."""
        async with self._lock:
            access_token = await self._store.get_item(ACCESS_TOKEN_KEY)
            if not access_token:
                return
            await self._revalidate(access_token)

    async def _revalidate(self, access_token: str) -> None:
        result = await self._api.get_profile(access_token)
        if result.success and result.data is not None and "user" in result.data:
            user = UserSnapshot.model_validate(result.data["user"])
            self.state.user = user
            await self._store.set_item(USER_DATA_KEY, user.model_dump_json(by_alias=True))
            return
        logger.info("Session revalidation failed (%s); clearing session", result.error)
        await self._clear_local()

    async def _store_session(self, result: ApiResult) -> None:
        data = result.data or {}
        user = UserSnapshot.model_validate(data["user"])
        tokens = data["tokens"]
        await self._store.set_item(ACCESS_TOKEN_KEY, tokens["accessToken"])
        await self._store.set_item(REFRESH_TOKEN_KEY, tokens["refreshToken"])
        await self._store.set_item(USER_DATA_KEY, user.model_dump_json(by_alias=True))
        self.state.user = user

    async def _clear_local(self) -> None:
        for key in SESSION_KEYS:
            await self._store.delete_item(key)
        self.state.user = None
