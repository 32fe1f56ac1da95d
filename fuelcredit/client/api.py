"""Async HTTP client for the auth endpoints, as used by the mobile session layer."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel

logger = logging.getLogger(__name__)

NETWORK_ERROR_MESSAGE = "Network error. Please check your connection."
DEFAULT_TIMEOUT_SEC = 10.0


class ApiResult(BaseModel):
    """Outcome of one API call. Never raised; callers branch on success."""

    success: bool
    data: dict[str, Any] | None = None
    error: str | None = None
    status_code: int | None = None


class AuthApiClient:
    """
    Thin wrapper over httpx.AsyncClient for /auth/*.

    Server errors surface the response's `message`; transport failures surface
    NETWORK_ERROR_MESSAGE instead of the raw exception.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_SEC,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> AuthApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        token: str | None = None,
        json: dict[str, Any] | None = None,
    ) -> ApiResult:
        headers = {"Authorization": f"Bearer {token}"} if token else None
        try:
            resp = await self._client.request(method, path, json=json, headers=headers)
        except httpx.TransportError as e:
            logger.warning("API request failed: %s %s: %s", method, path, e)
            return ApiResult(success=False, error=NETWORK_ERROR_MESSAGE)

        try:
            data = resp.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            data = None

        if resp.is_error:
            message = data.get("message") if data else None
            return ApiResult(
                success=False,
                error=message or "API request failed",
                status_code=resp.status_code,
            )
        return ApiResult(success=True, data=data, status_code=resp.status_code)

    async def register(
        self, *, first_name: str, last_name: str, email: str, password: str
    ) -> ApiResult:
        return await self._request(
            "POST",
            "/auth/register",
            json={
                "firstName": first_name,
                "lastName": last_name,
                "email": email,
                "password": password,
            },
        )

    async def login(self, *, email: str, password: str) -> ApiResult:
        return await self._request(
            "POST", "/auth/login", json={"email": email, "password": password}
        )

    async def get_profile(self, token: str) -> ApiResult:
        return await self._request("GET", "/auth/me", token=token)

    async def refresh(self, refresh_token: str) -> ApiResult:
        return await self._request(
            "POST", "/auth/refresh", json={"refreshToken": refresh_token}
        )

    async def logout(self, token: str, refresh_token: str) -> ApiResult:
        return await self._request(
            "POST", "/auth/logout", token=token, json={"refreshToken": refresh_token}
        )
