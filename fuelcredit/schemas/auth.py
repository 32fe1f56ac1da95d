"""Request/response schemas for auth endpoints. Wire names are camelCase."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Serializes by camelCase alias; accepts either alias or field name on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class RegisterRequest(CamelModel):
    """Registration body. Fields are optional here so the service reports missing ones as 400."""

    email: str | None = None
    password: str | None = None
    first_name: str | None = None
    last_name: str | None = None


class LoginRequest(CamelModel):
    """Credentials for login."""

    email: str | None = None
    password: str | None = None


class RefreshRequest(CamelModel):
    refresh_token: str | None = None


class LogoutRequest(CamelModel):
    refresh_token: str | None = None


class FuelAccountSnapshot(CamelModel):
    """Fuel account fields as exposed to clients; money is a plain number."""

    id: str
    balance: float
    credit_limit: float
    status: str


class UserSnapshot(CamelModel):
    """Public user fields. Never includes the password hash."""

    id: str
    email: str
    first_name: str
    last_name: str
    fuel_account: FuelAccountSnapshot | None = None


class Tokens(CamelModel):
    access_token: str = Field(..., description="JWT access token, sent as Authorization: Bearer <token>")
    refresh_token: str = Field(..., description="JWT refresh token, single use")


class AuthResponse(CamelModel):
    """Response for register and login."""

    message: str
    user: UserSnapshot
    tokens: Tokens


class MeResponse(CamelModel):
    user: UserSnapshot


class RefreshResponse(CamelModel):
    tokens: Tokens


class MessageResponse(CamelModel):
    message: str
