"""Domain errors raised by the auth core. Each carries the HTTP status it maps to."""


class AuthServiceError(Exception):
    """Base class for errors surfaced to API callers as {"message": ...}."""

    status_code: int = 400

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    @property
    def headers(self) -> dict[str, str] | None:
        return None


class ValidationError(AuthServiceError):
    """Malformed or missing input."""

    status_code = 400


class ConflictError(AuthServiceError):
    """An account with the normalized email already exists."""

    status_code = 400


class InvalidCredentialsError(AuthServiceError):
    """
    Login failed. The message is identical for unknown email and wrong password
    so callers cannot enumerate accounts.
    """

    status_code = 400

    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(message)


class InvalidTokenError(AuthServiceError):
    """Bad signature, malformed payload, expired, revoked or replayed token."""

    status_code = 403


class UnauthorizedError(AuthServiceError):
    """Missing bearer token, or the token's user no longer exists."""

    status_code = 401

    @property
    def headers(self) -> dict[str, str] | None:
        return {"WWW-Authenticate": "Bearer"}


class InternalError(AuthServiceError):
    """Store or signing failure. Detail is logged, never returned to the caller."""

    status_code = 500


class TokenConfigurationError(InternalError):
    """Signing secrets are missing; no token may be issued or verified."""


class RateLimitedError(AuthServiceError):
    """The caller spent its credential-attempt budget for the current window."""

    status_code = 429

    def __init__(self, message: str, retry_after: int | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after

    @property
    def headers(self) -> dict[str, str] | None:
        if self.retry_after is None:
            return None
        return {"Retry-After": str(self.retry_after)}
