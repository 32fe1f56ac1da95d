"""FastAPI application entrypoint. No business logic; only wiring, middleware and error mapping."""

from dotenv import load_dotenv

load_dotenv()

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Annotated, Any

from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fuelcredit.api import health
from fuelcredit.api import router as api_router
from fuelcredit.api.auth import get_optional_user
from fuelcredit.core.config import get_settings, settings
from fuelcredit.core.security import TokenIssuer
from fuelcredit.schemas.auth import UserSnapshot
from fuelcredit.services.errors import AuthServiceError, InternalError

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    # Refuse to start without both signing secrets.
    TokenIssuer.from_settings(get_settings())
    logger.info("Fuel Credit API starting", extra={"environment": settings.APP_ENV})
    yield


app = FastAPI(
    title="Fuel Credit API",
    version=VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.APP_ENV == "dev" else settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Referrer-Policy", "no-referrer")
    response.headers.setdefault("Cross-Origin-Opener-Policy", "same-origin")
    response.headers.setdefault("X-Permitted-Cross-Domain-Policies", "none")
    # JSON only: the interactive docs pull their assets from a CDN.
    if response.headers.get("content-type", "").startswith("application/json"):
        response.headers.setdefault(
            "Content-Security-Policy", "default-src 'none'; frame-ancestors 'none'"
        )
    if request.url.scheme == "https":
        response.headers.setdefault(
            "Strict-Transport-Security", "max-age=15552000; includeSubDomains"
        )
    return response


@app.exception_handler(AuthServiceError)
async def auth_error_handler(request: Request, exc: AuthServiceError) -> JSONResponse:
    if isinstance(exc, InternalError):
        logger.error(
            "Internal auth failure",
            exc_info=exc,
            extra={"path": request.url.path, "reason": exc.message[:500]},
        )
        return JSONResponse(status_code=exc.status_code, content={"message": "Internal server error"})
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message},
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"message": "Invalid request body", "errors": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


app.include_router(api_router, prefix=settings.API_PREFIX)
app.include_router(health.router, prefix="/health", tags=["health"])


@app.get("/")
def root(
    user: Annotated[UserSnapshot | None, Depends(get_optional_user)],
) -> dict[str, Any]:
    """Root route; lists the auth endpoints and greets an authenticated caller."""
    prefix = settings.API_PREFIX
    payload: dict[str, Any] = {
        "message": "Fuel Credit System API",
        "version": VERSION,
        "endpoints": {
            "register": f"POST {prefix}/auth/register",
            "login": f"POST {prefix}/auth/login",
            "me": f"GET {prefix}/auth/me",
            "refresh": f"POST {prefix}/auth/refresh",
            "logout": f"POST {prefix}/auth/logout",
            "health": "GET /health",
        },
    }
    if user is not None:
        payload["greeting"] = f"Welcome back, {user.first_name}"
    return payload
