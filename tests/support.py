"""Shared fixtures: test settings, in-memory SQLite sessions, and an API client."""

from collections.abc import Generator

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from fuelcredit.core.config import Settings, get_settings
from fuelcredit.core.database import get_db
from fuelcredit.core.security import TokenIssuer
from fuelcredit.main import app
from fuelcredit.models import Base

TEST_SETTINGS = Settings(
    _env_file=None,
    DATABASE_URL="sqlite://",
    JWT_SECRET="test-access-secret-0123456789abcdef",
    JWT_REFRESH_SECRET="test-refresh-secret-0123456789abcdef",
    BCRYPT_ROUNDS=4,
    AUTH_RATE_LIMIT_ENABLED=False,
)


def make_session_factory() -> sessionmaker:
    """Fresh in-memory database with all tables; one shared connection."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record) -> None:
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


def make_issuer() -> TokenIssuer:
    return TokenIssuer.from_settings(TEST_SETTINGS)


def install_overrides(session_factory: sessionmaker) -> None:
    """Point the app at session_factory and TEST_SETTINGS. Call clear_overrides() after."""

    def _get_db() -> Generator[Session, None, None]:
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_settings] = lambda: TEST_SETTINGS


def make_client(session_factory: sessionmaker, **kwargs: object) -> TestClient:
    install_overrides(session_factory)
    return TestClient(app, **kwargs)


def clear_overrides() -> None:
    app.dependency_overrides.clear()
