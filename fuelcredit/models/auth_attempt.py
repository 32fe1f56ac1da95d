"""ORM model for credential attempts counted by the auth rate limiter."""

from sqlalchemy import Column, DateTime, Index, Integer, String

from fuelcredit.models.base import Base


class AuthAttempt(Base):
    """One register or login request from a client, kept until its window passes."""

    __tablename__ = "auth_attempts"
    __table_args__ = (
        Index("ix_auth_attempts_client_key_attempted_at", "client_key", "attempted_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_key = Column(String(255), nullable=False)
    attempted_at = Column(DateTime(timezone=True), nullable=False)
