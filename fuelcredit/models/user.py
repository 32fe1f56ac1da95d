"""ORM model for registered users (credential store)."""

import uuid

from sqlalchemy import Boolean, Column, DateTime, String, func
from sqlalchemy.orm import relationship

from fuelcredit.models.base import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """
    Registered user with a bcrypt password hash.

    email is always stored lowercased; the unique index on it is what makes
    concurrent registrations of the same address fail cleanly.
    password_hash is nullable for accounts created through an external identity.
    is_verified is stored but not enforced by any flow yet.
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=True)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    is_verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    fuel_account = relationship(
        "FuelAccount",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    refresh_tokens = relationship(
        "RefreshToken",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
