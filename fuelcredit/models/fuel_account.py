"""ORM model for a user's fuel credit account."""

import enum
import uuid
from decimal import Decimal

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Numeric, String, func
from sqlalchemy.orm import relationship

from fuelcredit.models.base import Base

DEFAULT_BALANCE = Decimal("0.00")
DEFAULT_CREDIT_LIMIT = Decimal("1000.00")


class AccountStatus(str, enum.Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    CLOSED = "closed"


class FuelAccount(Base):
    """
    Credit account owned 1:1 by a User, created together with it at registration.

    Monetary columns are exact decimals. balance <= credit_limit is not enforced.
    """

    __tablename__ = "fuel_accounts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    balance = Column(Numeric(12, 2), nullable=False, default=DEFAULT_BALANCE)
    credit_limit = Column(Numeric(12, 2), nullable=False, default=DEFAULT_CREDIT_LIMIT)
    status = Column(
        Enum(
            AccountStatus,
            name="account_status",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=AccountStatus.ACTIVE,
    )
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    user = relationship("User", back_populates="fuel_account")
