"""Credential store: user lookup by normalized email or id, and public snapshots."""

import re

from sqlalchemy.orm import Session, joinedload

from fuelcredit.models import AccountStatus, FuelAccount, User
from fuelcredit.models.fuel_account import DEFAULT_BALANCE, DEFAULT_CREDIT_LIMIT
from fuelcredit.schemas.auth import FuelAccountSnapshot, UserSnapshot

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def normalize_email(email: str) -> str:
    """Emails are case-insensitive; every store and lookup goes through this."""
    return email.strip().lower()


def is_valid_email(email: str) -> bool:
    return EMAIL_PATTERN.match(email) is not None


def get_user_by_email(db: Session, email: str) -> User | None:
    return (
        db.query(User)
        .options(joinedload(User.fuel_account))
        .filter(User.email == normalize_email(email))
        .first()
    )


def get_user_by_id(db: Session, user_id: str) -> User | None:
    return (
        db.query(User)
        .options(joinedload(User.fuel_account))
        .filter(User.id == user_id)
        .first()
    )


def new_user_with_account(
    *, email: str, password_hash: str, first_name: str, last_name: str
) -> User:
    """Build an unsaved User with its default FuelAccount attached."""
    user = User(
        email=normalize_email(email),
        password_hash=password_hash,
        first_name=first_name,
        last_name=last_name,
        is_verified=False,
    )
    user.fuel_account = FuelAccount(
        balance=DEFAULT_BALANCE,
        credit_limit=DEFAULT_CREDIT_LIMIT,
        status=AccountStatus.ACTIVE,
    )
    return user


def user_snapshot(user: User) -> UserSnapshot:
    """Public view of a user, with decimal money converted to plain numbers."""
    account = user.fuel_account
    account_snapshot = None
    if account is not None:
        account_snapshot = FuelAccountSnapshot(
            id=account.id,
            balance=float(account.balance),
            credit_limit=float(account.credit_limit),
            status=AccountStatus(account.status).value,
        )
    return UserSnapshot(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        fuel_account=account_snapshot,
    )
