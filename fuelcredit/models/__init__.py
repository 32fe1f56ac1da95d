"""SQLAlchemy ORM models."""

from fuelcredit.models.auth_attempt import AuthAttempt
from fuelcredit.models.base import Base
from fuelcredit.models.fuel_account import AccountStatus, FuelAccount
from fuelcredit.models.refresh_token import RefreshToken
from fuelcredit.models.user import User

__all__ = ["AccountStatus", "AuthAttempt", "Base", "FuelAccount", "RefreshToken", "User"]
