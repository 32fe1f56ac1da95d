"""Core app configuration, database and token security."""

from fuelcredit.core.config import get_settings, settings
from fuelcredit.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
