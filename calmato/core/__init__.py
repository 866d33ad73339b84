"""Core app configuration, database, password hashing and tokens."""

from calmato.core.config import get_settings, settings
from calmato.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
