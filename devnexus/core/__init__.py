"""Core app configuration, database and security."""

from devnexus.core.config import get_settings, settings
from devnexus.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
