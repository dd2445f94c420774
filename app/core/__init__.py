"""Core configuration, database access and auth primitives."""

from app.core.config import get_settings, settings
from app.core.database import get_db
from app.core.roles import Role

__all__ = ["Role", "get_db", "get_settings", "settings"]
