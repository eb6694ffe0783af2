"""
Core module - Configuration, database, security, and notifications.
"""

from app.core.config import get_settings, settings
from app.core.database import Base, close_db, get_db, init_db
from app.core.redis import close_redis, init_redis
from app.core.security import create_access_token, decode_token

__all__ = [
    # Config
    "settings",
    "get_settings",
    # Database
    "Base",
    "get_db",
    "init_db",
    "close_db",
    # Redis
    "init_redis",
    "close_redis",
    # Security
    "create_access_token",
    "decode_token",
]
