"""
Common utilities and shared modules.
"""

from adlink.common.cache import CacheKeys, redis_client
from adlink.common.config import get_settings, settings
from adlink.common.database import Base, db, get_session, init_db
from adlink.common.exceptions import AdLinkError
from adlink.common.logger import get_logger, log_context, logger
from adlink.common.session import AuthSession, SessionContext

__all__ = [
    "settings",
    "get_settings",
    "logger",
    "get_logger",
    "log_context",
    "db",
    "init_db",
    "get_session",
    "Base",
    "redis_client",
    "CacheKeys",
    "AdLinkError",
    "AuthSession",
    "SessionContext",
]
