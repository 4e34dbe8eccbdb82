"""
Base model and common utilities for SQLAlchemy ORM.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from adlink.common.database import Base


class TimestampMixin:
    """Mixin for created_at and updated_at timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=func.now(), onupdate=func.now(), nullable=False
    )


class AdType(str, Enum):
    """Advertisement creative type."""
    IMAGE = "image"   # image_url is set
    HTML = "html"     # html_content is set


class AdStatus(str, Enum):
    """Advertisement lifecycle status."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"


class AppRole(str, Enum):
    """Roles granted through user_roles."""
    ADMIN = "admin"
    MODERATOR = "moderator"
    USER = "user"


__all__ = ["Base", "TimestampMixin", "AdType", "AdStatus", "AppRole"]
