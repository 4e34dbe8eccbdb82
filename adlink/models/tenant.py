"""
Tenant models: content providers, advertisers and role grants.

Each tenant row hangs off a user id issued by the upstream
authentication provider.
"""

from __future__ import annotations

from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from adlink.models.base import AppRole, Base, TimestampMixin


class ContentProvider(Base, TimestampMixin):
    """Tenant who owns original content and creates short links."""

    __tablename__ = "content_providers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    organization_name: Mapped[str] = mapped_column(String(255), nullable=False)
    website_domain: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    content_links: Mapped[list["ContentLink"]] = relationship(  # noqa: F821
        "ContentLink", back_populates="provider", lazy="raise"
    )


class Advertiser(Base, TimestampMixin):
    """Tenant who uploads ads."""

    __tablename__ = "advertisers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    website_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    contact_email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    advertisements: Mapped[list["Advertisement"]] = relationship(  # noqa: F821
        "Advertisement", back_populates="advertiser", lazy="raise"
    )


class UserRole(Base):
    """Role grant for a user (admin, moderator, user)."""

    __tablename__ = "user_roles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=AppRole.USER.value)

    __table_args__ = (
        UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),
    )
