"""SQLAlchemy ORM models for users, their profiles and sign-in sessions.

`User` is the authentication identity; `Profile` carries the role and flat
that drive what the user may see and do. They share the same id.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gatepass.db.base import Base
from gatepass.domain.enums import Role
from gatepass.domain.flat import Flat
from gatepass.domain.mixins import TimestampMixin, UUIDPrimaryKeyMixin


class User(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    profile: Mapped[Optional["Profile"]] = relationship(back_populates="user", lazy="raise")


class Profile(Base, TimestampMixin):
    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    # "admin" | "security" | "flat_owner"
    role: Mapped[str] = mapped_column(String(20), default=Role.FLAT_OWNER.value, nullable=False)
    flat_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("flats.id"), index=True, nullable=True
    )

    user: Mapped[User] = relationship(back_populates="profile", lazy="raise")
    flat: Mapped[Optional[Flat]] = relationship(lazy="raise")


class AuthSession(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "auth_sessions"

    token: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_revoked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
