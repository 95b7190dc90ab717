"""
Hotel and staff models: Hotel, User, HotelUser.

Hotel administration itself lives elsewhere; these tables are read here
to authenticate callers and check hotel membership.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import Boolean, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Hotel(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A hotel offering room service."""

    __tablename__ = "hotels"

    name: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)

    members: Mapped[list["HotelUser"]] = relationship(back_populates="hotel")

    def __repr__(self) -> str:
        return f"<Hotel(id={self.id}, slug='{self.slug}')>"


class User(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    A platform user.

    Staff users carry a department (kitchen, bar or both) which decides
    which fulfillment dashboard they may read.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    full_name: Mapped[Optional[str]] = mapped_column(Text)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="staff")
    department: Mapped[Optional[str]] = mapped_column(String(20))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    memberships: Mapped[list["HotelUser"]] = relationship(back_populates="user")

    def __repr__(self) -> str:
        return f"<User(id={self.id}, role='{self.role}', department='{self.department}')>"


class HotelUser(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Grant of a user on a hotel. No row means no access."""

    __tablename__ = "hotel_users"

    hotel_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("hotels.id"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False, index=True
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="staff")

    hotel: Mapped["Hotel"] = relationship(back_populates="members")
    user: Mapped["User"] = relationship(back_populates="memberships")

    __table_args__ = (
        UniqueConstraint("hotel_id", "user_id", name="uq_hotel_users_hotel_user"),
    )
