"""
Order Models: Order, OrderItem.

Orders carry two item representations. `order_items` rows are the
authoritative per-item records. `Order.items` is the legacy JSON snapshot
written at checkout; older orders only have that snapshot.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Order(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    A guest room-service order.

    `status` is the guest-visible aggregate. It only moves forward and is
    written exclusively by the item status reconciliation service.
    `version` is bumped by SQLAlchemy on every UPDATE of the row and
    guards against lost updates.
    """

    __tablename__ = "orders"

    order_number: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    hotel_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("hotels.id"), nullable=False, index=True
    )
    room_number: Mapped[Optional[str]] = mapped_column(String(20))
    guest_name: Mapped[Optional[str]] = mapped_column(Text)
    guest_phone: Mapped[Optional[str]] = mapped_column(String(30))
    status: Mapped[str] = mapped_column(String(30), default="pending", nullable=False, index=True)
    # Legacy snapshot: list of item dicts in one of several historical shapes
    items: Mapped[Optional[list[dict[str, Any]]]] = mapped_column(JSON)
    subtotal: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), default=0, nullable=False)
    discount_amount: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), default=0, nullable=False)
    total_amount: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), default=0, nullable=False)
    delivered_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    order_items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order", order_by="OrderItem.created_at"
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        # Dashboard listing: hotel + creation time
        Index("ix_orders_hotel_created", "hotel_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, order_number='{self.order_number}', status='{self.status}', version={self.version})>"


class OrderItem(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    One line item of an order, with its own fulfillment status.
    Unset `department` means the item predates department tagging.
    """

    __tablename__ = "order_items"

    order_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("orders.id"), nullable=False, index=True
    )
    menu_item_id: Mapped[Optional[str]] = mapped_column(String(64))
    menu_item_name: Mapped[str] = mapped_column(Text, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    unit_price: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), default=0, nullable=False)
    total_price: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), default=0, nullable=False)
    special_instructions: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(30), default="pending", nullable=False)
    department: Mapped[Optional[str]] = mapped_column(String(20), index=True)

    order: Mapped["Order"] = relationship(back_populates="order_items")

    __table_args__ = (
        Index("ix_order_items_order_department", "order_id", "department"),
    )

    def __repr__(self) -> str:
        return f"<OrderItem(id={self.id}, order_id={self.order_id}, status='{self.status}', department='{self.department}')>"
