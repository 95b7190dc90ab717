"""
Outbox model for transactional notification dispatch.

Notification intents are written in the same transaction as the order
status change, then delivered asynchronously by a background worker.
A failed WhatsApp send therefore never fails the status update, and
stays visible and retryable in this table.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import BigInteger, DateTime, Enum as SQLEnum, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, utcnow


class OutboxStatus(str, Enum):
    """Status of an outbox event."""
    PENDING = "PENDING"      # Ready to be processed
    PROCESSING = "PROCESSING"  # Claimed by a worker
    PUBLISHED = "PUBLISHED"  # Delivered (or deliberately skipped)
    FAILED = "FAILED"        # Failed after max retries


class OutboxEvent(Base):
    """
    Outbox event for guaranteed delivery.

    Event types: ORDER_READY, ORDER_DELIVERED.
    """
    __tablename__ = "outbox_events"

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )

    event_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)

    aggregate_type: Mapped[str] = mapped_column(String(50), nullable=False)  # e.g. "order"
    aggregate_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)

    # Event payload (JSON serialized)
    payload: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[OutboxStatus] = mapped_column(
        SQLEnum(OutboxStatus, name="outbox_status"),
        default=OutboxStatus.PENDING,
        nullable=False,
        index=True,
    )

    retry_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Composite index for efficient polling by the processor
    __table_args__ = (
        Index("ix_outbox_events_status_created", "status", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<OutboxEvent(id={self.id}, type={self.event_type}, status={self.status.value})>"
