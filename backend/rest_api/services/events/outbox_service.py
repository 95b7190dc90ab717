"""
Outbox service for transactional notification dispatch.

Usage in services:
    1. Change business data (items, order status)
    2. Call write_order_notification() with the same db session
    3. Commit once: the status change and the notification intent are atomic

Example:
    order.status = "ready"
    write_order_notification(db, order, EventType.ORDER_READY)
    safe_commit(db)
"""

import json
from typing import Any

from sqlalchemy.orm import Session

from rest_api.models import Order, OutboxEvent, OutboxStatus
from shared.config.logging import outbox_logger as logger


def write_outbox_event(
    db: Session,
    event_type: str,
    aggregate_type: str,
    aggregate_id: str,
    payload: dict[str, Any],
) -> OutboxEvent:
    """
    Write an event to the outbox table.

    MUST be called within the same transaction as the business operation.
    Nothing is flushed or committed here.

    Args:
        db: SQLAlchemy session (same session as business operation)
        event_type: Event type constant (ORDER_READY, ORDER_DELIVERED)
        aggregate_type: Type of aggregate (e.g. "order")
        aggregate_id: ID of the aggregate
        payload: Event payload as dict (will be JSON serialized)

    Returns:
        The created OutboxEvent instance
    """
    outbox_event = OutboxEvent(
        event_type=event_type,
        aggregate_type=aggregate_type,
        aggregate_id=aggregate_id,
        payload=json.dumps(payload),
        status=OutboxStatus.PENDING,
        retry_count=0,
    )
    db.add(outbox_event)
    logger.debug(
        "Outbox event queued",
        event_type=event_type,
        aggregate_type=aggregate_type,
        aggregate_id=aggregate_id,
    )
    return outbox_event


def write_order_notification(db: Session, order: Order, event_type: str) -> OutboxEvent:
    """Queue a guest WhatsApp notification for an order status change."""
    return write_outbox_event(
        db=db,
        event_type=event_type,
        aggregate_type="order",
        aggregate_id=order.id,
        payload={
            "order_number": order.order_number,
            "room_number": order.room_number,
            "guest_phone": order.guest_phone,
        },
    )
