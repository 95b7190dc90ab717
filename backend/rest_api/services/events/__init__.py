"""
Event Services - Transactional outbox for guest notifications.

Provides:
- write_outbox_event / write_order_notification: queue an intent in the
  caller's transaction
- OutboxProcessor: background delivery with retries
"""

from .outbox_service import (
    write_outbox_event,
    write_order_notification,
)

from .outbox_processor import (
    OutboxProcessor,
    get_outbox_processor,
    start_outbox_processor,
    stop_outbox_processor,
    process_pending_events_once,
)

__all__ = [
    "write_outbox_event",
    "write_order_notification",
    "OutboxProcessor",
    "get_outbox_processor",
    "start_outbox_processor",
    "stop_outbox_processor",
    "process_pending_events_once",
]
