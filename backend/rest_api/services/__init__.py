"""
Services module for business logic.

ARCHITECTURE:
- domain/: Application services (item status updates, dashboards) - USE THESE
- reconciliation/: Pure merge, aggregation and promotion rules
- events/: Transactional outbox and its background processor
- messaging/: WhatsApp notifications through Twilio

Usage:
    from rest_api.services.domain import OrderItemStatusService
    service = OrderItemStatusService(db)
    result = service.update_item_status(order_id, ["item-1"], "ready", user_id)
"""

from .domain import (
    OrderItemStatusService,
    DepartmentDashboardService,
)
from .events import (
    write_outbox_event,
    write_order_notification,
    process_pending_events_once,
)
from .messaging import WhatsAppNotifier

__all__ = [
    "OrderItemStatusService",
    "DepartmentDashboardService",
    "write_outbox_event",
    "write_order_notification",
    "process_pending_events_once",
    "WhatsAppNotifier",
]
