"""
Domain Services - Application Layer.

Services contain business logic and orchestrate operations.
They use Repositories for data access and queue outbox events.

Structure:
    Router (thin controller)
        ↓
    Service (business logic)  ← YOU ARE HERE
        ↓
    Repository (data access)
        ↓
    Model (entity)

Usage:
    from rest_api.services.domain import OrderItemStatusService

    # In router
    service = OrderItemStatusService(db)
    result = service.update_item_status(order_id, item_ids, "ready", user_id)
"""

from .order_item_status_service import (
    OrderItemStatusService,
    StatusUpdateResult,
    OrderNotFoundError,
    HotelAccessDeniedError,
    InvalidStatusUpdateError,
    ItemOwnershipError,
    ConcurrentUpdateError,
    normalize_item_ids,
)
from .department_dashboard_service import (
    DepartmentDashboardService,
    DepartmentOrderView,
    DepartmentStats,
    belongs_to_department,
    count_by_status,
)

__all__ = [
    # Item status writes
    "OrderItemStatusService",
    "StatusUpdateResult",
    "OrderNotFoundError",
    "HotelAccessDeniedError",
    "InvalidStatusUpdateError",
    "ItemOwnershipError",
    "ConcurrentUpdateError",
    "normalize_item_ids",
    # Dashboards
    "DepartmentDashboardService",
    "DepartmentOrderView",
    "DepartmentStats",
    "belongs_to_department",
    "count_by_status",
]
