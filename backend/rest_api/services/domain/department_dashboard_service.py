"""
Department Dashboard Domain Service.

Read side for the kitchen and bar screens. An order appears on a
department's dashboard when at least one of its items belongs to that
department; the order is then shown restricted to those items with a
status aggregated from them alone.

Items come from `order_items` when the order has rows, otherwise from the
legacy JSON snapshot. Nothing here writes.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from shared.config.constants import (
    BAR_EXCLUDE_KEYWORDS,
    BAR_KEYWORDS,
    KITCHEN_EXCLUDE_KEYWORDS,
    KITCHEN_KEYWORDS,
    Department,
    OrderStatus,
    ServiceType,
    dashboard_priority,
    is_terminal,
)
from shared.config.logging import dashboard_logger as logger
from shared.config.settings import settings
from rest_api.models import Order
from rest_api.models.base import as_utc, utcnow
from rest_api.repositories import OrderFilters, OrderItemRepository, OrderRepository
from rest_api.services.reconciliation import (
    MergedItem,
    department_status,
    parse_snapshot,
    synthesize_snapshot,
)


_NOT_URGENT = frozenset({OrderStatus.READY.value, OrderStatus.DELIVERED.value})


# =============================================================================
# Classification
# =============================================================================


def _mentions(text: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword in text for keyword in keywords)


def belongs_to_department(item: MergedItem, department: str) -> bool:
    """
    Decide whether an item is prepared by `department`.

    An explicit department tag always wins. Untagged items fall back to the
    snapshot's service type, then to name and category keywords.
    """
    if item.department:
        return item.department == department

    name = (item.menu_item_name or "").lower()
    category = (item.category or "").lower()

    if department == Department.KITCHEN:
        if item.service_type in ServiceType.KITCHEN_TYPES:
            return True
        if _mentions(name, KITCHEN_EXCLUDE_KEYWORDS) or _mentions(category, KITCHEN_EXCLUDE_KEYWORDS):
            return False
        return _mentions(name, KITCHEN_KEYWORDS) or _mentions(category, KITCHEN_KEYWORDS)

    if department == Department.BAR:
        if item.service_type in ServiceType.BAR_TYPES:
            return True
        # Food words are checked in the name only
        if _mentions(name, BAR_EXCLUDE_KEYWORDS):
            return False
        return _mentions(name, BAR_KEYWORDS) or _mentions(category, BAR_KEYWORDS)

    return False


# =============================================================================
# View models
# =============================================================================


@dataclass
class DepartmentOrderView:
    """One order as a department sees it."""

    order: Order
    items: list[MergedItem]
    department_status: str
    minutes_waiting: int
    is_urgent: bool

    @property
    def item_count(self) -> int:
        return sum(item.quantity or 1 for item in self.items)

    @property
    def subtotal(self) -> float:
        return round(sum(item.total_price for item in self.items), 2)

    @property
    def discount_amount(self) -> float:
        return float(self.order.discount_amount or 0)

    @property
    def total_amount(self) -> float:
        return max(0.0, round(self.subtotal - self.discount_amount, 2))

    def to_dict(self) -> dict:
        return {
            "id": self.order.id,
            "order_number": self.order.order_number,
            "room_number": self.order.room_number,
            "guest_name": self.order.guest_name,
            "order_status": self.order.status,
            "department_status": self.department_status,
            "items": [item.to_dict() for item in self.items],
            "item_count": self.item_count,
            "subtotal": self.subtotal,
            "discount_amount": self.discount_amount,
            "total_amount": self.total_amount,
            "created_at": as_utc(self.order.created_at),
            "minutes_waiting": self.minutes_waiting,
            "is_urgent": self.is_urgent,
        }


@dataclass
class DepartmentStats:
    department: str
    pending: int = 0
    preparing: int = 0
    ready: int = 0
    delivered: int = 0
    completed_today: int = 0
    avg_prep_time_minutes: int = 0
    total_today: int = 0
    prep_minutes: list[float] = field(default_factory=list, repr=False)

    def to_dict(self) -> dict:
        return {
            "department": self.department,
            "pending": self.pending,
            "preparing": self.preparing,
            "ready": self.ready,
            "delivered": self.delivered,
            "completed_today": self.completed_today,
            "avg_prep_time_minutes": self.avg_prep_time_minutes,
            "total_today": self.total_today,
        }


def count_by_status(views: list[DepartmentOrderView]) -> dict[str, int]:
    """Counts shown in the header of a department's order list."""
    counts = {"pending": 0, "preparing": 0, "ready": 0, "delivered": 0}
    for view in views:
        if view.department_status in counts:
            counts[view.department_status] += 1
    counts["total_today"] = len(views)
    return counts


# =============================================================================
# Service
# =============================================================================


class DepartmentDashboardService:
    """Builds kitchen and bar dashboards for one hotel."""

    def __init__(self, db: Session):
        self._db = db
        self._orders = OrderRepository(db)
        self._items = OrderItemRepository(db)

    def list_orders(
        self,
        hotel_id: str,
        department: str,
        now: datetime | None = None,
    ) -> list[DepartmentOrderView]:
        """
        Orders with at least one item for `department`.

        Sorted by dashboard priority of the department status, then by
        minutes waiting.
        """
        now = now or utcnow()
        orders = self._orders.find_all(OrderFilters(hotel_id=hotel_id))
        views = self._build_views(orders, department, now)
        views.sort(key=lambda view: (dashboard_priority(view.department_status), view.minutes_waiting))

        logger.debug(
            "Department orders listed",
            hotel_id=hotel_id,
            department=department,
            scanned=len(orders),
            shown=len(views),
        )
        return views

    def stats(
        self,
        hotel_id: str,
        department: str,
        now: datetime | None = None,
    ) -> DepartmentStats:
        """Figures over today's (UTC) orders that have items for `department`."""
        now = now or utcnow()
        day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        orders = self._orders.find_all(
            OrderFilters(hotel_id=hotel_id, created_since=day_start)
        )
        views = self._build_views(orders, department, now)

        result = DepartmentStats(department=department, total_today=len(views))
        for view in views:
            status = view.department_status
            if status == OrderStatus.PENDING.value:
                result.pending += 1
            elif status == OrderStatus.PREPARING.value:
                result.preparing += 1
            elif status == OrderStatus.READY.value:
                result.ready += 1
            elif status == OrderStatus.DELIVERED.value:
                result.delivered += 1

            if is_terminal(status):
                result.completed_today += 1

            delivered_at = as_utc(view.order.delivered_at)
            if status == OrderStatus.DELIVERED.value and delivered_at is not None:
                elapsed = delivered_at - as_utc(view.order.created_at)
                result.prep_minutes.append(max(elapsed, timedelta(0)).total_seconds() / 60)

        if result.prep_minutes:
            result.avg_prep_time_minutes = round(sum(result.prep_minutes) / len(result.prep_minutes))

        logger.debug("Department stats computed", hotel_id=hotel_id, **result.to_dict())
        return result

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _build_views(
        self,
        orders: list[Order],
        department: str,
        now: datetime,
    ) -> list[DepartmentOrderView]:
        rows_by_order = self._items.list_for_orders([order.id for order in orders])
        views: list[DepartmentOrderView] = []

        for order in orders:
            items = [
                item for item in self._items_of(order, rows_by_order.get(order.id, []))
                if belongs_to_department(item, department)
            ]
            if not items:
                continue

            status = department_status(items)
            waited = now - as_utc(order.created_at)
            minutes_waiting = max(0, int(waited.total_seconds() // 60))
            views.append(
                DepartmentOrderView(
                    order=order,
                    items=items,
                    department_status=status,
                    minutes_waiting=minutes_waiting,
                    is_urgent=(
                        minutes_waiting >= settings.urgent_wait_minutes
                        and status not in _NOT_URGENT
                    ),
                )
            )
        return views

    @staticmethod
    def _items_of(order: Order, rows: list) -> list[MergedItem]:
        if rows:
            return [MergedItem.from_row(row) for row in rows]
        return synthesize_snapshot(order.id, parse_snapshot(order.items), order.created_at)
