"""
Centralized constants for the backend application.

Status ordering lives here and nowhere else: the order status promoter,
the department aggregator and the dashboard sort all read it.

Usage:
    from shared.config.constants import OrderStatus, compare_status

    if compare_status(new_status, order.status) > 0:
        ...
"""

from enum import Enum
from typing import Final


# =============================================================================
# User Roles and Departments
# =============================================================================


class Roles:
    """User role constants."""

    ADMIN: Final[str] = "admin"
    MANAGER: Final[str] = "manager"
    STAFF: Final[str] = "staff"
    GUEST: Final[str] = "guest"

    ALL: Final[list[str]] = [ADMIN, MANAGER, STAFF, GUEST]


MANAGEMENT_ROLES: Final[frozenset[str]] = frozenset({Roles.ADMIN, Roles.MANAGER})


class Department:
    """Fulfillment department of an order item."""

    KITCHEN: Final[str] = "kitchen"
    BAR: Final[str] = "bar"

    ALL: Final[list[str]] = [KITCHEN, BAR]


class StaffDepartment:
    """Department a staff user works in."""

    KITCHEN: Final[str] = "kitchen"
    BAR: Final[str] = "bar"
    BOTH: Final[str] = "both"

    ALL: Final[list[str]] = [KITCHEN, BAR, BOTH]


class ServiceType:
    """Item service type, used to place untagged items in a department."""

    RESTAURANT: Final[str] = "restaurant"
    RESTAURANT_ORDER: Final[str] = "restaurant_order"
    ROOM_SERVICE: Final[str] = "room_service"
    BAR: Final[str] = "bar"
    BAR_ORDER: Final[str] = "bar_order"

    KITCHEN_TYPES: Final[frozenset[str]] = frozenset({RESTAURANT, RESTAURANT_ORDER, ROOM_SERVICE})
    BAR_TYPES: Final[frozenset[str]] = frozenset({BAR, BAR_ORDER})


# =============================================================================
# Order / Item Status
# =============================================================================


class OrderStatus(str, Enum):
    """
    Status of an order or of one of its items.

    Declaration order is the total order used everywhere:
    pending < preparing < ready < out_for_delivery < delivered < cancelled.
    """

    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# Statuses a caller may write to an item
ITEM_STATUSES: Final[frozenset[str]] = frozenset({
    OrderStatus.PENDING.value,
    OrderStatus.PREPARING.value,
    OrderStatus.READY.value,
    OrderStatus.DELIVERED.value,
    OrderStatus.CANCELLED.value,
})

# Cancellation is a side lane, never auto-derived and never overwritten
TERMINAL_STATUSES: Final[frozenset[str]] = frozenset({
    OrderStatus.DELIVERED.value,
    OrderStatus.CANCELLED.value,
})

# Dashboard priority for statuses outside the enum
UNKNOWN_STATUS_PRIORITY: Final[int] = 99

_POSITION: Final[dict[str, int]] = {
    status.value: index for index, status in enumerate(OrderStatus)
}


def normalize_status(status: str | OrderStatus | None) -> str:
    """Return the plain string value; missing status counts as pending."""
    if status is None or status == "":
        return OrderStatus.PENDING.value
    if isinstance(status, OrderStatus):
        return status.value
    return status


def status_position(status: str | OrderStatus | None) -> int | None:
    """Position of a status in the total order, None for unknown values."""
    return _POSITION.get(normalize_status(status))


def compare_status(left: str | OrderStatus | None, right: str | OrderStatus | None) -> int:
    """
    Compare two statuses on the total order.

    Returns a negative number, zero or a positive number. Unknown values sort
    after every known status.
    """
    left_pos = status_position(left)
    right_pos = status_position(right)
    left_key = UNKNOWN_STATUS_PRIORITY if left_pos is None else left_pos
    right_key = UNKNOWN_STATUS_PRIORITY if right_pos is None else right_pos
    return left_key - right_key


def dashboard_priority(status: str | OrderStatus | None) -> int:
    """Sort key for department dashboards (pending first, cancelled last)."""
    position = status_position(status)
    return UNKNOWN_STATUS_PRIORITY if position is None else position


def is_terminal(status: str | OrderStatus | None) -> bool:
    return normalize_status(status) in TERMINAL_STATUSES


def validate_item_status(status: str | None) -> bool:
    """Validate that a status may be written to an item."""
    return status in ITEM_STATUSES


# =============================================================================
# Department classification keywords (untagged items)
# =============================================================================

# A kitchen item must not mention a drink
KITCHEN_EXCLUDE_KEYWORDS: Final[tuple[str, ...]] = (
    "drink", "cocktail", "wine", "beer", "mojito", "martini", "whiskey",
    "vodka", "rum", "tequila", "juice", "soda", "water", "beverage",
)

KITCHEN_KEYWORDS: Final[tuple[str, ...]] = (
    "burger", "pizza", "pasta", "salad", "steak", "chicken", "fish", "soup",
    "sandwich", "appetizer", "entree", "dessert", "breakfast", "lunch",
    "dinner", "grilled", "toast", "cake", "peppers", "potatoes", "mashed",
    "stuffed", "salmon", "beef", "avocado",
)

# A bar item must not mention food
BAR_EXCLUDE_KEYWORDS: Final[tuple[str, ...]] = (
    "burger", "pizza", "steak", "chicken", "salmon", "beef", "grilled",
    "toast", "cake", "salad", "peppers", "potatoes", "mashed", "stuffed",
)

BAR_KEYWORDS: Final[tuple[str, ...]] = (
    "drink", "cocktail", "wine", "beer", "mojito", "martini", "whiskey",
    "vodka", "rum", "tequila", "coffee", "tea", "juice", "soda", "water",
    "beverage", "iced",
)


# =============================================================================
# Outbox Event Types
# =============================================================================


class EventType:
    """Notification intents written to the outbox."""

    ORDER_READY: Final[str] = "ORDER_READY"
    ORDER_DELIVERED: Final[str] = "ORDER_DELIVERED"

    ALL: Final[list[str]] = [ORDER_READY, ORDER_DELIVERED]


# Order status transitions that notify the guest
NOTIFY_ON_STATUS: Final[dict[str, str]] = {
    OrderStatus.READY.value: EventType.ORDER_READY,
    OrderStatus.DELIVERED.value: EventType.ORDER_DELIVERED,
}


# =============================================================================
# Error Messages
# =============================================================================


class ErrorMessages:
    """Standardized error messages."""

    NOT_AUTHENTICATED: Final[str] = "Unauthorized"
    INVALID_TOKEN: Final[str] = "Invalid token"
    TOKEN_EXPIRED: Final[str] = "Token expired"
    NO_HOTEL_ACCESS: Final[str] = "Access denied to this hotel"
    ITEMS_NOT_IN_ORDER: Final[str] = "Some items do not belong to this order"
    INVALID_STATUS: Final[str] = "Invalid status"
    ITEM_IDS_REQUIRED: Final[str] = "itemIds is required and must not be empty"
    HOTEL_ID_REQUIRED: Final[str] = "hotel_id is required"
    CONCURRENT_UPDATE: Final[str] = "Order is being updated by another request, retry"
    UPDATE_FAILED: Final[str] = "Failed to update item status"
    RATE_LIMIT_EXCEEDED: Final[str] = "Too many requests. Try again later."
