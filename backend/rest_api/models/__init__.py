"""
SQLAlchemy ORM Models Package.

Models are organized into domain-specific modules:
- base: Base class and mixins
- hotel: Hotel, User, HotelUser
- order: Order, OrderItem
- outbox: OutboxEvent, OutboxStatus
"""

# Base classes
from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin

# Hotels and staff
from .hotel import Hotel, User, HotelUser

# Orders
from .order import Order, OrderItem

# Outbox
from .outbox import OutboxEvent, OutboxStatus

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "Hotel",
    "User",
    "HotelUser",
    "Order",
    "OrderItem",
    "OutboxEvent",
    "OutboxStatus",
]
