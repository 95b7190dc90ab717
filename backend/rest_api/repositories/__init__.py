"""
Repository Pattern implementation.
Centralizes data access; repositories flush but never commit.

Usage:
    from rest_api.repositories import OrderItemRepository

    store = OrderItemRepository(db)
    result = store.write_statuses(["item-1", "item-2"], "ready")
"""

from .base import BaseRepository, RepositoryFilters
from .order import (
    OrderRepository,
    OrderFilters,
    OrderItemRepository,
    ItemWriteResult,
)
from .hotel import UserRepository, HotelMembershipRepository

__all__ = [
    # Base
    "BaseRepository",
    "RepositoryFilters",
    # Orders
    "OrderRepository",
    "OrderFilters",
    "OrderItemRepository",
    "ItemWriteResult",
    # Hotels
    "UserRepository",
    "HotelMembershipRepository",
]
