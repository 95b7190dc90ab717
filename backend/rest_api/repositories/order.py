"""
Order and OrderItem repositories.

OrderItemRepository is the item store: plain reads and status writes on
`order_items`, no business rules.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Sequence
from sqlalchemy import Select, select

from rest_api.models import Order, OrderItem
from .base import BaseRepository, RepositoryFilters


@dataclass
class OrderFilters(RepositoryFilters):
    """Filters specific to orders."""

    hotel_id: str | None = None
    created_since: datetime | None = None
    statuses: list[str] | None = None


class OrderRepository(BaseRepository[Order]):
    """Repository for Order entities."""

    @property
    def model(self) -> type[Order]:
        return Order

    def lock_for_update(self, order_id: str) -> Order | None:
        """
        Re-read the order holding a row lock until the transaction ends.

        Uses NOWAIT: a concurrent holder makes the database raise
        immediately instead of queueing the request.
        """
        query = (
            select(Order)
            .where(Order.id == order_id)
            .with_for_update(nowait=True)
            .execution_options(populate_existing=True)
        )
        return self._db.scalar(query)

    def find_all(self, filters: OrderFilters | None = None) -> Sequence[Order]:
        """Find orders matching filters, newest first."""
        filters = filters or OrderFilters()
        query: Select = select(Order)

        if filters.hotel_id:
            query = query.where(Order.hotel_id == filters.hotel_id)
        if filters.created_since is not None:
            query = query.where(Order.created_at >= filters.created_since)
        if filters.statuses:
            query = query.where(Order.status.in_(filters.statuses))

        query = query.order_by(Order.created_at.desc()).offset(filters.offset).limit(filters.limit)
        return self._db.execute(query).scalars().all()


@dataclass
class ItemWriteResult:
    """Outcome of a batch status write."""

    updated: list[OrderItem] = field(default_factory=list)
    # Requested IDs with no row in order_items
    missing_ids: list[str] = field(default_factory=list)


class OrderItemRepository(BaseRepository[OrderItem]):
    """
    Item store for per-item fulfillment status.

    Writes are flushed but never committed, so a failure anywhere in the
    caller's transaction discards the whole batch.
    """

    @property
    def model(self) -> type[OrderItem]:
        return OrderItem

    def list_for_order(self, order_id: str) -> list[OrderItem]:
        query = (
            select(OrderItem)
            .where(OrderItem.order_id == order_id)
            .order_by(OrderItem.created_at, OrderItem.id)
        )
        return list(self._db.execute(query).scalars().all())

    def list_for_orders(self, order_ids: list[str]) -> dict[str, list[OrderItem]]:
        """Batch-load items for many orders in one query."""
        grouped: dict[str, list[OrderItem]] = defaultdict(list)
        if not order_ids:
            return grouped

        query = (
            select(OrderItem)
            .where(OrderItem.order_id.in_(order_ids))
            .order_by(OrderItem.created_at, OrderItem.id)
        )
        for item in self._db.execute(query).scalars().all():
            grouped[item.order_id].append(item)
        return grouped

    def write_statuses(self, item_ids: list[str], status: str) -> ItemWriteResult:
        """
        Set `status` on every existing row among `item_ids`.

        IDs without a row are reported in `missing_ids` and skipped.
        """
        rows = self.find_by_ids(item_ids)
        found = {row.id for row in rows}

        result = ItemWriteResult(
            missing_ids=[item_id for item_id in dict.fromkeys(item_ids) if item_id not in found],
        )
        for row in rows:
            row.status = status
            result.updated.append(row)

        if result.updated:
            self._db.flush()
        return result
