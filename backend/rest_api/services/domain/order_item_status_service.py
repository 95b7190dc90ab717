"""
Order Item Status Domain Service.

Applies a per-item status change and reconciles the order's aggregate
status in one transaction:

    validate -> lock order -> write items -> merge -> promote -> queue notification -> commit

The order row is locked with NOWAIT and carries an optimistic version
column, so two requests racing on the same order cannot both commit a
decision taken from the same snapshot. The loser gets
ConcurrentUpdateError and may retry.
"""

from dataclasses import dataclass, field

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from shared.config.constants import (
    NOTIFY_ON_STATUS,
    ErrorMessages,
    OrderStatus,
    validate_item_status,
)
from shared.config.logging import orders_logger as logger, mask_phone
from shared.infrastructure.db import safe_commit
from rest_api.models import Order, OrderItem
from rest_api.models.base import utcnow
from rest_api.repositories import (
    HotelMembershipRepository,
    OrderItemRepository,
    OrderRepository,
)
from rest_api.services.events.outbox_service import write_order_notification
from rest_api.services.reconciliation import (
    EmptyMergeError,
    MergedItem,
    merge,
    promote,
    is_promotion,
)


# =============================================================================
# Domain exceptions
# =============================================================================


class OrderNotFoundError(Exception):
    """Order not found."""
    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order {order_id} not found")


class HotelAccessDeniedError(Exception):
    """Caller has no grant on the order's hotel."""
    def __init__(self, user_id: str, hotel_id: str):
        self.user_id = user_id
        self.hotel_id = hotel_id
        super().__init__(f"User {user_id} has no access to hotel {hotel_id}")


class InvalidStatusUpdateError(Exception):
    """Request body failed validation."""
    pass


class ItemOwnershipError(Exception):
    """Some requested items belong to another order."""
    def __init__(self, order_id: str, foreign_ids: list[str]):
        self.order_id = order_id
        self.foreign_ids = foreign_ids
        super().__init__(f"Items {foreign_ids} do not belong to order {order_id}")


class ConcurrentUpdateError(Exception):
    """The order is locked or changed by another request. Retryable."""
    def __init__(self, order_id: str, reason: str):
        self.order_id = order_id
        self.reason = reason
        super().__init__(f"Concurrent update on order {order_id}: {reason}")


# =============================================================================
# Result
# =============================================================================


@dataclass
class StatusUpdateResult:
    """What the endpoint reports back."""

    order: Order
    items: list[OrderItem] = field(default_factory=list)
    merged: list[MergedItem] = field(default_factory=list)
    previous_status: str | None = None
    missing_ids: list[str] = field(default_factory=list)

    @property
    def status_changed(self) -> bool:
        return is_promotion(self.previous_status, self.order.status)


def normalize_item_ids(item_ids: str | list[str] | None) -> list[str]:
    """Accept a single ID or a list; drop blanks and duplicates, keep order."""
    if item_ids is None:
        return []
    if isinstance(item_ids, str):
        item_ids = [item_ids]
    cleaned = [str(item_id).strip() for item_id in item_ids if item_id is not None]
    return list(dict.fromkeys(item_id for item_id in cleaned if item_id))


class OrderItemStatusService:
    """
    Domain service for item status updates.

    Only this service writes `order_items.status` and `orders.status`.
    """

    def __init__(self, db: Session):
        self._db = db
        self._orders = OrderRepository(db)
        self._items = OrderItemRepository(db)
        self._memberships = HotelMembershipRepository(db)

    def update_item_status(
        self,
        order_id: str,
        item_ids: str | list[str] | None,
        status: str | None,
        user_id: str,
        expected_version: int | None = None,
    ) -> StatusUpdateResult:
        """
        Update the status of some items of an order.

        Returns:
            StatusUpdateResult whose `order` reflects the persisted status.

        Raises:
            OrderNotFoundError: Unknown order
            HotelAccessDeniedError: Caller has no grant on the hotel
            InvalidStatusUpdateError: Bad status or empty item list
            ItemOwnershipError: Item IDs of another order
            ConcurrentUpdateError: Order locked or version mismatch
        """
        order = self._orders.find_by_id(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)

        if not self._memberships.has_grant(user_id, order.hotel_id):
            raise HotelAccessDeniedError(user_id, order.hotel_id)

        if not validate_item_status(status):
            raise InvalidStatusUpdateError(ErrorMessages.INVALID_STATUS)

        requested_ids = normalize_item_ids(item_ids)
        if not requested_ids:
            raise InvalidStatusUpdateError(ErrorMessages.ITEM_IDS_REQUIRED)

        order = self._lock_order(order_id, expected_version)

        found = self._items.find_by_ids(requested_ids)
        foreign = [item.id for item in found if item.order_id != order_id]
        if foreign:
            self._db.rollback()
            raise ItemOwnershipError(order_id, foreign)

        previous_status = order.status
        logger.info(
            "Updating item status",
            order_id=order_id,
            order_number=order.order_number,
            requested_status=status,
            item_count=len(requested_ids),
            current_order_status=previous_status,
        )

        write = self._items.write_statuses(requested_ids, status)
        if write.missing_ids:
            logger.warning(
                "Requested items not found in order_items, treating as snapshot-only",
                order_id=order_id,
                item_ids=write.missing_ids,
            )

        try:
            merged = merge(
                order_id=order_id,
                relational_items=self._items.list_for_order(order_id),
                just_updated=write.updated,
                json_items=order.items,
                requested_ids=write.missing_ids,
                requested_status=status,
                created_at=order.created_at,
            )
        except EmptyMergeError as e:
            logger.error(
                "Order has no items, leaving it unchanged",
                order_id=order_id,
                order_number=order.order_number,
                relational_count=e.relational_count,
                snapshot_count=e.snapshot_count,
            )
            self._db.rollback()
            return StatusUpdateResult(
                order=order,
                previous_status=previous_status,
                missing_ids=write.missing_ids,
            )

        new_status = promote(previous_status, merged)
        if is_promotion(previous_status, new_status):
            self._apply_order_status(order, previous_status, new_status)

        # Bumps the version even when only items changed
        order.updated_at = utcnow()
        self._commit(order_id)

        return StatusUpdateResult(
            order=order,
            items=write.updated,
            merged=merged,
            previous_status=previous_status,
            missing_ids=write.missing_ids,
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _lock_order(self, order_id: str, expected_version: int | None) -> Order:
        try:
            order = self._orders.lock_for_update(order_id)
        except OperationalError as e:
            self._db.rollback()
            raise ConcurrentUpdateError(order_id, "order row is locked") from e

        if order is None:
            self._db.rollback()
            raise OrderNotFoundError(order_id)

        if expected_version is not None and order.version != expected_version:
            current_version = order.version
            self._db.rollback()
            raise ConcurrentUpdateError(
                order_id,
                f"expected version {expected_version}, found {current_version}",
            )
        return order

    def _apply_order_status(self, order: Order, previous: str, new_status: str) -> None:
        order.status = new_status
        if new_status == OrderStatus.DELIVERED.value:
            order.delivered_at = utcnow()

        logger.info(
            "Order status promoted",
            order_id=order.id,
            order_number=order.order_number,
            previous_status=previous,
            new_status=new_status,
        )

        event_type = NOTIFY_ON_STATUS.get(new_status)
        if event_type is None:
            return
        if not (order.guest_phone and order.room_number):
            logger.info(
                "Guest notification skipped: missing phone or room",
                order_id=order.id,
                event_type=event_type,
            )
            return

        write_order_notification(self._db, order, event_type)
        logger.info(
            "Guest notification queued",
            order_id=order.id,
            event_type=event_type,
            guest_phone=mask_phone(order.guest_phone),
        )

    def _commit(self, order_id: str) -> None:
        try:
            safe_commit(self._db)
        except StaleDataError as e:
            raise ConcurrentUpdateError(order_id, "order changed during update") from e
        except OperationalError as e:
            if _is_lock_conflict(e):
                raise ConcurrentUpdateError(order_id, "lock conflict on commit") from e
            raise


def _is_lock_conflict(error: OperationalError) -> bool:
    message = str(error.orig).lower() if error.orig is not None else str(error).lower()
    return any(marker in message for marker in ("lock", "could not serialize", "deadlock"))
