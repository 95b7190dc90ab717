"""
Order status promoter.

Decides the guest-visible order status from the merged items of both
departments. It only ever advances the status to `ready` or `delivered`:
`pending` and `preparing` are never derived, and `cancelled` is never
overwritten.
"""

from typing import Iterable

from shared.config.constants import OrderStatus, compare_status, normalize_status, status_position
from shared.config.logging import orders_logger as logger

from .aggregator import HasStatus


def _target_status(statuses: list[str]) -> str | None:
    if not statuses:
        return None
    if all(status == OrderStatus.DELIVERED.value for status in statuses):
        return OrderStatus.DELIVERED.value
    if all(status in (OrderStatus.READY.value, OrderStatus.DELIVERED.value) for status in statuses):
        return OrderStatus.READY.value
    return None


def promote(current_status: str | None, merged_items: Iterable[HasStatus]) -> str:
    """
    Return the status to persist; equal to `current_status` means no change.

    Monotonic: the returned status never sorts before the current one.
    """
    current = normalize_status(current_status)
    if current == OrderStatus.CANCELLED.value:
        return current

    target = _target_status([normalize_status(item.status) for item in merged_items])
    if target is None:
        return current

    # Values outside the enum compare as pending so the order can still progress
    baseline = current
    if status_position(current) is None:
        logger.warning("Order has unknown status, treating as pending", status=current)
        baseline = OrderStatus.PENDING.value

    if compare_status(target, baseline) > 0:
        return target
    return current


def is_promotion(previous: str | None, new: str | None) -> bool:
    return normalize_status(previous) != normalize_status(new)
