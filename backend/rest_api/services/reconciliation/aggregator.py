"""
Department status aggregator.

Computes one status label for a department from that department's items.
The label is derived on every read and never stored.
"""

from typing import Iterable, Protocol

from shared.config.constants import OrderStatus, normalize_status


class HasStatus(Protocol):
    status: str | None
    department: str | None


_READY_OR_DELIVERED = frozenset({OrderStatus.READY.value, OrderStatus.DELIVERED.value})


def department_status(items: Iterable[HasStatus]) -> str:
    """
    Most advanced status that all items agree on.

    - no items -> pending
    - all delivered -> delivered
    - all ready or delivered -> ready
    - any preparing -> preparing
    - otherwise -> pending

    Items with no status count as pending.
    """
    statuses = [normalize_status(item.status) for item in items]

    if not statuses:
        return OrderStatus.PENDING.value
    if all(status == OrderStatus.DELIVERED.value for status in statuses):
        return OrderStatus.DELIVERED.value
    if all(status in _READY_OR_DELIVERED for status in statuses):
        return OrderStatus.READY.value
    if any(status == OrderStatus.PREPARING.value for status in statuses):
        return OrderStatus.PREPARING.value
    return OrderStatus.PENDING.value

