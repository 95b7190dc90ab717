"""
Legacy item materializer.

Orders can describe their line items twice: as `order_items` rows and as
the JSON snapshot in `Order.items`. This module turns both into a single
list of MergedItem values, each tagged with the source that owns it:

- AUTHORITATIVE: built from an `order_items` row.
- SYNTHESIZED: built from a snapshot entry that has no row.

Precedence when merging:
1. rows written by the current request
2. every other row of the order
3. snapshot entries whose normalized name matches no row

Nothing here touches the database.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Sequence

from shared.config.constants import OrderStatus, normalize_status
from shared.config.logging import orders_logger as logger


class ItemSource(str, Enum):
    """Which representation owns a merged item."""
    AUTHORITATIVE = "authoritative"
    SYNTHESIZED = "synthesized"


class EmptyMergeError(Exception):
    """The merge produced no items for an order that must have some."""

    def __init__(self, order_id: str, relational_count: int, snapshot_count: int):
        self.order_id = order_id
        self.relational_count = relational_count
        self.snapshot_count = snapshot_count
        super().__init__(
            f"Order {order_id} has no items "
            f"(relational={relational_count}, snapshot={snapshot_count})"
        )


@dataclass(frozen=True)
class LegacyItem:
    """
    One snapshot entry, normalized across the historical shapes:

        {"id", "name", "price", "quantity", "specialInstructions"}
        {"menuItem": {"id", "name", "price"}, "quantity", "specialInstructions"}
        {"menu_item_id", "menu_item_name", "quantity", "unit_price", "total_price"}
    """

    index: int
    item_id: str | None
    menu_item_id: str | None
    name: str | None
    quantity: int
    unit_price: float
    total_price: float
    special_instructions: str | None
    department: str | None
    category: str | None
    service_type: str | None
    # Status recorded in the snapshot itself, if any
    status: str | None
    # Every identifier a caller may have used for this entry
    aliases: frozenset[str]

    @classmethod
    def parse(cls, raw: dict[str, Any], index: int) -> "LegacyItem":
        menu_item = raw.get("menuItem") or {}
        if not isinstance(menu_item, dict):
            menu_item = {}

        own_id = _as_str(raw.get("id"))
        nested_id = _as_str(menu_item.get("id"))
        flat_id = _as_str(raw.get("menu_item_id"))

        name = menu_item.get("name") or raw.get("name") or raw.get("menu_item_name")
        quantity = _as_int(raw.get("quantity")) or 1
        unit_price = _as_float(menu_item.get("price") or raw.get("price") or raw.get("unit_price"))
        total_price = _as_float(raw.get("total_price")) or unit_price * quantity

        return cls(
            index=index,
            item_id=own_id or nested_id or flat_id,
            menu_item_id=nested_id or flat_id or own_id,
            name=name,
            quantity=quantity,
            unit_price=unit_price,
            total_price=total_price,
            special_instructions=raw.get("specialInstructions") or raw.get("special_instructions"),
            department=raw.get("department") or menu_item.get("department"),
            category=menu_item.get("category") or raw.get("category"),
            service_type=raw.get("serviceType") or raw.get("service_type") or menu_item.get("serviceType"),
            status=raw.get("status"),
            aliases=frozenset(alias for alias in (own_id, nested_id, flat_id) if alias),
        )


@dataclass(frozen=True)
class MergedItem:
    """Request-scoped view of one logical line item. Never persisted."""

    id: str
    order_id: str
    menu_item_id: str | None
    menu_item_name: str
    quantity: int
    unit_price: float
    total_price: float
    special_instructions: str | None
    status: str
    department: str | None
    source: ItemSource
    created_at: datetime | None = None
    category: str | None = None
    service_type: str | None = None

    @property
    def is_authoritative(self) -> bool:
        return self.source is ItemSource.AUTHORITATIVE

    @classmethod
    def from_row(cls, row: Any) -> "MergedItem":
        """Wrap an `order_items` row (or any object with the same attributes)."""
        return cls(
            id=row.id,
            order_id=row.order_id,
            menu_item_id=row.menu_item_id,
            menu_item_name=row.menu_item_name,
            quantity=row.quantity or 1,
            unit_price=float(row.unit_price or 0),
            total_price=float(row.total_price or 0),
            special_instructions=row.special_instructions,
            status=normalize_status(row.status),
            department=row.department,
            source=ItemSource.AUTHORITATIVE,
            created_at=row.created_at,
        )

    @classmethod
    def from_snapshot(
        cls,
        entry: LegacyItem,
        order_id: str,
        status: str,
        created_at: datetime | None = None,
    ) -> "MergedItem":
        return cls(
            id=entry.item_id or f"jsonb-{order_id}-{entry.index}",
            order_id=order_id,
            menu_item_id=entry.menu_item_id,
            menu_item_name=entry.name or "Unknown Item",
            quantity=entry.quantity,
            unit_price=entry.unit_price,
            total_price=entry.total_price,
            special_instructions=entry.special_instructions,
            status=status,
            department=entry.department,
            source=ItemSource.SYNTHESIZED,
            created_at=created_at,
            category=entry.category,
            service_type=entry.service_type,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "menu_item_id": self.menu_item_id,
            "menu_item_name": self.menu_item_name,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "total_price": self.total_price,
            "special_instructions": self.special_instructions,
            "status": self.status,
            "department": self.department,
            "source": self.source.value,
            "created_at": self.created_at,
        }


# =============================================================================
# Helpers
# =============================================================================


def normalize_name(name: str | None) -> str:
    """Join key between rows and snapshot entries: trimmed, casefolded, single-spaced."""
    if not name:
        return ""
    return " ".join(str(name).split()).casefold()


def parse_snapshot(raw_items: Any) -> list[LegacyItem]:
    """Parse `Order.items`; anything that is not a list of dicts yields nothing."""
    if not isinstance(raw_items, list):
        return []
    return [
        LegacyItem.parse(raw, index)
        for index, raw in enumerate(raw_items)
        if isinstance(raw, dict)
    ]


def _as_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _unique_id(candidate: str, taken: set[str], order_id: str, index: int) -> str:
    if candidate not in taken:
        return candidate
    return f"jsonb-{order_id}-{index}"


# =============================================================================
# Merge
# =============================================================================


def synthesize_snapshot(
    order_id: str,
    snapshot: Iterable[LegacyItem],
    created_at: datetime | None = None,
) -> list[MergedItem]:
    """
    Snapshot-only view of an order, for read paths. Entries keep their recorded status, else pending.

    Ids match what `merge` assigns to the same entries when the order has no rows.
    """
    items: list[MergedItem] = []
    taken: set[str] = set()
    for entry in snapshot:
        item = MergedItem.from_snapshot(entry, order_id, normalize_status(entry.status), created_at)
        item = replace(item, id=_unique_id(item.id, taken, order_id, entry.index))
        taken.add(item.id)
        items.append(item)
    return items


def merge(
    order_id: str,
    relational_items: Sequence[Any],
    just_updated: Sequence[Any],
    json_items: Any,
    requested_ids: Iterable[str],
    requested_status: str,
    created_at: datetime | None = None,
) -> list[MergedItem]:
    """
    Merge rows and snapshot entries into one deduplicated list.

    Args:
        order_id: Order being reconciled
        relational_items: All `order_items` rows of the order (may be stale)
        just_updated: Rows written by the current request
        json_items: Raw `Order.items` value
        requested_ids: Item IDs named by the caller
        requested_status: Status the caller asked for
        created_at: Timestamp given to synthesized items

    Returns:
        Merged items: updated rows, other rows, then unmatched snapshot entries.

    Raises:
        EmptyMergeError: If both sources are empty.
    """
    merged: list[MergedItem] = []
    seen_ids: set[str] = set()

    for row in just_updated:
        if row.id in seen_ids:
            continue
        merged.append(MergedItem.from_row(row))
        seen_ids.add(row.id)

    for row in relational_items:
        if row.id in seen_ids:
            continue
        merged.append(MergedItem.from_row(row))
        seen_ids.add(row.id)

    row_names = {normalize_name(item.menu_item_name) for item in merged}
    requested = set(requested_ids)
    snapshot = parse_snapshot(json_items)

    for entry in snapshot:
        if entry.name and normalize_name(entry.name) in row_names:
            continue

        item = MergedItem.from_snapshot(entry, order_id, OrderStatus.PENDING.value, created_at)
        item_id = _unique_id(item.id, seen_ids, order_id, entry.index)

        # Callers may name a raw snapshot id or the id the dashboards show
        touched = bool(entry.aliases & requested) or item_id in requested
        # Untouched snapshot entries are pending whatever status was requested
        status = requested_status if touched else OrderStatus.PENDING.value

        item = replace(item, id=item_id, status=status)
        seen_ids.add(item.id)
        merged.append(item)

        if touched:
            logger.info(
                "Snapshot-only item updated",
                order_id=order_id,
                item_id=item.id,
                item_name=item.menu_item_name,
                status=status,
            )
        else:
            logger.debug(
                "Snapshot-only item defaulted to pending",
                order_id=order_id,
                item_id=item.id,
                item_name=item.menu_item_name,
            )

    if not merged:
        raise EmptyMergeError(order_id, len(relational_items), len(snapshot))

    return merged
