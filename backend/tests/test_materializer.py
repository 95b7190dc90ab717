"""
Tests for the legacy item materializer (merge of rows and JSON snapshot).
"""

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from rest_api.services.reconciliation import (
    EmptyMergeError,
    ItemSource,
    LegacyItem,
    merge,
    normalize_name,
    parse_snapshot,
    synthesize_snapshot,
)


CREATED = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


def row(item_id, name, status="pending", department=None, order_id="order-1"):
    """Stand-in for an order_items row."""
    return SimpleNamespace(
        id=item_id,
        order_id=order_id,
        menu_item_id=f"menu-{item_id}",
        menu_item_name=name,
        quantity=1,
        unit_price=10.0,
        total_price=10.0,
        special_instructions=None,
        status=status,
        department=department,
        created_at=CREATED,
    )


class TestLegacyItemParsing:
    """Snapshot entries come in three historical shapes."""

    def test_flat_shape(self):
        entry = LegacyItem.parse(
            {"id": "abc", "name": "Club Sandwich", "price": 12.5, "quantity": 2}, 0
        )
        assert entry.item_id == "abc"
        assert entry.name == "Club Sandwich"
        assert entry.unit_price == 12.5
        assert entry.total_price == 25.0
        assert entry.quantity == 2

    def test_nested_menu_item_shape(self):
        entry = LegacyItem.parse(
            {
                "menuItem": {"id": "m-7", "name": "Mojito", "price": 9, "category": "Cocktails"},
                "quantity": 1,
                "specialInstructions": "no sugar",
            },
            3,
        )
        assert entry.item_id == "m-7"
        assert entry.menu_item_id == "m-7"
        assert entry.name == "Mojito"
        assert entry.category == "Cocktails"
        assert entry.special_instructions == "no sugar"
        assert entry.index == 3

    def test_relational_like_shape(self):
        entry = LegacyItem.parse(
            {"menu_item_id": "m-1", "menu_item_name": "Soup", "unit_price": 6, "total_price": 18, "quantity": 3},
            0,
        )
        assert entry.item_id == "m-1"
        assert entry.name == "Soup"
        assert entry.total_price == 18

    def test_quantity_defaults_to_one(self):
        entry = LegacyItem.parse({"name": "Toast", "price": "4.50"}, 0)
        assert entry.quantity == 1
        assert entry.unit_price == 4.5

    def test_aliases_include_every_identifier(self):
        entry = LegacyItem.parse({"id": "own", "menuItem": {"id": "nested"}}, 0)
        assert entry.aliases == frozenset({"own", "nested"})

    def test_non_list_snapshot_is_empty(self):
        assert parse_snapshot(None) == []
        assert parse_snapshot({"name": "Burger"}) == []
        assert parse_snapshot(["not-a-dict", {"name": "Burger"}])[0].index == 1


class TestNormalizeName:
    def test_trims_casefolds_and_collapses_spaces(self):
        assert normalize_name("  Grilled   SALMON ") == "grilled salmon"

    def test_empty(self):
        assert normalize_name(None) == ""
        assert normalize_name("") == ""


class TestMerge:
    """merge() precedence and defaults."""

    def test_rows_only(self):
        rows = [row("a", "Burger"), row("b", "Fries")]
        merged = merge("order-1", rows, [], None, [], "ready")

        assert [item.id for item in merged] == ["a", "b"]
        assert all(item.source is ItemSource.AUTHORITATIVE for item in merged)

    def test_just_updated_rows_take_precedence_over_stale_copies(self):
        stale = [row("a", "Burger", status="pending"), row("b", "Fries")]
        fresh = [row("a", "Burger", status="ready")]

        merged = merge("order-1", stale, fresh, None, ["a"], "ready")

        assert [item.id for item in merged] == ["a", "b"]
        assert merged[0].status == "ready"

    def test_counts_rows_plus_unmatched_snapshot_entries(self):
        rows = [row("a", "Burger"), row("b", "Fries")]
        snapshot = [
            {"id": "x1", "name": "burger"},  # matches row "Burger" by name
            {"id": "x2", "name": "Mojito"},
            {"id": "x3", "name": "Espresso"},
        ]

        merged = merge("order-1", rows, [], snapshot, [], "ready")

        assert len(merged) == 4
        assert len({item.id for item in merged}) == 4
        assert [item.source for item in merged[2:]] == [ItemSource.SYNTHESIZED] * 2

    def test_name_match_ignores_case_and_spacing(self):
        rows = [row("a", "Grilled  Salmon")]
        merged = merge("order-1", rows, [], [{"name": " grilled salmon "}], [], "ready")
        assert len(merged) == 1

    def test_untouched_snapshot_entry_is_pending(self):
        rows = [row("a", "Burger", status="ready")]
        snapshot = [{"id": "x2", "name": "Mojito", "status": "ready"}]

        merged = merge("order-1", rows, rows, snapshot, ["a"], "ready")

        assert merged[1].status == "pending"

    def test_requested_snapshot_entry_gets_requested_status(self):
        snapshot = [{"menuItem": {"id": "m-9", "name": "Caesar Salad", "price": 11}}]

        merged = merge("order-1", [], [], snapshot, ["m-9"], "ready", created_at=CREATED)

        assert len(merged) == 1
        item = merged[0]
        assert item.id == "m-9"
        assert item.status == "ready"
        assert item.source is ItemSource.SYNTHESIZED
        assert item.created_at == CREATED
        assert item.department is None

    def test_entry_without_id_gets_positional_id(self):
        merged = merge("order-1", [], [], [{"name": "Soup"}, {"name": "Cake"}], [], "ready")
        assert [item.id for item in merged] == ["jsonb-order-1-0", "jsonb-order-1-1"]

    def test_colliding_snapshot_id_is_disambiguated(self):
        rows = [row("dup", "Burger")]
        merged = merge("order-1", rows, [], [{"id": "dup", "name": "Wine"}], [], "ready")
        assert [item.id for item in merged] == ["dup", "jsonb-order-1-0"]

    def test_positional_id_can_be_requested(self):
        snapshot = [{"name": "Soup"}, {"name": "Cake"}]

        merged = merge("order-1", [], [], snapshot, ["jsonb-order-1-1"], "ready")

        assert [(item.id, item.status) for item in merged] == [
            ("jsonb-order-1-0", "pending"),
            ("jsonb-order-1-1", "ready"),
        ]

    def test_disambiguated_id_can_be_requested(self):
        snapshot = [{"id": "dup", "name": "Soup"}, {"id": "dup", "name": "Cake"}]

        merged = merge("order-1", [], [], snapshot, ["jsonb-order-1-1"], "preparing")

        assert [(item.id, item.status) for item in merged] == [
            ("dup", "pending"),
            ("jsonb-order-1-1", "preparing"),
        ]

    def test_ids_match_snapshot_view(self):
        snapshot = [{"name": "Soup"}, {"id": "dup", "name": "Cake"}, {"id": "dup", "name": "Tea"}]

        merged = merge("order-1", [], [], snapshot, [], "ready")
        shown = synthesize_snapshot("order-1", parse_snapshot(snapshot))

        assert [item.id for item in merged] == [item.id for item in shown]

    def test_unnamed_entry_is_unknown_item(self):
        merged = merge("order-1", [], [], [{"id": "z"}], [], "ready")
        assert merged[0].menu_item_name == "Unknown Item"

    def test_empty_merge_raises(self):
        with pytest.raises(EmptyMergeError) as exc_info:
            merge("order-1", [], [], [], ["a"], "ready")
        assert exc_info.value.order_id == "order-1"
        assert exc_info.value.relational_count == 0

    def test_rows_without_status_count_as_pending(self):
        merged = merge("order-1", [row("a", "Burger", status=None)], [], None, [], "ready")
        assert merged[0].status == "pending"


class TestSynthesizeSnapshot:
    def test_keeps_recorded_status(self):
        items = synthesize_snapshot(
            "order-1",
            parse_snapshot([{"id": "a", "name": "Beer", "status": "ready"}, {"id": "b", "name": "Wine"}]),
        )
        assert [item.status for item in items] == ["ready", "pending"]

    def test_carries_service_type(self):
        items = synthesize_snapshot("order-1", parse_snapshot([{"name": "Club", "serviceType": "bar"}]))
        assert items[0].service_type == "bar"
