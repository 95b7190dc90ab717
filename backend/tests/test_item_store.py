"""
Tests for the order item store (OrderItemRepository).
"""

from rest_api.models import OrderItem
from rest_api.repositories import OrderItemRepository, OrderRepository, OrderFilters


class TestOrderItemRepository:
    def test_write_statuses_updates_existing_rows(self, db_session, make_order, item_ids):
        order = make_order(rows=[{"name": "Burger"}, {"name": "Fries"}])
        first, second = item_ids(order)

        result = OrderItemRepository(db_session).write_statuses([first], "ready")

        assert [item.id for item in result.updated] == [first]
        assert result.missing_ids == []
        assert db_session.get(OrderItem, first).status == "ready"
        assert db_session.get(OrderItem, second).status == "pending"

    def test_write_statuses_reports_missing_ids(self, db_session, make_order, item_ids):
        order = make_order(rows=[{"name": "Burger"}])
        (existing,) = item_ids(order)

        result = OrderItemRepository(db_session).write_statuses([existing, "legacy-1", "legacy-1"], "preparing")

        assert len(result.updated) == 1
        assert result.missing_ids == ["legacy-1"]

    def test_write_statuses_does_not_commit(self, db_session, make_order, item_ids):
        order = make_order(rows=[{"name": "Burger"}])
        (existing,) = item_ids(order)

        OrderItemRepository(db_session).write_statuses([existing], "ready")
        db_session.rollback()

        assert db_session.get(OrderItem, existing).status == "pending"

    def test_list_for_orders_groups_by_order(self, db_session, make_order):
        first = make_order(rows=[{"name": "Burger"}, {"name": "Beer"}])
        second = make_order(rows=[{"name": "Wine"}])
        empty = make_order(snapshot=[{"name": "Soup"}])

        grouped = OrderItemRepository(db_session).list_for_orders([first.id, second.id, empty.id])

        assert [item.menu_item_name for item in grouped[first.id]] == ["Burger", "Beer"]
        assert len(grouped[second.id]) == 1
        assert grouped.get(empty.id, []) == []

    def test_list_for_order(self, db_session, make_order):
        order = make_order(rows=[{"name": "Burger"}, {"name": "Beer"}])
        assert len(OrderItemRepository(db_session).list_for_order(order.id)) == 2


class TestOrderRepository:
    def test_find_all_filters_by_hotel(self, db_session, make_order, other_hotel):
        mine = make_order(rows=[{"name": "Burger"}])
        make_order(rows=[{"name": "Burger"}], hotel=other_hotel)

        orders = OrderRepository(db_session).find_all(OrderFilters(hotel_id=mine.hotel_id))

        assert [order.id for order in orders] == [mine.id]

    def test_lock_for_update_returns_order(self, db_session, make_order):
        order = make_order(rows=[{"name": "Burger"}])
        locked = OrderRepository(db_session).lock_for_update(order.id)
        assert locked.id == order.id

    def test_version_starts_at_one_and_bumps(self, db_session, make_order):
        order = make_order(rows=[{"name": "Burger"}])
        assert order.version == 1

        order.status = "ready"
        db_session.commit()

        assert order.version == 2
