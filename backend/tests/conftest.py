"""
Pytest configuration and fixtures for backend tests.
"""

import os

# Must be set before the app (and its settings/engine) is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("OUTBOX_PROCESSOR_ENABLED", "false")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "test")

import itertools
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rest_api.main import app
from shared.infrastructure.db import get_db
from shared.security.auth import sign_access_token
from rest_api.models import Base, Hotel, HotelUser, Order, OrderItem, User


_order_counter = itertools.count(1001)


# SQLite in-memory database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    Uses SQLite in-memory for isolation.
    """
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory(db_session):
    """Factory for sessions opened by background workers (same database as db_session)."""
    return TestingSessionLocal


@pytest.fixture(scope="function")
def client(db_session):
    """
    Create a test client with database session override.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# Seed data
# =============================================================================


@pytest.fixture
def seed_hotel(db_session):
    hotel = Hotel(name="Test Hotel", slug="test-hotel")
    db_session.add(hotel)
    db_session.commit()
    return hotel


@pytest.fixture
def other_hotel(db_session):
    hotel = Hotel(name="Other Hotel", slug="other-hotel")
    db_session.add(hotel)
    db_session.commit()
    return hotel


def _create_user(db_session, email, role="staff", department=None, hotels=()):
    user = User(email=email, full_name=email.split("@")[0], role=role, department=department)
    db_session.add(user)
    db_session.flush()
    for hotel in hotels:
        db_session.add(HotelUser(hotel_id=hotel.id, user_id=user.id, role=role))
    db_session.commit()
    return user


@pytest.fixture
def kitchen_user(db_session, seed_hotel):
    """Kitchen staff with a grant on the test hotel."""
    return _create_user(db_session, "cook@test.com", department="kitchen", hotels=[seed_hotel])


@pytest.fixture
def bar_user(db_session, seed_hotel):
    """Bar staff with a grant on the test hotel."""
    return _create_user(db_session, "bartender@test.com", department="bar", hotels=[seed_hotel])


@pytest.fixture
def both_user(db_session, seed_hotel):
    """Staff working kitchen and bar."""
    return _create_user(db_session, "floater@test.com", department="both", hotels=[seed_hotel])


@pytest.fixture
def manager_user(db_session, seed_hotel):
    return _create_user(db_session, "manager@test.com", role="manager", hotels=[seed_hotel])


@pytest.fixture
def outsider_user(db_session, other_hotel):
    """Kitchen staff of another hotel."""
    return _create_user(db_session, "outsider@test.com", department="kitchen", hotels=[other_hotel])


def bearer(user) -> dict[str, str]:
    return {"Authorization": f"Bearer {sign_access_token(user.id, user.email)}"}


@pytest.fixture
def kitchen_headers(kitchen_user):
    return bearer(kitchen_user)


@pytest.fixture
def bar_headers(bar_user):
    return bearer(bar_user)


@pytest.fixture
def outsider_headers(outsider_user):
    return bearer(outsider_user)


# =============================================================================
# Orders
# =============================================================================


@pytest.fixture
def make_order(db_session, seed_hotel):
    """
    Factory for orders.

    Usage:
        order = make_order(rows=[{"name": "Burger", "status": "ready"}])
        order = make_order(snapshot=[{"id": "x", "name": "Mojito", "price": 9}])
    """

    def _make(
        rows=None,
        snapshot=None,
        status="pending",
        hotel=None,
        guest_phone="+15551234567",
        room_number="101",
        created_at=None,
        delivered_at=None,
        discount_amount=0,
    ):
        created_at = created_at or datetime.now(timezone.utc)
        order = Order(
            order_number=f"ORD-{next(_order_counter)}",
            hotel_id=(hotel or seed_hotel).id,
            room_number=room_number,
            guest_name="Guest",
            guest_phone=guest_phone,
            status=status,
            items=snapshot,
            subtotal=0,
            discount_amount=discount_amount,
            total_amount=0,
            created_at=created_at,
            delivered_at=delivered_at,
        )
        db_session.add(order)
        db_session.flush()

        for index, row in enumerate(rows or []):
            quantity = row.get("quantity", 1)
            price = row.get("price", 10.0)
            extra = {"id": row["id"]} if row.get("id") else {}
            db_session.add(
                OrderItem(
                    **extra,
                    order_id=order.id,
                    menu_item_id=row.get("menu_item_id", f"menu-{index}"),
                    menu_item_name=row["name"],
                    quantity=quantity,
                    unit_price=price,
                    total_price=price * quantity,
                    status=row.get("status", "pending"),
                    department=row.get("department"),
                    created_at=created_at + timedelta(seconds=index),
                )
            )
        db_session.commit()
        db_session.refresh(order)
        return order

    return _make


@pytest.fixture
def item_ids(db_session):
    """IDs of an order's rows, in creation order."""

    def _ids(order):
        return [item.id for item in sorted(order.order_items, key=lambda item: item.created_at)]

    return _ids
