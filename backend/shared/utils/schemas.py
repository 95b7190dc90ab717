"""
Shared Pydantic schemas used across the application.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Common Types
# =============================================================================

DepartmentName = Literal["kitchen", "bar"]


class ErrorResponse(BaseModel):
    """Body of unexpected-failure responses."""

    error: str
    details: str | None = None


# =============================================================================
# Order Item Status Update
# =============================================================================


class ItemStatusUpdateRequest(BaseModel):
    """
    Body of PATCH /api/orders/{order_id}/items/status.

    Fields are loosely typed: a missing status or empty itemIds is
    reported by the service as 400, not as a 422 schema error.
    """

    model_config = ConfigDict(populate_by_name=True)

    item_ids: str | list[str] | None = Field(default=None, alias="itemIds")
    status: str | None = None
    # Optimistic check: reject with 409 when the order moved on
    expected_version: int | None = Field(default=None, alias="expectedVersion")


class OrderOutput(BaseModel):
    """Order as seen by staff clients."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    order_number: str
    hotel_id: str
    room_number: str | None = None
    guest_name: str | None = None
    guest_phone: str | None = None
    status: str
    subtotal: float = 0
    discount_amount: float = 0
    total_amount: float = 0
    version: int
    created_at: datetime
    updated_at: datetime | None = None
    delivered_at: datetime | None = None


class OrderItemOutput(BaseModel):
    """One order_items row."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    order_id: str
    menu_item_id: str | None = None
    menu_item_name: str
    quantity: int
    unit_price: float
    total_price: float
    special_instructions: str | None = None
    status: str
    department: str | None = None
    created_at: datetime
    updated_at: datetime | None = None


class ItemStatusUpdateResponse(BaseModel):
    """Persisted order plus the items this request wrote."""

    order: OrderOutput
    items: list[OrderItemOutput]


# =============================================================================
# Department Dashboards
# =============================================================================


class DepartmentItemOutput(BaseModel):
    """Item shown on a kitchen or bar dashboard (row or snapshot entry)."""

    id: str
    menu_item_id: str | None = None
    menu_item_name: str
    quantity: int
    unit_price: float
    total_price: float
    special_instructions: str | None = None
    status: str
    department: str | None = None
    source: Literal["authoritative", "synthesized"]


class DepartmentOrderOutput(BaseModel):
    """An order restricted to one department's items."""

    id: str
    order_number: str
    room_number: str | None = None
    guest_name: str | None = None
    order_status: str
    department_status: str
    items: list[DepartmentItemOutput]
    item_count: int
    subtotal: float
    discount_amount: float
    total_amount: float
    created_at: datetime
    minutes_waiting: int
    is_urgent: bool


class DepartmentCounts(BaseModel):
    pending: int = 0
    preparing: int = 0
    ready: int = 0
    delivered: int = 0
    total_today: int = 0


class DepartmentOrdersResponse(BaseModel):
    department: DepartmentName
    orders: list[DepartmentOrderOutput]
    stats: DepartmentCounts


class DepartmentStatsResponse(BaseModel):
    """Today's figures for one department."""

    department: DepartmentName
    pending: int = 0
    preparing: int = 0
    ready: int = 0
    delivered: int = 0
    completed_today: int = 0
    avg_prep_time_minutes: int = 0
    total_today: int = 0
