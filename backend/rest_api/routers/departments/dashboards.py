"""
Kitchen and bar dashboard routers.

Both departments expose the same two endpoints; only the department
label differs.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from shared.config.constants import Department, ErrorMessages
from shared.infrastructure.db import get_db
from shared.security.auth import current_user_context, require_department, require_hotel_access
from shared.utils.exceptions import ValidationError
from shared.utils.schemas import (
    DepartmentCounts,
    DepartmentOrderOutput,
    DepartmentOrdersResponse,
    DepartmentStatsResponse,
)
from rest_api.services.domain import DepartmentDashboardService, count_by_status


def _authorize(db: Session, ctx: dict[str, Any], department: str, hotel_id: str | None) -> str:
    require_department(ctx, department)
    if not hotel_id:
        raise ValidationError(ErrorMessages.HOTEL_ID_REQUIRED, department=department)
    require_hotel_access(db, ctx, hotel_id)
    return hotel_id


def build_department_router(department: str) -> APIRouter:
    router = APIRouter(prefix=f"/api/{department}", tags=[department])

    @router.get("/orders", response_model=DepartmentOrdersResponse)
    def list_department_orders(
        hotel_id: str | None = Query(default=None),
        db: Session = Depends(get_db),
        ctx: dict[str, Any] = Depends(current_user_context),
    ) -> DepartmentOrdersResponse:
        """
        Orders with items for this department, restricted to those items.

        Sorted pending first, then by time waiting. Requires staff of this
        department (or both) with a grant on the hotel.
        """
        hotel_id = _authorize(db, ctx, department, hotel_id)
        views = DepartmentDashboardService(db).list_orders(hotel_id, department)
        return DepartmentOrdersResponse(
            department=department,
            orders=[DepartmentOrderOutput.model_validate(view.to_dict()) for view in views],
            stats=DepartmentCounts(**count_by_status(views)),
        )

    @router.get("/stats", response_model=DepartmentStatsResponse)
    def get_department_stats(
        hotel_id: str | None = Query(default=None),
        db: Session = Depends(get_db),
        ctx: dict[str, Any] = Depends(current_user_context),
    ) -> DepartmentStatsResponse:
        """Today's counts and average preparation time for this department."""
        hotel_id = _authorize(db, ctx, department, hotel_id)
        stats = DepartmentDashboardService(db).stats(hotel_id, department)
        return DepartmentStatsResponse(**stats.to_dict())

    return router


kitchen_router = build_department_router(Department.KITCHEN)
bar_router = build_department_router(Department.BAR)
