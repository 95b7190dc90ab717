"""
Order items router.
Per-item status updates by kitchen, bar and delivery staff.
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from shared.config.constants import ErrorMessages
from shared.config.logging import orders_logger as logger
from shared.config.settings import settings
from shared.infrastructure.db import get_db
from shared.security.auth import current_user_context
from shared.security.rate_limit import limiter
from shared.utils.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from shared.utils.schemas import (
    ErrorResponse,
    ItemStatusUpdateRequest,
    ItemStatusUpdateResponse,
    OrderItemOutput,
    OrderOutput,
)
from rest_api.services.domain import (
    ConcurrentUpdateError,
    HotelAccessDeniedError,
    InvalidStatusUpdateError,
    ItemOwnershipError,
    OrderItemStatusService,
    OrderNotFoundError,
)


router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.patch(
    "/{order_id}/items/status",
    response_model=ItemStatusUpdateResponse,
    responses={500: {"model": ErrorResponse}},
)
@limiter.limit(settings.status_update_rate_limit)
def update_item_status(
    request: Request,
    order_id: str,
    body: ItemStatusUpdateRequest,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> ItemStatusUpdateResponse:
    """
    Update the status of one or more items of an order.

    The order's own status is re-derived from all of its items and only
    ever moves forward. `items` in the response are the rows actually
    written; snapshot-only items are reflected in the order status only.

    Errors:
    - 400: missing or invalid status, empty itemIds
    - 403: no grant on the order's hotel, or items of another order
    - 404: unknown order
    - 409: the order is being updated concurrently, retry
    """
    service = OrderItemStatusService(db)

    try:
        result = service.update_item_status(
            order_id=order_id,
            item_ids=body.item_ids,
            status=body.status,
            user_id=ctx["sub"],
            expected_version=body.expected_version,
        )
    except OrderNotFoundError:
        raise NotFoundError("Order", order_id)
    except HotelAccessDeniedError as e:
        raise ForbiddenError(detail=ErrorMessages.NO_HOTEL_ACCESS, user_id=e.user_id, hotel_id=e.hotel_id)
    except InvalidStatusUpdateError as e:
        raise ValidationError(str(e), order_id=order_id, status=body.status)
    except ItemOwnershipError as e:
        raise ForbiddenError(detail=ErrorMessages.ITEMS_NOT_IN_ORDER, order_id=order_id, item_ids=e.foreign_ids)
    except ConcurrentUpdateError as e:
        raise ConflictError(ErrorMessages.CONCURRENT_UPDATE, order_id=order_id, reason=e.reason)
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error("Failed to update item status", order_id=order_id, error=str(e), exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": ErrorMessages.UPDATE_FAILED, "details": str(e)},
        )

    return ItemStatusUpdateResponse(
        order=OrderOutput.model_validate(result.order),
        items=[OrderItemOutput.model_validate(item) for item in result.items],
    )
