"""
Order API routes
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from datetime import date
import uuid

from sellerhub.core.database import get_db
from sellerhub.core.exceptions import BadRequestException
from sellerhub.core.security import require_seller
from sellerhub.models.order import OrderStatus
from sellerhub.schemas.order import OrderDetail, OrderFilter, OrderListResponse
from sellerhub.utils.pagination import PaginationParams, get_pagination_params
from .schemas import OrderCancelRequest, OrderStatusUpdate
from .services import OrderService

router = APIRouter()

@router.get(
    "/",
    response_model=OrderListResponse,
    summary="List orders",
    description="Paginated orders of a seller, synthetic display orders included"
)
async def list_orders(
    status: Optional[OrderStatus] = None,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    seller_id: Optional[uuid.UUID] = Query(None, description="Admin only"),
    pagination: PaginationParams = Depends(get_pagination_params),
    current_user: dict = Depends(require_seller),
    db: AsyncSession = Depends(get_db)
):
    """List seller orders"""
    if current_user["role"] == "admin":
        if seller_id is None:
            raise BadRequestException("seller_id is required for admins")
        target = seller_id
    else:
        target = uuid.UUID(current_user["id"])

    if start_date and end_date and start_date > end_date:
        raise BadRequestException("start_date must not be after end_date")

    order_filter = OrderFilter(
        status=status,
        start_date=start_date,
        end_date=end_date,
        search=search
    )

    service = OrderService(db)
    result = await service.list_orders(
        seller_id=target,
        order_filter=order_filter,
        page=pagination.page,
        size=pagination.size
    )
    return OrderListResponse(**result)

@router.get(
    "/{order_id}",
    response_model=OrderDetail,
    summary="Get order details"
)
async def get_order(
    order_id: uuid.UUID,
    current_user: dict = Depends(require_seller),
    db: AsyncSession = Depends(get_db)
):
    """Get order details"""
    service = OrderService(db)
    return await service.get_order(order_id, current_user)

@router.patch(
    "/{order_id}/status",
    response_model=OrderDetail,
    summary="Update order status",
    description="Update status of a real order (Seller only)"
)
async def update_order_status(
    order_id: uuid.UUID,
    status_update: OrderStatusUpdate,
    current_user: dict = Depends(require_seller),
    db: AsyncSession = Depends(get_db)
):
    """Update order status"""
    service = OrderService(db)
    return await service.update_order_status(
        order_id=order_id,
        user=current_user,
        new_status=status_update.status,
        tracking_number=status_update.tracking_number
    )

@router.post(
    "/{order_id}/cancel",
    response_model=OrderDetail,
    summary="Cancel order"
)
async def cancel_order(
    order_id: uuid.UUID,
    cancel_request: OrderCancelRequest,
    current_user: dict = Depends(require_seller),
    db: AsyncSession = Depends(get_db)
):
    """Cancel order"""
    service = OrderService(db)
    return await service.cancel_order(
        order_id=order_id,
        user=current_user,
        reason=cancel_request.reason
    )
