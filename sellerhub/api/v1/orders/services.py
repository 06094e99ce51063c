"""
Order service layer
Seller-facing listing, detail and status changes of orders
"""

from typing import Any, Dict, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import logging
import uuid

from sellerhub.models import Order, OrderStatus, PaymentStatus, Product
from sellerhub.core.exceptions import (
    BadRequestException, ForbiddenException, OrderNotCancellableException
)
from sellerhub.schemas.order import OrderFilter
from sellerhub.services.synthetic_orders import SyntheticOrderOverlay
from sellerhub.utils.helpers import utcnow
from .state_machine import OrderStateMachine

logger = logging.getLogger(__name__)

class OrderService:
    """Order service for business logic"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.overlay = SyntheticOrderOverlay(db)
        self.state_machine = OrderStateMachine()

    async def list_orders(
        self,
        seller_id: uuid.UUID,
        order_filter: OrderFilter,
        page: int,
        size: int
    ) -> Dict[str, Any]:
        return await self.overlay.list_orders(seller_id, order_filter, page, size)

    async def get_order(self, order_id: uuid.UUID, user: Dict[str, Any]) -> Dict[str, Any]:
        """Order detail; sellers only see their own orders"""
        seller_id = None if user["role"] == "admin" else uuid.UUID(user["id"])
        return await self.overlay.get_order(order_id, seller_id)

    async def _get_owned_real_order(self, order_id: uuid.UUID, user: Dict[str, Any]) -> Order:
        order = await self.overlay.ensure_mutable(order_id)
        if user["role"] != "admin" and order.seller_id != uuid.UUID(user["id"]):
            raise ForbiddenException("You can only update your own orders")
        return order

    async def update_order_status(
        self,
        order_id: uuid.UUID,
        user: Dict[str, Any],
        new_status: OrderStatus,
        tracking_number: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Move a real order to a new status

        Raises:
            SyntheticOrderReadOnlyException: If the id is a synthetic order
            ForbiddenException: If not the seller
            BadRequestException: If transition not allowed
        """
        order = await self._get_owned_real_order(order_id, user)

        if new_status == OrderStatus.CANCELLED:
            raise BadRequestException("Use the cancel endpoint to cancel an order")

        if not self.state_machine.can_transition(order.status, new_status):
            allowed = ", ".join(s.value for s in self.state_machine.get_valid_transitions(order.status))
            raise BadRequestException(
                f"Cannot transition from {order.status.value} to {new_status.value}. "
                f"Allowed: {allowed or 'none'}",
                error_code="INVALID_STATUS_TRANSITION"
            )

        previous = order.status
        order.status = new_status
        if tracking_number:
            order.tracking_number = tracking_number
        if new_status == OrderStatus.DELIVERED:
            order.delivered_at = utcnow()
            order.payment_status = PaymentStatus.COMPLETED
        order.updated_at = utcnow()

        await self.db.commit()
        logger.info(f"Order {order.order_number} moved {previous.value} -> {new_status.value} by {user['id']}")

        return await self.overlay.get_order(order.id)

    async def cancel_order(
        self,
        order_id: uuid.UUID,
        user: Dict[str, Any],
        reason: str
    ) -> Dict[str, Any]:
        """
        Cancel a real order and put its stock back

        Raises:
            SyntheticOrderReadOnlyException: If the id is a synthetic order
            OrderNotCancellableException: If order cannot be cancelled
        """
        order = await self._get_owned_real_order(order_id, user)

        if not self.state_machine.is_cancellable(order.status):
            raise OrderNotCancellableException()

        order.status = OrderStatus.CANCELLED
        order.cancelled_at = utcnow()
        order.cancellation_reason = reason
        order.updated_at = utcnow()

        # Restore product stock
        for item in order.items:
            result = await self.db.execute(
                select(Product).where(Product.id == item.product_id)
            )
            product = result.scalar_one_or_none()
            if product is not None and product.track_inventory:
                product.stock += item.quantity

        await self.db.commit()
        logger.info(f"Order {order.order_number} cancelled by {user['id']}: {reason}")

        return await self.overlay.get_order(order.id)
