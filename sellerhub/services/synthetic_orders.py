"""
Synthetic order overlay

Blends admin-injected display orders into a seller's real order list. Both
sides are filtered the same way, fetched newest first up to the end of the
requested page, merged by creation time and sliced in memory.
"""

from typing import Any, Dict, List, Optional, Union
from datetime import datetime, time, timezone
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from sqlalchemy.orm import selectinload
from sqlalchemy.sql import Select
import logging
import random
import string
import uuid

from sellerhub.core.config import settings
from sellerhub.core.exceptions import NotFoundException, SyntheticOrderReadOnlyException
from sellerhub.models import Order, OrderItem, SyntheticOrder, SyntheticOrderItem
from sellerhub.schemas.order import OrderFilter, SyntheticOrderCreate
from sellerhub.utils.helpers import as_utc, total_pages, utcnow

logger = logging.getLogger(__name__)

def _day_start(value) -> datetime:
    return datetime.combine(value, time.min, tzinfo=timezone.utc)

def _day_end(value) -> datetime:
    # End dates are inclusive to the last second of the day
    return datetime.combine(value, time(23, 59, 59, 999999), tzinfo=timezone.utc)

def _amount(value) -> float:
    return float(value or 0)

class SyntheticOrderOverlay:
    """Order listing and lookup across real and synthetic orders"""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _real_query(self, seller_id: uuid.UUID, order_filter: OrderFilter) -> Select:
        query = select(Order).where(Order.seller_id == seller_id)
        if order_filter.status:
            query = query.where(Order.status == order_filter.status)
        if order_filter.start_date:
            query = query.where(Order.created_at >= _day_start(order_filter.start_date))
        if order_filter.end_date:
            query = query.where(Order.created_at <= _day_end(order_filter.end_date))
        if order_filter.search:
            pattern = f"%{order_filter.search.strip()}%"
            query = query.where(
                or_(
                    Order.order_number.ilike(pattern),
                    Order.items.any(OrderItem.product_name.ilike(pattern)),
                )
            )
        return query

    def _synthetic_query(self, seller_id: uuid.UUID, order_filter: OrderFilter) -> Select:
        query = select(SyntheticOrder).where(SyntheticOrder.seller_id == seller_id)
        if order_filter.status:
            query = query.where(SyntheticOrder.status == order_filter.status)
        if order_filter.start_date:
            query = query.where(SyntheticOrder.created_at >= _day_start(order_filter.start_date))
        if order_filter.end_date:
            query = query.where(SyntheticOrder.created_at <= _day_end(order_filter.end_date))
        if order_filter.search:
            pattern = f"%{order_filter.search.strip()}%"
            query = query.where(
                or_(
                    SyntheticOrder.order_number.ilike(pattern),
                    SyntheticOrder.customer_name.ilike(pattern),
                )
            )
        return query

    async def _count(self, query: Select) -> int:
        total = await self.db.scalar(select(func.count()).select_from(query.subquery()))
        return int(total or 0)

    async def list_orders(
        self,
        seller_id: uuid.UUID,
        order_filter: Optional[OrderFilter] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Dict[str, Any]:
        """
        One page of the seller's orders, real and synthetic merged

        Only the newest SYNTHETIC_ORDER_FETCH_CAP synthetic orders take part,
        and totals count real orders plus that capped share. Ties on creation
        time are broken by id so pages never overlap.

        Args:
            seller_id: Seller whose orders are listed
            order_filter: Status, date range and search applied to both sets
            page: 1-based page number
            page_size: Rows per page, clamped to MAX_PAGE_SIZE

        Returns:
            Dict with orders, total, page, page_size and total_pages
        """
        order_filter = order_filter or OrderFilter()
        page = max(page, 1)
        page_size = max(min(page_size, settings.MAX_PAGE_SIZE), 1)
        window = page * page_size

        real_query = self._real_query(seller_id, order_filter)
        synthetic_query = self._synthetic_query(seller_id, order_filter)

        real_total = await self._count(real_query)
        synthetic_total = min(await self._count(synthetic_query), settings.SYNTHETIC_ORDER_FETCH_CAP)

        real_orders = (await self.db.execute(
            real_query
            .options(selectinload(Order.items), selectinload(Order.buyer))
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(window)
        )).scalars().all()

        synthetic_orders = (await self.db.execute(
            synthetic_query
            .options(selectinload(SyntheticOrder.items))
            .order_by(SyntheticOrder.created_at.desc(), SyntheticOrder.id.desc())
            .limit(min(window, settings.SYNTHETIC_ORDER_FETCH_CAP))
        )).scalars().all()

        merged = [self._real_summary(order) for order in real_orders]
        merged.extend(self._synthetic_summary(order) for order in synthetic_orders)
        merged.sort(key=lambda row: (as_utc(row["created_at"]), row["id"]), reverse=True)

        offset = (page - 1) * page_size
        total = real_total + synthetic_total

        return {
            "orders": merged[offset:offset + page_size],
            "total": total,
            "page": page,
            "page_size": page_size,
            "total_pages": total_pages(total, page_size),
        }

    @staticmethod
    def _real_summary(order: Order) -> Dict[str, Any]:
        return {
            "id": order.id,
            "order_number": order.order_number,
            "status": order.status,
            "total_amount": _amount(order.total_amount),
            "customer_name": order.buyer.name if order.buyer else None,
            "item_count": sum(item.quantity for item in order.items),
            "created_at": order.created_at,
            "is_synthetic": False,
        }

    @staticmethod
    def _synthetic_summary(order: SyntheticOrder) -> Dict[str, Any]:
        return {
            "id": order.id,
            "order_number": order.order_number,
            "status": order.status,
            "total_amount": _amount(order.total_amount),
            "customer_name": order.customer_name,
            "item_count": sum(item.quantity for item in order.items),
            "created_at": order.created_at,
            "is_synthetic": True,
        }

    async def _get_real(self, order_id: uuid.UUID) -> Optional[Order]:
        result = await self.db.execute(
            select(Order)
            .options(
                selectinload(Order.items),
                selectinload(Order.buyer),
                selectinload(Order.seller),
            )
            .where(Order.id == order_id)
        )
        return result.scalar_one_or_none()

    async def _get_synthetic(self, order_id: uuid.UUID) -> Optional[SyntheticOrder]:
        result = await self.db.execute(
            select(SyntheticOrder)
            .options(selectinload(SyntheticOrder.items), selectinload(SyntheticOrder.seller))
            .where(SyntheticOrder.id == order_id)
        )
        return result.scalar_one_or_none()

    async def get_order(self, order_id: uuid.UUID, seller_id: Optional[uuid.UUID] = None) -> Dict[str, Any]:
        """
        Order detail, real orders first, synthetic on miss

        When `seller_id` is given, orders of other sellers are reported as
        not found.
        """
        order: Optional[Union[Order, SyntheticOrder]] = await self._get_real(order_id)
        if order is not None:
            detail = self._real_detail(order)
        else:
            order = await self._get_synthetic(order_id)
            if order is None:
                raise NotFoundException("Order not found", error_code="ORDER_NOT_FOUND")
            detail = self._synthetic_detail(order)

        if seller_id is not None and order.seller_id != seller_id:
            raise NotFoundException("Order not found", error_code="ORDER_NOT_FOUND")
        return detail

    @staticmethod
    def _real_detail(order: Order) -> Dict[str, Any]:
        return {
            "id": order.id,
            "order_number": order.order_number,
            "seller_id": order.seller_id,
            "status": order.status,
            "payment_status": order.payment_status.value if order.payment_status else None,
            "payment_method": order.payment_method,
            "subtotal": _amount(order.subtotal),
            "tax_amount": _amount(order.tax_amount),
            "shipping_amount": _amount(order.shipping_amount),
            "discount_amount": _amount(order.discount_amount),
            "total_amount": _amount(order.total_amount),
            "customer_name": order.buyer.name if order.buyer else None,
            "customer_email": order.buyer.email if order.buyer else None,
            "seller_name": order.seller.name if order.seller else None,
            "seller_email": order.seller.email if order.seller else None,
            "shipping_address": order.shipping_address,
            "tracking_number": order.tracking_number,
            "notes": order.notes,
            "cancellation_reason": order.cancellation_reason,
            "created_at": order.created_at,
            "updated_at": order.updated_at,
            "items": [
                {
                    "id": item.id,
                    "product_id": item.product_id,
                    "product_name": item.product_name,
                    "product_sku": item.product_sku,
                    "quantity": item.quantity,
                    "unit_price": _amount(item.unit_price),
                    "total_price": _amount(item.total_price),
                }
                for item in order.items
            ],
            "is_synthetic": False,
        }

    @staticmethod
    def _synthetic_detail(order: SyntheticOrder) -> Dict[str, Any]:
        return {
            "id": order.id,
            "order_number": order.order_number,
            "seller_id": order.seller_id,
            "status": order.status,
            "payment_status": None,
            "payment_method": None,
            "subtotal": _amount(order.subtotal),
            "tax_amount": _amount(order.tax_amount),
            "shipping_amount": _amount(order.shipping_amount),
            "discount_amount": 0.0,
            "total_amount": _amount(order.total_amount),
            "customer_name": order.customer_name,
            "customer_email": order.customer_email,
            "seller_name": order.seller.name if order.seller else None,
            "seller_email": order.seller.email if order.seller else None,
            "shipping_address": None,
            "tracking_number": None,
            "notes": None,
            "cancellation_reason": None,
            "created_at": order.created_at,
            "updated_at": order.updated_at,
            "items": [
                {
                    "id": item.id,
                    "product_id": None,
                    "product_name": item.product_name,
                    "product_sku": item.product_sku,
                    "quantity": item.quantity,
                    "unit_price": _amount(item.unit_price),
                    "total_price": _amount(item.total_price),
                }
                for item in order.items
            ],
            "is_synthetic": True,
        }

    async def ensure_mutable(self, order_id: uuid.UUID) -> Order:
        """Real order for a mutation; synthetic ids are rejected"""
        order = await self._get_real(order_id)
        if order is not None:
            return order
        if await self._get_synthetic(order_id) is not None:
            logger.info(f"Rejected mutation of synthetic order {order_id}")
            raise SyntheticOrderReadOnlyException(order_id)
        raise NotFoundException("Order not found", error_code="ORDER_NOT_FOUND")

    @staticmethod
    def generate_order_number() -> str:
        timestamp = utcnow().strftime('%Y%m%d%H%M%S')
        random_suffix = ''.join(random.choices(string.ascii_uppercase + string.digits, k=6))
        return f"SYN{timestamp}{random_suffix}"

    async def create_synthetic(self, seller_id: uuid.UUID, data: SyntheticOrderCreate) -> Dict[str, Any]:
        """Store a display-only order with its items"""
        items: List[SyntheticOrderItem] = []
        subtotal = 0.0
        for item in data.items:
            line_total = round(item.unit_price * item.quantity, 2)
            subtotal += line_total
            items.append(SyntheticOrderItem(
                product_name=item.product_name,
                product_sku=item.product_sku,
                quantity=item.quantity,
                unit_price=item.unit_price,
                total_price=line_total,
            ))

        order = SyntheticOrder(
            order_number=self.generate_order_number(),
            seller_id=seller_id,
            customer_name=data.customer_name,
            customer_email=data.customer_email,
            status=data.status,
            subtotal=round(subtotal, 2),
            tax_amount=data.tax_amount,
            shipping_amount=data.shipping_amount,
            total_amount=round(subtotal + data.tax_amount + data.shipping_amount, 2),
            items=items,
        )
        if data.created_at is not None:
            order.created_at = data.created_at
            order.updated_at = data.created_at

        self.db.add(order)
        await self.db.commit()

        return await self.get_order(order.id)

    async def delete_synthetic(self, order_id: uuid.UUID) -> None:
        order = await self._get_synthetic(order_id)
        if order is None:
            raise NotFoundException("Synthetic order not found", error_code="ORDER_NOT_FOUND")
        await self.db.delete(order)
        await self.db.commit()
