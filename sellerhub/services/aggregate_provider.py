"""
Calculated aggregate provider
Derives a seller's metric vector from real order and product records
"""

from typing import Any, Dict
from datetime import timedelta
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, case
import logging
import uuid

from sellerhub.models import Order, Product
from sellerhub.models.seller_metrics import MetricKey, Timeframe
from sellerhub.utils.helpers import utcnow
from .metric_vector import MetricVector, default_vector, window_days

logger = logging.getLogger(__name__)

class CalculatedAggregateProvider:
    """Read-only aggregation over orders and products"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def compute_summary(self, seller_id: uuid.UUID, timeframe: Timeframe) -> Dict[str, Any]:
        """
        Raw calculated stats for one timeframe

        Orders of every status created inside the window are counted. Product
        counts are not windowed.
        """
        cutoff = utcnow() - timedelta(days=window_days(timeframe))

        order_row = (await self.db.execute(
            select(
                func.count(Order.id),
                func.coalesce(func.sum(Order.total_amount), 0),
            ).where(
                Order.seller_id == seller_id,
                Order.created_at >= cutoff,
            )
        )).one()

        product_row = (await self.db.execute(
            select(
                func.count(Product.id),
                func.coalesce(func.sum(case((Product.is_active.is_(True), 1), else_=0)), 0),
            ).where(Product.seller_id == seller_id)
        )).one()

        orders_count = int(order_row[0] or 0)
        revenue = float(order_row[1] or 0)

        return {
            "timeframe": timeframe.value,
            "window_days": window_days(timeframe),
            "total_orders": orders_count,
            "total_revenue": revenue,
            "average_order_value": revenue / orders_count if orders_count else 0.0,
            "total_products": int(product_row[0] or 0),
            "active_products": int(product_row[1] or 0),
        }

    async def compute_aggregate(self, seller_id: uuid.UUID, timeframe: Timeframe) -> MetricVector:
        """
        Metric vector computed from storage

        Visitors, followers, customers, rating and credit score are not
        derivable yet and keep their defaults. Storage errors propagate; the
        resolution engine decides how to degrade.
        """
        summary = await self.compute_summary(seller_id, timeframe)

        vector = default_vector()
        vector[MetricKey.ORDERS_SOLD] = summary["total_orders"]
        vector[MetricKey.TOTAL_SALES] = summary["total_revenue"]
        vector[MetricKey.TOTAL_PRODUCTS] = summary["total_products"]
        return vector
