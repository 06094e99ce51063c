"""
Seller metric models
Admin-authored snapshots and single-metric overrides layered over computed stats
"""

from sqlalchemy import Column, String, Numeric, ForeignKey, Index, UniqueConstraint, JSON, Uuid
from typing import Optional
import enum

from .base import Base, TimestampedModel, UUIDModel

class MetricKey(str, enum.Enum):
    ORDERS_SOLD = "ordersSold"
    TOTAL_SALES = "totalSales"
    PROFIT_FORECAST = "profitForecast"
    VISITORS = "visitors"
    SHOP_FOLLOWERS = "shopFollowers"
    SHOP_RATING = "shopRating"
    CREDIT_SCORE = "creditScore"
    TOTAL_PRODUCTS = "totalProducts"
    TOTAL_CUSTOMERS = "totalCustomers"

    @classmethod
    def parse(cls, raw) -> Optional["MetricKey"]:
        """Accept camelCase values and the snake_case names admin tools send"""
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, str):
            return None
        key = raw.strip()
        for member in cls:
            if key == member.value or key.lower() == member.name.lower():
                return member
        return None

class Timeframe(str, enum.Enum):
    TODAY = "today"
    LAST_7_DAYS = "last7Days"
    LAST_30_DAYS = "last30Days"
    TOTAL = "total"

    @classmethod
    def parse(cls, raw) -> Optional["Timeframe"]:
        """Accept canonical values plus the short forms used by older clients"""
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, str):
            return None
        return _TIMEFRAME_ALIASES.get(raw.strip().lower())

_TIMEFRAME_ALIASES = {
    "today": Timeframe.TODAY,
    "last7days": Timeframe.LAST_7_DAYS,
    "7days": Timeframe.LAST_7_DAYS,
    "last_7_days": Timeframe.LAST_7_DAYS,
    "last30days": Timeframe.LAST_30_DAYS,
    "30days": Timeframe.LAST_30_DAYS,
    "last_30_days": Timeframe.LAST_30_DAYS,
    "total": Timeframe.TOTAL,
}

class SyntheticSnapshot(Base, TimestampedModel, UUIDModel):
    """Admin-authored metric vector for one seller and timeframe"""

    __tablename__ = "seller_metric_snapshots"

    seller_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    timeframe = Column(String(20), nullable=False)

    # MetricKey value -> number; may hold only some keys
    metrics = Column(JSON, nullable=False, default=dict)

    __table_args__ = (
        UniqueConstraint("seller_id", "timeframe", name="uq_snapshot_seller_timeframe"),
        Index("idx_snapshots_seller", "seller_id"),
    )

class MetricOverride(Base, TimestampedModel, UUIDModel):
    """Single admin-set metric value, highest precedence when resolving"""

    __tablename__ = "seller_metric_overrides"

    seller_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    metric_key = Column(String(50), nullable=False)
    period = Column(String(20), nullable=False, default=Timeframe.TOTAL.value)

    value = Column(Numeric(15, 4, asdecimal=False), nullable=False)
    # What the seller saw before the override; audit only
    original_value = Column(Numeric(15, 4, asdecimal=False), nullable=True)

    __table_args__ = (
        UniqueConstraint("seller_id", "metric_key", "period", name="uq_override_seller_metric_period"),
        Index("idx_overrides_seller", "seller_id"),
    )
