"""
Override store
Admin-authored single-metric values keyed by (seller, metric, period)
"""

from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, update, inspect
from sqlalchemy.exc import DBAPIError, IntegrityError
import logging
import uuid

from sellerhub.core.config import settings
from sellerhub.core.exceptions import MetricValidationException, StorageUnavailableError
from sellerhub.models import MetricOverride
from sellerhub.models.seller_metrics import MetricKey, Timeframe
from sellerhub.utils.helpers import utcnow
from .metric_vector import ALL_TIMEFRAMES, Number, coerce_value

logger = logging.getLogger(__name__)

# Metrics the admin override screen offers, in display order
OVERRIDABLE_METRICS = (
    MetricKey.ORDERS_SOLD,
    MetricKey.TOTAL_SALES,
    MetricKey.PROFIT_FORECAST,
    MetricKey.VISITORS,
    MetricKey.SHOP_FOLLOWERS,
    MetricKey.SHOP_RATING,
    MetricKey.CREDIT_SCORE,
)

# Inclusive bounds; everything not listed must be >= 0
METRIC_RANGES = {
    MetricKey.SHOP_RATING: (0, 5),
    MetricKey.CREDIT_SCORE: (300, 850),
}

class OverrideStore:
    """
    Upsert/delete/clear of MetricOverride rows

    The overrides table may be missing in environments that never ran the
    provisioning step. Reads then behave as if there were no rows, and the
    first upsert creates the table and retries when OVERRIDES_AUTO_PROVISION
    is enabled.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def validate(metric_key: Any, period: Any, value: Any) -> Tuple[MetricKey, Timeframe, Number]:
        """Check a write before it reaches storage"""
        key = MetricKey.parse(metric_key)
        if key is None:
            raise MetricValidationException("metric_key", f"Unknown metric: {metric_key}")

        timeframe = Timeframe.parse(period)
        if timeframe is None:
            raise MetricValidationException("period", f"Unknown period: {period}")

        try:
            number = coerce_value(key, value)
        except ValueError as e:
            raise MetricValidationException("value", str(e))

        low, high = METRIC_RANGES.get(key, (0, None))
        if number < low or (high is not None and number > high):
            if high is None:
                detail = f"{key.value} must be greater than or equal to {low}"
            else:
                detail = f"{key.value} must be between {low} and {high}"
            raise MetricValidationException("value", detail)

        return key, timeframe, number

    @staticmethod
    def parse_metric(metric_key: Any) -> MetricKey:
        key = MetricKey.parse(metric_key)
        if key is None:
            raise MetricValidationException("metric_key", f"Unknown metric: {metric_key}")
        return key

    async def _is_unprovisioned(self) -> bool:
        await self.db.rollback()
        conn = await self.db.connection()
        exists = await conn.run_sync(
            lambda sync_conn: inspect(sync_conn).has_table(MetricOverride.__tablename__)
        )
        return not exists

    async def _execute(self, statement):
        try:
            return await self.db.execute(statement)
        except DBAPIError as exc:
            if await self._is_unprovisioned():
                raise StorageUnavailableError("overrides", "table not provisioned") from exc
            raise

    async def provision(self) -> None:
        """Create the overrides table if it does not exist"""
        await self.db.rollback()
        conn = await self.db.connection()
        await conn.run_sync(MetricOverride.__table__.create, checkfirst=True)
        await self.db.commit()
        logger.warning(f"Provisioned missing table {MetricOverride.__tablename__}")

    async def get(self, seller_id: uuid.UUID, period: Optional[Timeframe] = None) -> List[MetricOverride]:
        """All overrides of a seller, optionally for one period only"""
        query = select(MetricOverride).where(MetricOverride.seller_id == seller_id)
        if period is not None:
            query = query.where(MetricOverride.period == period.value)
        query = query.order_by(MetricOverride.period, MetricOverride.metric_key)

        try:
            result = await self._execute(query)
        except StorageUnavailableError as e:
            logger.debug(f"Overrides unavailable for seller {seller_id}: {e}")
            return []
        return list(result.scalars().all())

    async def _find(self, seller_id: uuid.UUID, key: MetricKey, period: Timeframe) -> Optional[MetricOverride]:
        result = await self._execute(
            select(MetricOverride).where(
                MetricOverride.seller_id == seller_id,
                MetricOverride.metric_key == key.value,
                MetricOverride.period == period.value,
            )
        )
        return result.scalar_one_or_none()

    async def _write(
        self,
        seller_id: uuid.UUID,
        key: MetricKey,
        period: Timeframe,
        value: Number,
        original_value: Optional[float],
    ) -> MetricOverride:
        override = await self._find(seller_id, key, period)

        if override is None:
            override = MetricOverride(
                seller_id=seller_id,
                metric_key=key.value,
                period=period.value,
                value=value,
                original_value=original_value,
            )
            self.db.add(override)
            try:
                await self.db.commit()
                await self.db.refresh(override)
                return override
            except IntegrityError:
                # Concurrent insert for the same triple; fall through to update
                await self.db.rollback()
                override = await self._find(seller_id, key, period)
                if override is None:
                    raise

        override.value = value
        if original_value is not None:
            override.original_value = original_value
        override.updated_at = utcnow()
        await self.db.commit()
        await self.db.refresh(override)
        return override

    async def upsert(
        self,
        seller_id: uuid.UUID,
        metric_key: Any,
        period: Any,
        value: Any,
        original_value: Any = None,
    ) -> MetricOverride:
        """
        Create or update the override for (seller, metric, period)

        An omitted original_value leaves the recorded one unchanged on update.

        Args:
            seller_id: Seller the override belongs to
            metric_key: Metric name, wire or enum form
            period: Timeframe the override applies to
            value: Number to display, within the metric's allowed range
            original_value: Value shown before the override, for the audit view

        Returns:
            The stored override row

        Raises:
            MetricValidationException: If the metric, period or value is
                invalid; nothing is written in that case
        """
        key, timeframe, number = self.validate(metric_key, period, value)

        original = None
        if original_value is not None:
            try:
                original = float(coerce_value(key, original_value))
            except ValueError as e:
                raise MetricValidationException("original_value", str(e))

        try:
            return await self._write(seller_id, key, timeframe, number, original)
        except StorageUnavailableError:
            if not settings.OVERRIDES_AUTO_PROVISION:
                raise
            await self.provision()
            return await self._write(seller_id, key, timeframe, number, original)

    async def delete(self, seller_id: uuid.UUID, metric_key: Any) -> int:
        """Remove a metric's overrides across all periods"""
        key = self.parse_metric(metric_key)
        try:
            result = await self._execute(
                delete(MetricOverride).where(
                    MetricOverride.seller_id == seller_id,
                    MetricOverride.metric_key == key.value,
                )
            )
        except StorageUnavailableError:
            return 0
        await self.db.commit()
        return result.rowcount or 0

    async def clear(self, seller_id: uuid.UUID, metric_key: Any) -> int:
        """Zero a metric's overrides across all periods, keeping the rows"""
        key = self.parse_metric(metric_key)
        try:
            result = await self._execute(
                update(MetricOverride)
                .where(
                    MetricOverride.seller_id == seller_id,
                    MetricOverride.metric_key == key.value,
                )
                .values(value=0, updated_at=utcnow())
            )
        except StorageUnavailableError:
            return 0
        await self.db.commit()
        return result.rowcount or 0

    async def structured_view(self, seller_id: uuid.UUID) -> Dict[str, Dict[str, Dict[str, Any]]]:
        """
        Override grid for the admin screen

        {timeframe: {metric: {value, original, has_override, created_at, updated_at}}}
        """
        view: Dict[str, Dict[str, Dict[str, Any]]] = {
            timeframe.value: {
                key.value: {
                    "value": 0,
                    "original": None,
                    "has_override": False,
                    "created_at": None,
                    "updated_at": None,
                }
                for key in OVERRIDABLE_METRICS
            }
            for timeframe in ALL_TIMEFRAMES
        }

        for override in await self.get(seller_id):
            bucket = view.get(override.period)
            if bucket is None:
                continue
            bucket[override.metric_key] = {
                "value": override.value,
                "original": override.original_value,
                "has_override": True,
                "created_at": override.created_at,
                "updated_at": override.updated_at,
            }
        return view
