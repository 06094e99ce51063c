"""
Synthetic snapshot store
Admin-authored metric vectors, one row per seller and timeframe
"""

from typing import Any, List, Mapping, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
import logging
import uuid

from sellerhub.core.exceptions import MetricValidationException
from sellerhub.models import SyntheticSnapshot, User
from sellerhub.models.seller_metrics import Timeframe
from sellerhub.utils.helpers import utcnow
from .metric_vector import MetricVector, normalize_vector, to_wire

logger = logging.getLogger(__name__)

class SnapshotStore:
    """CRUD for SyntheticSnapshot rows"""

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def parse_timeframe(raw: Any) -> Timeframe:
        timeframe = Timeframe.parse(raw)
        if timeframe is None:
            raise MetricValidationException("timeframe", f"Unknown timeframe: {raw}")
        return timeframe

    @staticmethod
    def parse_vector(raw: Mapping[str, Any]) -> MetricVector:
        """Type-check a submitted vector; keys must be known metrics"""
        try:
            return normalize_vector(raw, strict=True)
        except ValueError as e:
            raise MetricValidationException("metrics", str(e))

    async def get(self, seller_id: uuid.UUID, timeframe: Timeframe) -> Optional[SyntheticSnapshot]:
        result = await self.db.execute(
            select(SyntheticSnapshot).where(
                SyntheticSnapshot.seller_id == seller_id,
                SyntheticSnapshot.timeframe == timeframe.value,
            )
        )
        return result.scalar_one_or_none()

    async def list_for_seller(self, seller_id: uuid.UUID) -> List[SyntheticSnapshot]:
        """Every snapshot of a seller, one per timeframe at most"""
        result = await self.db.execute(
            select(SyntheticSnapshot)
            .where(SyntheticSnapshot.seller_id == seller_id)
            .order_by(SyntheticSnapshot.timeframe)
        )
        return list(result.scalars().all())

    async def list_all(self, limit: int = 100, offset: int = 0) -> List[Tuple[SyntheticSnapshot, User]]:
        """Global overview for admins, most recently edited first"""
        result = await self.db.execute(
            select(SyntheticSnapshot, User)
            .join(User, User.id == SyntheticSnapshot.seller_id)
            .order_by(SyntheticSnapshot.updated_at.desc())
            .offset(offset)
            .limit(limit)
        )
        return [(snapshot, user) for snapshot, user in result.all()]

    async def upsert(self, seller_id: uuid.UUID, timeframe: Timeframe, vector: MetricVector) -> SyntheticSnapshot:
        """
        Create or replace the snapshot for (seller, timeframe)

        The stored vector replaces the previous one wholesale. Values are not
        range-checked here.

        Args:
            seller_id: Seller the snapshot belongs to
            timeframe: Timeframe the snapshot covers
            vector: Partial metric vector; missing keys fall through to the
                lower layers when resolving

        Returns:
            The stored snapshot row
        """
        metrics = to_wire(vector)

        snapshot = await self.get(seller_id, timeframe)
        if snapshot is None:
            snapshot = SyntheticSnapshot(
                seller_id=seller_id,
                timeframe=timeframe.value,
                metrics=metrics,
            )
            self.db.add(snapshot)
            try:
                await self.db.commit()
            except IntegrityError:
                # Another admin created it first; last write wins
                await self.db.rollback()
                snapshot = await self.get(seller_id, timeframe)
                if snapshot is None:
                    raise
                snapshot.metrics = metrics
                snapshot.updated_at = utcnow()
                await self.db.commit()
        else:
            snapshot.metrics = metrics
            snapshot.updated_at = utcnow()
            await self.db.commit()

        await self.db.refresh(snapshot)
        return snapshot

    async def delete(self, seller_id: uuid.UUID, timeframe: Optional[Timeframe] = None) -> int:
        """Delete one timeframe's snapshot, or all of them when timeframe is None"""
        query = delete(SyntheticSnapshot).where(SyntheticSnapshot.seller_id == seller_id)
        if timeframe is not None:
            query = query.where(SyntheticSnapshot.timeframe == timeframe.value)

        result = await self.db.execute(query)
        await self.db.commit()
        return result.rowcount or 0
