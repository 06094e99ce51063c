"""
Seller metrics resolution engine

Merges calculated aggregates, synthetic snapshots, the legacy analytics blob
and per-metric overrides into one vector per timeframe. Precedence, highest
first: override, synthetic snapshot, legacy blob, calculated, default.

The engine is read-only. Each layer lookup runs in its own session so lookups
can proceed concurrently; a semaphore bounds how many run at once.
"""

from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, Set
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy import select
import asyncio
import logging
import uuid

from sellerhub.core.config import settings
from sellerhub.core.database import AsyncSessionLocal
from sellerhub.core.exceptions import (
    MetricValidationException, PartialResolutionError, SellerNotFoundException
)
from sellerhub.models import MetricOverride, SyntheticSnapshot, User, UserRole
from sellerhub.models.seller_metrics import MetricKey, Timeframe
from sellerhub.schemas.metrics import ResolvedMetricsView
from .aggregate_provider import CalculatedAggregateProvider
from .legacy_blob import LegacyBlobAdapter
from .metric_vector import (
    ALL_TIMEFRAMES, MetricVector, Number, coerce_value, default_vector,
    fill_defaults, normalize_vector
)
from .override_store import OverrideStore
from .snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)

_MISSING = object()

def parse_timeframes(raw: Optional[Iterable[Any]]) -> List[Timeframe]:
    """Validate requested timeframes; None or empty means all of them"""
    if not raw:
        return list(ALL_TIMEFRAMES)

    timeframes: List[Timeframe] = []
    for item in raw:
        timeframe = Timeframe.parse(item)
        if timeframe is None:
            raise MetricValidationException("timeframes", f"Unknown timeframe: {item}")
        if timeframe not in timeframes:
            timeframes.append(timeframe)
    return timeframes

class MetricsResolutionEngine:
    """Resolve seller metrics across timeframes"""

    def __init__(
        self,
        session_factory: async_sessionmaker = AsyncSessionLocal,
        max_concurrency: Optional[int] = None,
        layer_timeout: Optional[float] = None,
    ):
        self.session_factory = session_factory
        self.layer_timeout = layer_timeout or settings.METRICS_LAYER_TIMEOUT_SECONDS
        self._semaphore = asyncio.Semaphore(max_concurrency or settings.METRICS_MAX_CONCURRENCY)

    async def _run_layer(self, func: Callable[[AsyncSession], Awaitable[Any]]) -> Any:
        async with self._semaphore:
            async with self.session_factory() as session:
                return await asyncio.wait_for(func(session), timeout=self.layer_timeout)

    async def _optional_layer(
        self,
        layer: str,
        seller_id: uuid.UUID,
        func: Callable[[AsyncSession], Awaitable[Any]],
    ) -> Any:
        """Run a layer that degrades to absent (returns _MISSING) on failure"""
        try:
            return await self._run_layer(func)
        except asyncio.TimeoutError:
            logger.warning(f"{layer} lookup timed out for seller {seller_id}; treating layer as absent")
        except Exception as e:
            logger.warning(f"{layer} lookup failed for seller {seller_id}; treating layer as absent: {e}")
        return _MISSING

    async def _seller_exists(self, seller_id: uuid.UUID) -> bool:
        async def lookup(session: AsyncSession) -> bool:
            result = await session.execute(
                select(User.id).where(User.id == seller_id, User.role == UserRole.SELLER)
            )
            return result.scalar_one_or_none() is not None

        return await self._run_layer(lookup)

    async def _aggregate(self, seller_id: uuid.UUID, timeframe: Timeframe) -> MetricVector:
        return await self._run_layer(
            lambda session: CalculatedAggregateProvider(session).compute_aggregate(seller_id, timeframe)
        )

    async def _snapshots_and_legacy(self, seller_id: uuid.UUID):
        """
        (snapshots by timeframe, legacy vector)

        The legacy blob is only read when the snapshot lookup succeeded and
        found nothing for the seller.
        """
        snapshots = await self._optional_layer(
            "snapshot", seller_id,
            lambda session: SnapshotStore(session).list_for_seller(seller_id),
        )
        if snapshots is _MISSING:
            return {}, None

        by_timeframe: Dict[Timeframe, SyntheticSnapshot] = {}
        for snapshot in snapshots:
            timeframe = Timeframe.parse(snapshot.timeframe)
            if timeframe is not None:
                by_timeframe[timeframe] = snapshot
        if by_timeframe:
            return by_timeframe, None

        legacy = await self._optional_layer(
            "legacy blob", seller_id,
            lambda session: LegacyBlobAdapter(session).read(seller_id),
        )
        if legacy is _MISSING:
            return by_timeframe, None
        vector, _trail = legacy
        return by_timeframe, vector

    async def _overrides(self, seller_id: uuid.UUID) -> List[MetricOverride]:
        overrides = await self._optional_layer(
            "override", seller_id,
            lambda session: OverrideStore(session).get(seller_id),
        )
        if overrides is _MISSING:
            return []
        return overrides

    @staticmethod
    def _merge(
        timeframe: Timeframe,
        base: MetricVector,
        snapshot: Optional[SyntheticSnapshot],
        legacy_vector: Optional[MetricVector],
        overrides: Sequence[MetricOverride],
    ) -> ResolvedMetricsView:
        vector = dict(base)
        used_synthetic = False
        used_legacy_blob = False
        used_override_keys: Set[MetricKey] = set()

        if snapshot is not None:
            vector.update(normalize_vector(snapshot.metrics))
            used_synthetic = True
        elif legacy_vector is not None:
            vector = dict(legacy_vector)
            used_legacy_blob = True

        for override in overrides:
            if override.period != timeframe.value:
                continue
            key = MetricKey.parse(override.metric_key)
            if key is None:
                continue
            try:
                vector[key] = coerce_value(key, override.value)
            except ValueError:
                continue
            used_override_keys.add(key)

        return ResolvedMetricsView(
            timeframe=timeframe,
            vector=fill_defaults(vector),
            used_synthetic=used_synthetic,
            used_override_keys=used_override_keys,
            used_legacy_blob=used_legacy_blob,
        )

    async def resolve(
        self,
        seller_id: uuid.UUID,
        timeframes: Optional[Iterable[Any]] = None,
        strict: bool = False,
        include_overrides: bool = True,
        check_seller: bool = True,
    ) -> Dict[Timeframe, ResolvedMetricsView]:
        """
        Resolve a seller's metrics for the requested timeframes

        A timeframe whose calculated aggregate fails is returned with default
        base values and `degraded` set; the other layers still apply. With
        `strict`, such failures raise PartialResolutionError carrying every
        view.

        Args:
            seller_id: Seller to resolve
            timeframes: Timeframe names or enums; None or empty means all
            strict: Raise instead of returning degraded timeframes
            include_overrides: False yields the numbers a seller would see
                without admin overrides
            check_seller: Skip the seller lookup when the caller already did it

        Returns:
            Resolved view per requested timeframe, in request order

        Raises:
            MetricValidationException: If a timeframe is unknown
            SellerNotFoundException: If the seller does not exist
            PartialResolutionError: If `strict` and an aggregate failed
        """
        requested = parse_timeframes(timeframes)

        if check_seller and not await self._seller_exists(seller_id):
            raise SellerNotFoundException(seller_id)

        async def no_overrides() -> List[MetricOverride]:
            return []

        aggregate_results, (snapshots, legacy_vector), overrides = await asyncio.gather(
            asyncio.gather(
                *(self._aggregate(seller_id, timeframe) for timeframe in requested),
                return_exceptions=True,
            ),
            self._snapshots_and_legacy(seller_id),
            self._overrides(seller_id) if include_overrides else no_overrides(),
        )

        views: Dict[Timeframe, ResolvedMetricsView] = {}
        failed: Dict[Timeframe, str] = {}

        for timeframe, base in zip(requested, aggregate_results):
            error: Optional[str] = None
            if isinstance(base, BaseException):
                if isinstance(base, asyncio.TimeoutError):
                    error = "Calculated metrics timed out"
                else:
                    error = f"Calculated metrics unavailable: {base}"
                logger.warning(
                    f"Aggregate layer degraded for seller {seller_id}, timeframe {timeframe.value}: {error}"
                )
                failed[timeframe] = error
                base = default_vector()

            view = self._merge(timeframe, base, snapshots.get(timeframe), legacy_vector, overrides)
            if error is not None:
                view.degraded = True
                view.error = error
            views[timeframe] = view

        if strict and failed:
            raise PartialResolutionError(views, failed)
        return views

    async def resolve_many(
        self,
        seller_ids: Iterable[uuid.UUID],
        timeframes: Optional[Iterable[Any]] = None,
    ) -> Dict[uuid.UUID, Dict[Timeframe, ResolvedMetricsView]]:
        """Resolve several sellers at once; unknown sellers are left out"""
        requested = parse_timeframes(timeframes)
        ids = list(dict.fromkeys(seller_ids))
        if not ids:
            return {}

        async def existing(session: AsyncSession) -> Set[uuid.UUID]:
            result = await session.execute(
                select(User.id).where(User.id.in_(ids), User.role == UserRole.SELLER)
            )
            return set(result.scalars().all())

        known = await self._run_layer(existing)
        ordered = [seller_id for seller_id in ids if seller_id in known]

        results = await asyncio.gather(
            *(self.resolve(seller_id, requested, check_seller=False) for seller_id in ordered)
        )
        return dict(zip(ordered, results))

    async def current_value(self, seller_id: uuid.UUID, metric_key: MetricKey, period: Timeframe) -> Number:
        """Value shown for one metric when overrides are ignored"""
        views = await self.resolve(seller_id, [period], include_overrides=False)
        return views[period].vector[metric_key]

def get_metrics_engine() -> MetricsResolutionEngine:
    """FastAPI dependency"""
    return MetricsResolutionEngine()
