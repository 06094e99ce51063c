"""Admin seller-metrics endpoints"""

from typing import Dict, List, Optional
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import logging
import uuid

from sellerhub.core.database import get_db
from sellerhub.core.exceptions import SellerNotFoundException
from sellerhub.core.security import require_admin
from sellerhub.models import User, UserRole
from sellerhub.models.seller_metrics import Timeframe
from sellerhub.schemas.metrics import OverrideResponse, ResolvedMetricsView, SnapshotResponse
from sellerhub.schemas.order import OrderDetail, SyntheticOrderCreate
from sellerhub.services.aggregate_provider import CalculatedAggregateProvider
from sellerhub.services.legacy_blob import LegacyBlobAdapter
from sellerhub.services.metric_vector import ALL_TIMEFRAMES
from sellerhub.services.metrics_resolver import (
    MetricsResolutionEngine, get_metrics_engine, parse_timeframes
)
from sellerhub.services.override_store import OverrideStore
from sellerhub.services.snapshot_store import SnapshotStore
from sellerhub.services.synthetic_orders import SyntheticOrderOverlay
from .schemas import (
    BulkResolveRequest,
    BulkResolveResponse,
    LegacyAnalyticsResponse,
    LegacyAnalyticsUpdate,
    OverrideListResponse,
    OverrideMutationResponse,
    OverrideUpsertRequest,
    ResolvedMetricsResponse,
    ResolveRequest,
    SellerAnalyticsResponse,
    SnapshotDeleteResponse,
    SnapshotListResponse,
    SnapshotOverviewItem,
    SnapshotUpsertRequest,
    StructuredOverridesResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

async def ensure_seller(db: AsyncSession, seller_id: uuid.UUID) -> User:
    """The seller account, or SellerNotFoundException"""
    result = await db.execute(
        select(User).where(User.id == seller_id, User.role == UserRole.SELLER)
    )
    seller = result.scalar_one_or_none()
    if seller is None:
        raise SellerNotFoundException(seller_id)
    return seller

def views_payload(views: Dict[Timeframe, ResolvedMetricsView]) -> Dict[str, ResolvedMetricsView]:
    return {timeframe.value: view for timeframe, view in views.items()}

# Overrides

@router.get("/sellers/{seller_id}/overrides", response_model=OverrideListResponse)
async def list_overrides(
    seller_id: uuid.UUID,
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """All overrides of a seller"""
    await ensure_seller(db, seller_id)
    overrides = await OverrideStore(db).get(seller_id)
    return OverrideListResponse(
        seller_id=seller_id,
        overrides=[OverrideResponse.model_validate(o) for o in overrides]
    )

@router.get("/sellers/{seller_id}/overrides/structured", response_model=StructuredOverridesResponse)
async def get_structured_overrides(
    seller_id: uuid.UUID,
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Override grid: every overridable metric for every timeframe"""
    await ensure_seller(db, seller_id)
    return StructuredOverridesResponse(
        seller_id=seller_id,
        overrides=await OverrideStore(db).structured_view(seller_id)
    )

@router.post("/sellers/{seller_id}/overrides", response_model=OverrideResponse)
async def upsert_override(
    seller_id: uuid.UUID,
    request: OverrideUpsertRequest,
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    engine: MetricsResolutionEngine = Depends(get_metrics_engine)
):
    """Create or update a single-metric override"""
    await ensure_seller(db, seller_id)
    store = OverrideStore(db)

    key, period, _ = store.validate(request.metric_key, request.period, request.value)

    original_value = request.original_value
    if original_value is None:
        original_value = await engine.current_value(seller_id, key, period)

    override = await store.upsert(
        seller_id=seller_id,
        metric_key=key,
        period=period,
        value=request.value,
        original_value=original_value
    )
    logger.info(
        f"Admin {current_user['id']} set override {key.value}/{period.value}={override.value} "
        f"for seller {seller_id}"
    )
    return OverrideResponse.model_validate(override)

@router.delete("/sellers/{seller_id}/overrides/{metric_key}", response_model=OverrideMutationResponse)
async def delete_override(
    seller_id: uuid.UUID,
    metric_key: str,
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Remove a metric's overrides across all periods (reset to computed)"""
    await ensure_seller(db, seller_id)
    deleted = await OverrideStore(db).delete(seller_id, metric_key)
    logger.info(f"Admin {current_user['id']} deleted {deleted} override(s) {metric_key} for seller {seller_id}")
    return OverrideMutationResponse(
        seller_id=seller_id,
        metric_key=metric_key,
        affected=deleted,
        message="Override removed" if deleted else "No override to remove"
    )

@router.put("/sellers/{seller_id}/overrides/{metric_key}/clear", response_model=OverrideMutationResponse)
async def clear_override(
    seller_id: uuid.UUID,
    metric_key: str,
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Zero a metric's overrides across all periods, keeping the rows"""
    await ensure_seller(db, seller_id)
    cleared = await OverrideStore(db).clear(seller_id, metric_key)
    logger.info(f"Admin {current_user['id']} cleared {cleared} override(s) {metric_key} for seller {seller_id}")
    return OverrideMutationResponse(
        seller_id=seller_id,
        metric_key=metric_key,
        affected=cleared,
        message="Override cleared" if cleared else "No override to clear"
    )

# Synthetic snapshots

@router.get("/snapshots", response_model=List[SnapshotOverviewItem])
async def list_all_snapshots(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Snapshots of every seller, most recently edited first"""
    rows = await SnapshotStore(db).list_all(limit=limit, offset=skip)
    return [
        SnapshotOverviewItem(
            **SnapshotResponse.model_validate(snapshot).model_dump(),
            seller_name=seller.name,
            seller_email=seller.email
        )
        for snapshot, seller in rows
    ]

@router.get("/sellers/{seller_id}/snapshots", response_model=SnapshotListResponse)
async def list_seller_snapshots(
    seller_id: uuid.UUID,
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    await ensure_seller(db, seller_id)
    snapshots = await SnapshotStore(db).list_for_seller(seller_id)
    return SnapshotListResponse(
        seller_id=seller_id,
        snapshots=[SnapshotResponse.model_validate(s) for s in snapshots]
    )

@router.post("/sellers/{seller_id}/snapshots", response_model=SnapshotResponse)
async def upsert_snapshot(
    seller_id: uuid.UUID,
    request: SnapshotUpsertRequest,
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Create or replace the synthetic snapshot for one timeframe"""
    await ensure_seller(db, seller_id)
    store = SnapshotStore(db)
    timeframe = store.parse_timeframe(request.timeframe)
    vector = store.parse_vector(request.metrics)

    snapshot = await store.upsert(seller_id, timeframe, vector)
    logger.info(f"Admin {current_user['id']} saved {timeframe.value} snapshot for seller {seller_id}")
    return SnapshotResponse.model_validate(snapshot)

@router.delete("/sellers/{seller_id}/snapshots", response_model=SnapshotDeleteResponse)
async def delete_snapshots(
    seller_id: uuid.UUID,
    timeframe: Optional[str] = Query(None, description="Omit to delete every timeframe"),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    await ensure_seller(db, seller_id)
    store = SnapshotStore(db)
    parsed = store.parse_timeframe(timeframe) if timeframe is not None else None

    deleted = await store.delete(seller_id, parsed)
    logger.info(
        f"Admin {current_user['id']} deleted {deleted} snapshot(s) "
        f"({parsed.value if parsed else 'all timeframes'}) for seller {seller_id}"
    )
    return SnapshotDeleteResponse(
        seller_id=seller_id,
        timeframe=parsed.value if parsed else None,
        deleted=deleted
    )

# Resolution

@router.post("/sellers/{seller_id}/metrics/resolve", response_model=ResolvedMetricsResponse)
async def resolve_seller_metrics(
    seller_id: uuid.UUID,
    request: ResolveRequest,
    current_user: dict = Depends(require_admin),
    engine: MetricsResolutionEngine = Depends(get_metrics_engine)
):
    """Resolved metrics with provenance for the requested timeframes"""
    views = await engine.resolve(seller_id, request.timeframes, strict=request.strict)
    return ResolvedMetricsResponse(seller_id=seller_id, timeframes=views_payload(views))

@router.post("/metrics/resolve", response_model=BulkResolveResponse)
async def bulk_resolve_metrics(
    request: BulkResolveRequest,
    current_user: dict = Depends(require_admin),
    engine: MetricsResolutionEngine = Depends(get_metrics_engine)
):
    """Resolve many sellers at once for list views"""
    results = await engine.resolve_many(request.seller_ids, request.timeframes)
    return BulkResolveResponse(
        results={str(seller_id): views_payload(views) for seller_id, views in results.items()}
    )

@router.get("/sellers/{seller_id}/analytics", response_model=SellerAnalyticsResponse)
async def get_seller_analytics(
    seller_id: uuid.UUID,
    timeframes: Optional[List[str]] = Query(None),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    engine: MetricsResolutionEngine = Depends(get_metrics_engine)
):
    """Resolved metrics next to the calculated stats and the legacy audit trail"""
    await ensure_seller(db, seller_id)
    requested = parse_timeframes(timeframes) if timeframes else list(ALL_TIMEFRAMES)

    views = await engine.resolve(seller_id, requested, check_seller=False)

    provider = CalculatedAggregateProvider(db)
    calculated = {}
    for timeframe in requested:
        calculated[timeframe.value] = await provider.compute_summary(seller_id, timeframe)

    legacy_vector, audit_trail = await LegacyBlobAdapter(db).read(seller_id)

    return SellerAnalyticsResponse(
        seller_id=seller_id,
        resolved=views_payload(views),
        calculated=calculated,
        legacy_analytics=legacy_vector,
        audit_trail=audit_trail
    )

@router.put(
    "/sellers/{seller_id}/analytics",
    response_model=LegacyAnalyticsResponse,
    deprecated=True,
    summary="Update legacy analytics (use overrides instead)"
)
async def update_legacy_analytics(
    seller_id: uuid.UUID,
    request: LegacyAnalyticsUpdate,
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Merge values into the legacy analytics blob and record an audit entry"""
    await ensure_seller(db, seller_id)

    audit_entry = dict(request.audit_info or {})
    audit_entry.setdefault("actor", current_user.get("email") or current_user["id"])

    blob = await LegacyBlobAdapter(db).write(seller_id, request.metrics, audit_entry)
    logger.warning(f"Admin {current_user['id']} wrote deprecated legacy analytics for seller {seller_id}")
    return LegacyAnalyticsResponse(
        seller_id=seller_id,
        analytics=blob.analytics or {},
        audit_trail=blob.audit_trail
    )

# Synthetic orders

@router.post(
    "/sellers/{seller_id}/synthetic-orders",
    response_model=OrderDetail,
    status_code=status.HTTP_201_CREATED
)
async def create_synthetic_order(
    seller_id: uuid.UUID,
    request: SyntheticOrderCreate,
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Inject a display-only order into a seller's order list"""
    await ensure_seller(db, seller_id)
    order = await SyntheticOrderOverlay(db).create_synthetic(seller_id, request)
    logger.info(f"Admin {current_user['id']} created synthetic order {order['order_number']} for seller {seller_id}")
    return order

@router.delete("/synthetic-orders/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_synthetic_order(
    order_id: uuid.UUID,
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    await SyntheticOrderOverlay(db).delete_synthetic(order_id)
    logger.info(f"Admin {current_user['id']} deleted synthetic order {order_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
