"""Admin seller-metrics schemas"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime
import uuid

from sellerhub.models.seller_metrics import MetricKey
from sellerhub.schemas.metrics import (
    LegacyAuditEntry, MetricValue, OverrideResponse, ResolvedMetricsView, SnapshotResponse
)

class OverrideUpsertRequest(BaseModel):
    metric_key: str = Field(..., max_length=50)
    value: float
    period: str = Field("total", max_length=20)
    # Recorded for audit; defaults to the value currently shown without overrides
    original_value: Optional[float] = None

class OverrideListResponse(BaseModel):
    seller_id: uuid.UUID
    overrides: List[OverrideResponse]

class OverrideMutationResponse(BaseModel):
    seller_id: uuid.UUID
    metric_key: str
    affected: int
    message: str

class OverrideCell(BaseModel):
    value: float
    original: Optional[float] = None
    has_override: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class StructuredOverridesResponse(BaseModel):
    seller_id: uuid.UUID
    # timeframe -> metric -> cell
    overrides: Dict[str, Dict[str, OverrideCell]]

class SnapshotUpsertRequest(BaseModel):
    timeframe: str = Field(..., max_length=20)
    metrics: Dict[str, Any] = Field(default_factory=dict)

class SnapshotListResponse(BaseModel):
    seller_id: uuid.UUID
    snapshots: List[SnapshotResponse]

class SnapshotOverviewItem(SnapshotResponse):
    seller_name: Optional[str] = None
    seller_email: Optional[str] = None

class SnapshotDeleteResponse(BaseModel):
    seller_id: uuid.UUID
    timeframe: Optional[str] = None
    deleted: int

class ResolveRequest(BaseModel):
    timeframes: Optional[List[str]] = None
    strict: bool = False

class ResolvedMetricsResponse(BaseModel):
    seller_id: uuid.UUID
    timeframes: Dict[str, ResolvedMetricsView]

class BulkResolveRequest(BaseModel):
    seller_ids: List[uuid.UUID] = Field(..., min_length=1, max_length=200)
    timeframes: Optional[List[str]] = None

class BulkResolveResponse(BaseModel):
    results: Dict[str, Dict[str, ResolvedMetricsView]]

class SellerAnalyticsResponse(BaseModel):
    """Resolved numbers next to the raw calculated stats they started from"""
    seller_id: uuid.UUID
    resolved: Dict[str, ResolvedMetricsView]
    calculated: Dict[str, Dict[str, Any]]
    legacy_analytics: Optional[Dict[MetricKey, MetricValue]] = None
    audit_trail: List[LegacyAuditEntry] = Field(default_factory=list)

class LegacyAnalyticsUpdate(BaseModel):
    metrics: Dict[str, Any] = Field(..., min_length=1)
    audit_info: Optional[Dict[str, Any]] = None

class LegacyAnalyticsResponse(BaseModel):
    seller_id: uuid.UUID
    analytics: Dict[MetricKey, MetricValue]
    audit_trail: List[LegacyAuditEntry]
