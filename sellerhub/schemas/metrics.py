"""Metric schemas shared by the resolution engine and the API"""

from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Any, Dict, List, Optional, Set, Union
from datetime import datetime
import uuid

from sellerhub.models.seller_metrics import MetricKey, Timeframe

MetricValue = Union[int, float]

class ResolvedMetricsView(BaseModel):
    """Final metric vector for one timeframe plus where each number came from"""

    timeframe: Timeframe
    vector: Dict[MetricKey, MetricValue]
    used_synthetic: bool = False
    used_override_keys: Set[MetricKey] = Field(default_factory=set)
    used_legacy_blob: bool = False

    # Set when the calculated aggregate could not be computed
    degraded: bool = False
    error: Optional[str] = None

class OverrideResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    seller_id: uuid.UUID
    metric_key: str
    period: str
    value: float
    original_value: Optional[float] = None
    created_at: datetime
    updated_at: datetime

class SnapshotResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    seller_id: uuid.UUID
    timeframe: str
    metrics: Dict[str, MetricValue]
    created_at: datetime
    updated_at: datetime

# Legacy analytics blob stored in SellerProfile.business_info

_ACTOR_KEYS = ("actor", "adminEmail", "admin_email", "changedBy", "adminId", "admin_id")

class LegacyAuditEntry(BaseModel):
    """One admin edit recorded in the legacy blob"""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    changed_fields: List[str] = Field(default_factory=list, alias="changedFields")
    actor: Optional[str] = None
    timestamp: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def pick_actor(cls, data: Any):
        # Older entries name the editor under several different keys
        if isinstance(data, dict) and not data.get("actor"):
            for key in _ACTOR_KEYS[1:]:
                if data.get(key):
                    data = {**data, "actor": str(data[key])}
                    break
        return data

class LegacyAnalyticsBlob(BaseModel):
    """Typed view of the deprecated analytics structure"""

    version: int = 1
    # None when the document has no usable analytics section
    analytics: Optional[Dict[MetricKey, MetricValue]] = None
    audit_trail: List[LegacyAuditEntry] = Field(default_factory=list)
