"""
Legacy analytics blob adapter

Sellers created before per-metric overrides existed carry admin-edited
analytics inside SellerProfile.business_info, a JSON document shaped like

    {"analytics": {"totalSales": 0, "totalOrders": 0, ...},
     "auditTrail": [{"changedFields": [...], "actor": "...", "timestamp": "..."}],
     ...other profile keys}

Reads tolerate unknown keys and malformed content. Writes only touch the
analytics and audit trail and keep every other key of the document.
"""

from typing import Any, Dict, List, Mapping, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from pydantic import ValidationError
import json
import logging
import uuid

from sellerhub.core.exceptions import MetricValidationException
from sellerhub.models import SellerProfile
from sellerhub.models.seller_metrics import MetricKey
from sellerhub.schemas.metrics import LegacyAnalyticsBlob, LegacyAuditEntry
from sellerhub.utils.helpers import utcnow
from .metric_vector import MetricVector, coerce_value

logger = logging.getLogger(__name__)

BLOB_VERSION = 2

# Stored field name -> metric
LEGACY_FIELDS = {
    "totalSales": MetricKey.TOTAL_SALES,
    "totalOrders": MetricKey.ORDERS_SOLD,
    "totalProducts": MetricKey.TOTAL_PRODUCTS,
    "totalCustomers": MetricKey.TOTAL_CUSTOMERS,
    "customerSatisfaction": MetricKey.SHOP_RATING,
}
_STORED_NAMES = {key: name for name, key in LEGACY_FIELDS.items()}

def _metric_for(field: Any) -> Optional[MetricKey]:
    if isinstance(field, str) and field in LEGACY_FIELDS:
        return LEGACY_FIELDS[field]
    return MetricKey.parse(field)

def _load_document(raw: Optional[str]) -> Optional[Dict[str, Any]]:
    if not raw or raw == "[object Object]":
        return None
    try:
        document = json.loads(raw)
    except (TypeError, ValueError):
        return None
    if not isinstance(document, dict):
        return None
    return document

def parse_blob(raw: Optional[str]) -> Optional[LegacyAnalyticsBlob]:
    """Typed view of a business_info document, None when absent or malformed"""
    document = _load_document(raw)
    if document is None:
        return None

    analytics: Optional[MetricVector] = None
    raw_analytics = document.get("analytics")
    if isinstance(raw_analytics, dict):
        analytics = {}
        for field, value in raw_analytics.items():
            key = _metric_for(field)
            if key is None:
                continue
            try:
                analytics[key] = coerce_value(key, value)
            except ValueError:
                continue

    trail: List[LegacyAuditEntry] = []
    raw_trail = document.get("auditTrail")
    if isinstance(raw_trail, list):
        for entry in raw_trail:
            try:
                trail.append(LegacyAuditEntry.model_validate(entry))
            except ValidationError:
                logger.debug(f"Skipping malformed legacy audit entry: {entry!r}")

    version = document.get("analyticsVersion")
    return LegacyAnalyticsBlob(
        version=version if isinstance(version, int) else 1,
        analytics=analytics,
        audit_trail=trail,
    )

class LegacyBlobAdapter:
    """Read/write access to the legacy analytics blob of a seller profile"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _profile(self, seller_id: uuid.UUID) -> Optional[SellerProfile]:
        result = await self.db.execute(
            select(SellerProfile).where(SellerProfile.user_id == seller_id)
        )
        return result.scalar_one_or_none()

    async def read(self, seller_id: uuid.UUID) -> Tuple[Optional[MetricVector], List[LegacyAuditEntry]]:
        """
        (vector, audit_trail) from the seller profile

        The vector is None when the document or its analytics section is
        missing or malformed. A malformed document also yields an empty trail.
        """
        profile = await self._profile(seller_id)
        if profile is None:
            return None, []

        blob = parse_blob(profile.business_info)
        if blob is None:
            return None, []
        return blob.analytics, blob.audit_trail

    async def write(
        self,
        seller_id: uuid.UUID,
        partial_vector: Mapping[Any, Any],
        audit_entry: Optional[Mapping[str, Any]] = None,
    ) -> LegacyAnalyticsBlob:
        """
        Merge known metrics into the blob and append an audit entry

        Creates the seller profile when the seller has none yet.

        Args:
            seller_id: Seller whose business info holds the blob
            partial_vector: Metrics to merge; unknown keys are ignored
            audit_entry: Optional entry appended to the blob's audit trail

        Returns:
            The blob as written
        """
        profile = await self._profile(seller_id)
        if profile is None:
            profile = SellerProfile(user_id=seller_id)
            self.db.add(profile)

        document = _load_document(profile.business_info) or {}
        analytics = document.get("analytics")
        if not isinstance(analytics, dict):
            analytics = {name: 0 for name in LEGACY_FIELDS}

        changed: List[str] = []
        for field, value in partial_vector.items():
            key = _metric_for(field)
            if key is None:
                continue
            stored_name = _STORED_NAMES.get(key, key.value)
            try:
                analytics[stored_name] = coerce_value(key, value)
            except ValueError as e:
                raise MetricValidationException(str(field), str(e))
            changed.append(stored_name)

        trail = document.get("auditTrail")
        if not isinstance(trail, list):
            trail = []

        entry = dict(audit_entry or {})
        entry.setdefault("changedFields", changed)
        entry["timestamp"] = utcnow().isoformat()
        # Validates the shape before it is persisted
        trail.append(LegacyAuditEntry.model_validate(entry).model_dump(mode="json", by_alias=True))

        document["analytics"] = analytics
        document["auditTrail"] = trail
        document["analyticsVersion"] = BLOB_VERSION

        profile.business_info = json.dumps(document)
        profile.updated_at = utcnow()
        await self.db.commit()

        logger.info(f"Legacy analytics updated for seller {seller_id}: {', '.join(changed) or 'no fields'}")
        return parse_blob(profile.business_info)
