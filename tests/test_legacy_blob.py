"""
Legacy analytics blob adapter tests
"""
import json

import pytest

from sellerhub.core.exceptions import MetricValidationException
from sellerhub.models import SellerProfile
from sellerhub.models.seller_metrics import MetricKey
from sellerhub.services.legacy_blob import LegacyBlobAdapter, parse_blob
from tests.factories import set_business_info


LEGACY_DOCUMENT = {
    "companyName": "Legacy Traders",
    "analytics": {
        "totalSales": 1500,
        "totalOrders": 12,
        "totalProducts": 4,
        "totalCustomers": 9,
        "averageOrderValue": 125,
        "conversionRate": 2.5,
        "customerSatisfaction": 4.1,
        "monthlyGrowth": 3,
    },
    "auditTrail": [
        {"changedFields": ["totalSales"], "adminEmail": "ops@example.com", "timestamp": "2024-03-01T10:00:00Z"},
        "not-an-entry",
    ],
}


async def test_read_maps_legacy_fields(db, seller):
    await set_business_info(db, seller, json.dumps(LEGACY_DOCUMENT))

    vector, trail = await LegacyBlobAdapter(db).read(seller.id)

    assert vector == {
        MetricKey.TOTAL_SALES: 1500.0,
        MetricKey.ORDERS_SOLD: 12,
        MetricKey.TOTAL_PRODUCTS: 4,
        MetricKey.TOTAL_CUSTOMERS: 9,
        MetricKey.SHOP_RATING: 4.1,
    }
    assert len(trail) == 1
    assert trail[0].actor == "ops@example.com"
    assert trail[0].changed_fields == ["totalSales"]


@pytest.mark.parametrize("raw", [None, "", "{not json", "[object Object]", "[1, 2]", '"text"'])
async def test_malformed_or_absent_reads_as_nothing(db, seller, raw):
    await set_business_info(db, seller, raw)

    assert await LegacyBlobAdapter(db).read(seller.id) == (None, [])


async def test_seller_without_profile(db, seller):
    assert await LegacyBlobAdapter(db).read(seller.id) == (None, [])


async def test_document_without_analytics_has_no_vector(db, seller):
    await set_business_info(db, seller, json.dumps({"companyName": "X", "auditTrail": []}))

    vector, trail = await LegacyBlobAdapter(db).read(seller.id)

    assert vector is None
    assert trail == []


async def test_write_merges_and_appends_audit(db, seller):
    await set_business_info(db, seller, json.dumps(LEGACY_DOCUMENT))
    adapter = LegacyBlobAdapter(db)

    blob = await adapter.write(
        seller.id,
        {"totalOrders": 20, "visitors": 300, "bounceRate": 0.7},
        {"actor": "admin@example.com", "reason": "correction"},
    )

    assert blob.analytics[MetricKey.ORDERS_SOLD] == 20
    assert blob.analytics[MetricKey.VISITORS] == 300
    assert blob.analytics[MetricKey.TOTAL_SALES] == 1500.0
    assert len(blob.audit_trail) == 2
    assert blob.audit_trail[-1].changed_fields == ["totalOrders", "visitors"]
    assert blob.audit_trail[-1].timestamp is not None

    profile = await db.get(SellerProfile, (await _profile_id(db, seller)))
    stored = json.loads(profile.business_info)
    # Other profile keys and unknown analytics fields survive
    assert stored["companyName"] == "Legacy Traders"
    assert stored["analytics"]["monthlyGrowth"] == 3
    assert "bounceRate" not in stored["analytics"]
    assert stored["auditTrail"][-1]["reason"] == "correction"


async def test_write_creates_profile_and_blob(db, seller):
    blob = await LegacyBlobAdapter(db).write(seller.id, {"ordersSold": 5}, None)

    vector, trail = await LegacyBlobAdapter(db).read(seller.id)
    assert blob.analytics[MetricKey.ORDERS_SOLD] == 5
    assert vector[MetricKey.ORDERS_SOLD] == 5
    assert vector[MetricKey.TOTAL_SALES] == 0
    assert len(trail) == 1


async def test_write_rejects_non_numeric_value(db, seller):
    with pytest.raises(MetricValidationException):
        await LegacyBlobAdapter(db).write(seller.id, {"totalSales": "lots"}, None)


def test_parse_blob_skips_bad_values():
    blob = parse_blob(json.dumps({"analytics": {"totalSales": "n/a", "totalOrders": 3}}))

    assert blob.analytics == {MetricKey.ORDERS_SOLD: 3}
    assert blob.version == 1


async def _profile_id(db, seller):
    from sqlalchemy import select

    result = await db.execute(select(SellerProfile.id).where(SellerProfile.user_id == seller.id))
    return result.scalar_one()
