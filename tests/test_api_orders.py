"""
Order and seller dashboard API tests
"""
import uuid

import pytest

from sellerhub.models import OrderStatus
from sellerhub.services.override_store import OverrideStore
from tests.factories import (
    auth_headers, create_order, create_product, create_synthetic_order, hours_ago
)


ORDERS = "/api/v1/orders"


class TestListing:

    async def test_seller_sees_merged_page(self, client, db, seller, other_seller, buyer):
        real = await create_order(db, seller, buyer, created_at=hours_ago(1))
        synthetic = await create_synthetic_order(db, seller, created_at=hours_ago(2))
        await create_order(db, seller, buyer, created_at=hours_ago(3))
        await create_order(db, other_seller, buyer, created_at=hours_ago(0.5))

        response = await client.get(f"{ORDERS}/", params={"page": 1, "size": 2}, headers=auth_headers(seller))

        assert response.status_code == 200
        body = response.json()
        assert [o["id"] for o in body["orders"]] == [str(real.id), str(synthetic.id)]
        assert body["total"] == 3
        assert body["total_pages"] == 2

    async def test_filters_are_passed_through(self, client, db, seller, buyer):
        await create_order(db, seller, buyer, status=OrderStatus.SHIPPED)
        await create_synthetic_order(db, seller)

        response = await client.get(f"{ORDERS}/", params={"status": "shipped"}, headers=auth_headers(seller))

        assert [o["is_synthetic"] for o in response.json()["orders"]] == [False]

    async def test_inverted_date_range_is_rejected(self, client, seller):
        response = await client.get(
            f"{ORDERS}/",
            params={"start_date": "2024-05-10", "end_date": "2024-05-01"},
            headers=auth_headers(seller),
        )

        assert response.status_code == 400

    async def test_admin_must_name_seller(self, client, db, seller, admin):
        await create_synthetic_order(db, seller)

        missing = await client.get(f"{ORDERS}/", headers=auth_headers(admin))
        named = await client.get(f"{ORDERS}/", params={"seller_id": str(seller.id)}, headers=auth_headers(admin))

        assert missing.status_code == 400
        assert named.json()["total"] == 1

    async def test_buyers_are_forbidden(self, client, buyer):
        response = await client.get(f"{ORDERS}/", headers=auth_headers(buyer))

        assert response.status_code == 403


class TestDetail:

    async def test_real_and_synthetic_detail(self, client, db, seller, buyer):
        real = await create_order(db, seller, buyer)
        synthetic = await create_synthetic_order(db, seller, customer_name="Asha Rao")
        headers = auth_headers(seller)

        real_body = (await client.get(f"{ORDERS}/{real.id}", headers=headers)).json()
        synthetic_body = (await client.get(f"{ORDERS}/{synthetic.id}", headers=headers)).json()

        assert real_body["is_synthetic"] is False
        assert real_body["seller_name"] == seller.name
        assert synthetic_body["is_synthetic"] is True
        assert synthetic_body["customer_name"] == "Asha Rao"
        assert synthetic_body["seller_name"] == seller.name

    async def test_other_sellers_order_is_404(self, client, db, seller, other_seller, buyer):
        order = await create_order(db, other_seller, buyer)

        response = await client.get(f"{ORDERS}/{order.id}", headers=auth_headers(seller))

        assert response.status_code == 404
        assert response.json()["error_code"] == "ORDER_NOT_FOUND"


class TestMutations:

    async def test_status_update_on_real_order(self, client, db, seller, buyer):
        order = await create_order(db, seller, buyer, status=OrderStatus.SHIPPED)

        response = await client.patch(
            f"{ORDERS}/{order.id}/status",
            json={"status": "delivered", "tracking_number": "TRK-1"},
            headers=auth_headers(seller),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "delivered"
        assert body["payment_status"] == "completed"
        assert body["tracking_number"] == "TRK-1"

    async def test_invalid_transition(self, client, db, seller, buyer):
        order = await create_order(db, seller, buyer, status=OrderStatus.PENDING)

        response = await client.patch(
            f"{ORDERS}/{order.id}/status", json={"status": "delivered"}, headers=auth_headers(seller)
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_STATUS_TRANSITION"
        assert response.json()["message"].endswith("Allowed: cancelled, confirmed")

    @pytest.mark.parametrize("action", ["status", "cancel"])
    async def test_synthetic_orders_are_read_only(self, client, db, seller, action):
        synthetic = await create_synthetic_order(db, seller, status=OrderStatus.PENDING)
        headers = auth_headers(seller)

        if action == "status":
            response = await client.patch(
                f"{ORDERS}/{synthetic.id}/status", json={"status": "confirmed"}, headers=headers
            )
        else:
            response = await client.post(
                f"{ORDERS}/{synthetic.id}/cancel", json={"reason": "customer request"}, headers=headers
            )

        assert response.status_code == 409
        assert response.json()["error_code"] == "SYNTHETIC_ORDER_READ_ONLY"

    async def test_cancel_restores_stock(self, client, db, seller, buyer):
        product = await create_product(db, seller, stock=5)
        order = await create_order(db, seller, buyer, items=[(product, 3)])

        response = await client.post(
            f"{ORDERS}/{order.id}/cancel", json={"reason": "out of stock"}, headers=auth_headers(seller)
        )

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"
        assert response.json()["cancellation_reason"] == "out of stock"
        await db.refresh(product)
        assert product.stock == 8

    async def test_cancel_other_sellers_order_is_forbidden(self, client, db, seller, other_seller, buyer):
        order = await create_order(db, other_seller, buyer)

        response = await client.post(
            f"{ORDERS}/{order.id}/cancel", json={"reason": "not mine"}, headers=auth_headers(seller)
        )

        assert response.status_code == 403

    async def test_unknown_order_is_404(self, client, seller):
        response = await client.patch(
            f"{ORDERS}/{uuid.uuid4()}/status", json={"status": "confirmed"}, headers=auth_headers(seller)
        )

        assert response.status_code == 404


class TestSellerDashboard:

    async def test_seller_gets_own_resolved_metrics(self, client, db, seller):
        await OverrideStore(db).upsert(seller.id, "visitors", "today", 321)

        response = await client.get(
            "/api/v1/analytics/seller/dashboard", params={"timeframes": ["today"]}, headers=auth_headers(seller)
        )

        assert response.status_code == 200
        body = response.json()
        assert body["seller_id"] == str(seller.id)
        assert list(body["timeframes"]) == ["today"]
        assert body["timeframes"]["today"]["vector"]["visitors"] == 321

    async def test_default_is_every_timeframe(self, client, seller):
        response = await client.get("/api/v1/analytics/seller/dashboard", headers=auth_headers(seller))

        assert set(response.json()["timeframes"]) == {"today", "last7Days", "last30Days", "total"}

    async def test_admin_needs_seller_id(self, client, seller, admin):
        missing = await client.get("/api/v1/analytics/seller/dashboard", headers=auth_headers(admin))
        named = await client.get(
            "/api/v1/analytics/seller/dashboard",
            params={"seller_id": str(seller.id)},
            headers=auth_headers(admin),
        )

        assert missing.status_code == 400
        assert named.status_code == 200
