"""
Synthetic order overlay tests
"""
import uuid
from datetime import timedelta

import pytest

from sellerhub.core.exceptions import NotFoundException, SyntheticOrderReadOnlyException
from sellerhub.models import OrderStatus, SyntheticOrder
from sellerhub.schemas.order import OrderFilter, SyntheticOrderCreate
from sellerhub.services.synthetic_orders import SyntheticOrderOverlay
from sellerhub.utils.helpers import utcnow
from tests.factories import create_order, create_product, create_synthetic_order, hours_ago


@pytest.fixture
async def mixed_orders(db, seller, buyer):
    """Three real and two synthetic orders, interleaved in time"""
    return {
        "real_1h": await create_order(db, seller, buyer, total=10, created_at=hours_ago(1)),
        "syn_2h": await create_synthetic_order(db, seller, total=20, created_at=hours_ago(2), customer_name="Asha Rao"),
        "real_3h": await create_order(db, seller, buyer, total=30, created_at=hours_ago(3)),
        "syn_4h": await create_synthetic_order(db, seller, total=40, created_at=hours_ago(4)),
        "real_5h": await create_order(
            db, seller, buyer, total=50, created_at=hours_ago(5), status=OrderStatus.SHIPPED
        ),
    }


class TestListing:

    async def test_first_page_takes_newest_across_both_sets(self, db, seller, mixed_orders):
        page = await SyntheticOrderOverlay(db).list_orders(seller.id, page=1, page_size=2)

        assert [o["id"] for o in page["orders"]] == [mixed_orders["real_1h"].id, mixed_orders["syn_2h"].id]
        assert [o["is_synthetic"] for o in page["orders"]] == [False, True]
        assert page["total"] == 5
        assert page["total_pages"] == 3

    async def test_later_pages(self, db, seller, mixed_orders):
        overlay = SyntheticOrderOverlay(db)

        second = await overlay.list_orders(seller.id, page=2, page_size=2)
        third = await overlay.list_orders(seller.id, page=3, page_size=2)
        beyond = await overlay.list_orders(seller.id, page=4, page_size=2)

        assert [o["id"] for o in second["orders"]] == [mixed_orders["real_3h"].id, mixed_orders["syn_4h"].id]
        assert [o["id"] for o in third["orders"]] == [mixed_orders["real_5h"].id]
        assert beyond["orders"] == []
        assert beyond["total"] == 5

    async def test_no_orders(self, db, seller):
        page = await SyntheticOrderOverlay(db).list_orders(seller.id)

        assert page["orders"] == []
        assert page["total"] == 0
        assert page["total_pages"] == 0

    async def test_other_sellers_are_excluded(self, db, seller, other_seller, buyer, mixed_orders):
        await create_order(db, other_seller, buyer, created_at=hours_ago(0.5))
        await create_synthetic_order(db, other_seller, created_at=hours_ago(0.5))

        page = await SyntheticOrderOverlay(db).list_orders(seller.id, page_size=10)

        assert page["total"] == 5

    async def test_status_filter_applies_to_both_sets(self, db, seller, mixed_orders):
        overlay = SyntheticOrderOverlay(db)

        delivered = await overlay.list_orders(seller.id, OrderFilter(status=OrderStatus.DELIVERED))
        shipped = await overlay.list_orders(seller.id, OrderFilter(status=OrderStatus.SHIPPED))

        assert delivered["total"] == 2
        assert all(o["is_synthetic"] for o in delivered["orders"])
        assert [o["id"] for o in shipped["orders"]] == [mixed_orders["real_5h"].id]

    async def test_date_range_includes_whole_end_day(self, db, seller, buyer):
        now = utcnow()
        old = await create_order(db, seller, buyer, created_at=now - timedelta(days=10))
        await create_synthetic_order(db, seller, created_at=now - timedelta(days=40))

        page = await SyntheticOrderOverlay(db).list_orders(
            seller.id,
            OrderFilter(start_date=(now - timedelta(days=11)).date(), end_date=(now - timedelta(days=10)).date()),
        )

        assert [o["id"] for o in page["orders"]] == [old.id]

    async def test_search_matches_customer_and_product(self, db, seller, buyer):
        product = await create_product(db, seller)
        real = await create_order(db, seller, buyer, items=[(product, 2)])
        synthetic = await create_synthetic_order(db, seller, customer_name="Asha Rao")
        await create_synthetic_order(db, seller, customer_name="Someone Else")
        overlay = SyntheticOrderOverlay(db)

        by_product = await overlay.list_orders(seller.id, OrderFilter(search=product.name.lower()))
        by_customer = await overlay.list_orders(seller.id, OrderFilter(search="asha"))

        assert [o["id"] for o in by_product["orders"]] == [real.id]
        assert by_product["orders"][0]["item_count"] == 2
        assert [o["id"] for o in by_customer["orders"]] == [synthetic.id]

    async def test_synthetic_fetch_cap(self, db, seller, buyer, monkeypatch):
        from sellerhub.core.config import settings

        monkeypatch.setattr(settings, "SYNTHETIC_ORDER_FETCH_CAP", 1)
        newest = await create_synthetic_order(db, seller, created_at=hours_ago(1))
        await create_synthetic_order(db, seller, created_at=hours_ago(2))
        await create_synthetic_order(db, seller, created_at=hours_ago(3))
        real = await create_order(db, seller, buyer, created_at=hours_ago(10))
        overlay = SyntheticOrderOverlay(db)

        first = await overlay.list_orders(seller.id, page_size=1)
        pages = [first["orders"]]
        for number in range(2, first["total_pages"] + 2):
            pages.append((await overlay.list_orders(seller.id, page=number, page_size=1))["orders"])

        assert first["total"] == 2
        assert first["total_pages"] == 2
        assert len([rows for rows in pages if rows]) == first["total_pages"]
        assert [rows[0]["id"] for rows in pages if rows] == [newest.id, real.id]

    async def test_equal_timestamps_page_without_overlap(self, db, seller, buyer):
        created_at = hours_ago(1)
        expected = set()
        for _ in range(3):
            expected.add((await create_order(db, seller, buyer, created_at=created_at)).id)
            expected.add((await create_synthetic_order(db, seller, created_at=created_at)).id)
        overlay = SyntheticOrderOverlay(db)

        seen = []
        for number in range(1, 7):
            page = await overlay.list_orders(seller.id, page=number, page_size=1)
            seen.extend(o["id"] for o in page["orders"])

        assert len(seen) == 6
        assert set(seen) == expected


class TestDetail:

    async def test_real_order_detail(self, db, seller, buyer):
        order = await create_order(db, seller, buyer, total=75)

        detail = await SyntheticOrderOverlay(db).get_order(order.id, seller_id=seller.id)

        assert detail["is_synthetic"] is False
        assert detail["seller_name"] == seller.name
        assert detail["customer_email"] == buyer.email
        assert detail["payment_status"] == "pending"

    async def test_synthetic_order_detail(self, db, seller):
        order = await create_synthetic_order(db, seller, total=20, customer_name="Asha Rao")

        detail = await SyntheticOrderOverlay(db).get_order(order.id)

        assert detail["is_synthetic"] is True
        assert detail["customer_name"] == "Asha Rao"
        assert detail["seller_name"] == seller.name
        assert detail["payment_status"] is None
        assert detail["items"][0]["product_id"] is None

    async def test_other_sellers_order_is_not_found(self, db, seller, other_seller, buyer):
        order = await create_order(db, other_seller, buyer)
        synthetic = await create_synthetic_order(db, other_seller)
        overlay = SyntheticOrderOverlay(db)

        for order_id in (order.id, synthetic.id, uuid.uuid4()):
            with pytest.raises(NotFoundException) as exc_info:
                await overlay.get_order(order_id, seller_id=seller.id)
            assert exc_info.value.error_code == "ORDER_NOT_FOUND"


class TestMutations:

    async def test_ensure_mutable(self, db, seller, buyer):
        order = await create_order(db, seller, buyer)
        synthetic = await create_synthetic_order(db, seller)
        overlay = SyntheticOrderOverlay(db)

        assert (await overlay.ensure_mutable(order.id)).id == order.id
        with pytest.raises(SyntheticOrderReadOnlyException) as exc_info:
            await overlay.ensure_mutable(synthetic.id)
        assert exc_info.value.status_code == 409
        with pytest.raises(NotFoundException):
            await overlay.ensure_mutable(uuid.uuid4())

    async def test_create_computes_totals(self, db, seller):
        backdated = hours_ago(24 * 3)
        data = SyntheticOrderCreate(
            customer_name="Asha Rao",
            items=[
                {"product_name": "Mug", "quantity": 2, "unit_price": 12.5},
                {"product_name": "Tray", "unit_price": 5},
            ],
            tax_amount=3,
            shipping_amount=2,
            created_at=backdated,
        )

        detail = await SyntheticOrderOverlay(db).create_synthetic(seller.id, data)

        assert detail["order_number"].startswith("SYN")
        assert detail["subtotal"] == pytest.approx(30.0)
        assert detail["total_amount"] == pytest.approx(35.0)
        assert detail["status"] == OrderStatus.DELIVERED
        assert len(detail["items"]) == 2

        page = await SyntheticOrderOverlay(db).list_orders(seller.id, OrderFilter(end_date=backdated.date()))
        assert [o["id"] for o in page["orders"]] == [detail["id"]]

    async def test_delete_synthetic(self, db, seller):
        synthetic = await create_synthetic_order(db, seller)
        overlay = SyntheticOrderOverlay(db)

        await overlay.delete_synthetic(synthetic.id)

        assert await db.get(SyntheticOrder, synthetic.id) is None
        with pytest.raises(NotFoundException):
            await overlay.delete_synthetic(synthetic.id)
