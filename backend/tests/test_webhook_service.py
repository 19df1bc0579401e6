"""
Tests for Printful webhook processing and token verification.
"""
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from decimal import Decimal

import pytest

from db_models import Order, Product
from domain.enums import OrderStatus
from services import order_store
from services.webhook_service import process_webhook, verify_webhook_token


@pytest.fixture
async def paid_order(db_session):
    order = Order(id="order-42", status=OrderStatus.PROCESSING.value, total=Decimal("60.00"))
    db_session.add(order)
    await db_session.commit()
    return order


class TestVerifyToken:

    @pytest.mark.unit
    def test_matching_token(self, make_settings):
        assert verify_webhook_token(make_settings(printful_webhook_token="s3cret"), "s3cret") is True

    @pytest.mark.unit
    def test_wrong_or_missing_token(self, make_settings):
        settings = make_settings(printful_webhook_token="s3cret")
        assert verify_webhook_token(settings, "nope") is False
        assert verify_webhook_token(settings, None) is False

    @pytest.mark.unit
    def test_unset_token_allowed_outside_production(self, make_settings):
        assert verify_webhook_token(make_settings(printful_webhook_token=""), None) is True

    @pytest.mark.unit
    def test_unset_token_fails_closed_in_production(self, make_settings):
        settings = make_settings(environment="production", printful_webhook_token="")
        assert verify_webhook_token(settings, None) is False
        assert verify_webhook_token(settings, "anything") is False


class TestProcessWebhook:

    @pytest.mark.unit
    async def test_package_shipped(self, db_session, paid_order):
        event = {
            "type": "package_shipped",
            "data": {
                "order": {"id": 987654, "external_id": "order-42"},
                "shipment": {"tracking_number": "1Z999", "tracking_url": "https://track/1Z999"},
            },
        }

        result = await process_webhook(event, db_session)

        assert result["status"] == "processed"
        order = await order_store.get_order(db_session, "order-42")
        assert order.status == OrderStatus.SHIPPED.value
        assert order.tracking_number == "1Z999"
        assert order.tracking_url == "https://track/1Z999"

    @pytest.mark.unit
    async def test_order_failed_cancels(self, db_session, paid_order):
        event = {"type": "order_failed", "data": {"order": {"external_id": "order-42"}, "reason": "Bad artwork"}}

        result = await process_webhook(event, db_session)

        assert result["orderStatus"] == OrderStatus.CANCELLED.value
        order = await order_store.get_order(db_session, "order-42")
        assert order.status == OrderStatus.CANCELLED.value
        assert order.failure_reason == "Bad artwork"

    @pytest.mark.unit
    @pytest.mark.parametrize("status", [OrderStatus.CANCELLED, OrderStatus.FAILED])
    async def test_package_shipped_does_not_revive_closed_order(self, db_session, status):
        db_session.add(Order(id="order-9", status=status.value, total=Decimal("10.00")))
        await db_session.commit()
        event = {
            "type": "package_shipped",
            "data": {
                "order": {"external_id": "order-9"},
                "shipment": {"tracking_number": "1Z777", "tracking_url": "https://track/1Z777"},
            },
        }

        result = await process_webhook(event, db_session)

        assert result["status"] == "ignored"
        assert result["reason"] == "terminal_state"
        order = await order_store.get_order(db_session, "order-9")
        assert order.status == status.value
        assert order.tracking_number == "1Z777"

    @pytest.mark.unit
    async def test_order_failed_leaves_delivered_order(self, db_session):
        db_session.add(Order(id="order-10", status=OrderStatus.DELIVERED.value, total=Decimal("10.00")))
        await db_session.commit()
        event = {"type": "order_failed", "data": {"order": {"external_id": "order-10"}, "reason": "Lost"}}

        result = await process_webhook(event, db_session)

        assert result["status"] == "ignored"
        assert result["reason"] == "terminal_state"
        order = await order_store.get_order(db_session, "order-10")
        assert order.status == OrderStatus.DELIVERED.value
        assert order.failure_reason is None

    @pytest.mark.unit
    async def test_order_created_stores_reference(self, db_session):
        db_session.add(Order(id="order-7", status=OrderStatus.PAYMENT_PENDING.value, total=Decimal("10.00")))
        await db_session.commit()
        event = {"type": "order_created", "data": {"order": {"id": 555, "external_id": "order-7"}}}

        await process_webhook(event, db_session)

        order = await order_store.get_order(db_session, "order-7")
        assert order.printful_order_id == "555"
        assert order.fulfillment_ref_kind == "real"
        assert order.status == OrderStatus.PROCESSING.value

    @pytest.mark.unit
    async def test_order_created_never_moves_backwards(self, db_session):
        db_session.add(Order(id="order-8", status=OrderStatus.SHIPPED.value, total=Decimal("10.00")))
        await db_session.commit()
        event = {"type": "order_created", "data": {"order": {"id": 556, "external_id": "order-8"}}}

        result = await process_webhook(event, db_session)

        assert result["orderStatus"] == OrderStatus.SHIPPED.value
        order = await order_store.get_order(db_session, "order-8")
        assert order.status == OrderStatus.SHIPPED.value

    @pytest.mark.unit
    @pytest.mark.parametrize("quantity,in_stock", [(0, False), (5, True)])
    async def test_stock_updated(self, db_session, sample_products, quantity, in_stock):
        event = {"type": "stock_updated", "data": {"sync_variant_id": 5001, "quantity": quantity}}

        result = await process_webhook(event, db_session)

        assert result["inStock"] is in_stock
        tee = await db_session.get(Product, sample_products["tee"].id, populate_existing=True)
        assert tee.in_stock is in_stock

    @pytest.mark.unit
    async def test_unknown_order_ignored(self, db_session):
        event = {"type": "package_shipped", "data": {"order": {"external_id": "missing"}}}
        result = await process_webhook(event, db_session)
        assert result == {"status": "ignored", "reason": "unknown_order", "orderId": "missing"}

    @pytest.mark.unit
    async def test_unhandled_type_ignored(self, db_session):
        result = await process_webhook({"type": "product_synced", "data": {}}, db_session)
        assert result["status"] == "ignored"
        assert result["reason"] == "unhandled_type"
