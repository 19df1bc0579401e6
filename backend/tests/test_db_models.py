"""
Tests for ORM database models, fulfillment references and status rules.

Tests: Model defaults, relationships, reference column round trip,
lifecycle transitions.
"""
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from domain import references
from domain.enums import FulfillmentStatus, OrderStatus
from domain.references import PlaceholderFulfillmentRef, RealFulfillmentRef


class TestTimestamps:

    @pytest.mark.unit
    def test_utcnow_is_naive_utc(self):
        from db_models import utcnow
        now = utcnow()
        assert now.tzinfo is None
        assert abs(datetime.now(timezone.utc).replace(tzinfo=None) - now) < timedelta(seconds=5)


class TestOrderModel:

    @pytest.mark.integration
    async def test_order_defaults(self, db_session):
        from db_models import Order
        db_session.add(Order(id="order-1", total=Decimal("10.00")))
        await db_session.commit()

        order = (await db_session.execute(select(Order).where(Order.id == "order-1"))).scalar_one()
        assert order.status == OrderStatus.PENDING.value
        assert order.fulfillment_status == FulfillmentStatus.NOT_STARTED.value
        assert order.fulfillment_reference is None
        assert order.created_at is not None

    @pytest.mark.integration
    async def test_shipping_address_picks_shipping_type(self, db_session):
        from db_models import Address, Order
        db_session.add(Order(id="order-2", total=Decimal("10.00")))
        db_session.add(Address(id="a-1", order_id="order-2", type="billing", full_name="Billing",
                               address_line1="x", city="x", postal_code="x", country="x"))
        db_session.add(Address(id="a-2", order_id="order-2", type="shipping", full_name="Shipping",
                               address_line1="y", city="y", postal_code="y", country="y"))
        await db_session.commit()

        order = (await db_session.execute(
            select(Order).where(Order.id == "order-2").options(selectinload(Order.addresses))
        )).scalar_one()
        assert order.shipping_address.full_name == "Shipping"

    @pytest.mark.integration
    async def test_placeholder_reference_from_columns(self, db_session):
        from db_models import Order
        db_session.add(Order(id="order-3", total=Decimal("10.00"),
                             **references.to_columns(PlaceholderFulfillmentRef("placeholder-abc"))))
        await db_session.commit()

        order = (await db_session.execute(select(Order).where(Order.id == "order-3"))).scalar_one()
        assert order.fulfillment_reference == PlaceholderFulfillmentRef("placeholder-abc")


class TestReferences:

    @pytest.mark.unit
    def test_real_reference_columns(self):
        assert references.to_columns(RealFulfillmentRef("123")) == {
            "printful_order_id": "123",
            "fulfillment_ref_kind": "real",
        }

    @pytest.mark.unit
    def test_rows_without_kind_are_real(self):
        assert references.from_columns("123", None) == RealFulfillmentRef("123")

    @pytest.mark.unit
    def test_empty_id_is_no_reference(self):
        assert references.from_columns(None, "placeholder") is None
        assert references.to_columns(None) == {"printful_order_id": None, "fulfillment_ref_kind": None}


class TestOrderStatus:

    @pytest.mark.unit
    def test_forward_moves_only(self):
        assert OrderStatus.PAYMENT_PENDING.can_advance_to(OrderStatus.PROCESSING)
        assert not OrderStatus.SHIPPED.can_advance_to(OrderStatus.PROCESSING)

    @pytest.mark.unit
    def test_terminal_states_absorb(self):
        for status in (OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.FAILED):
            assert status.is_terminal
            assert not status.can_advance_to(OrderStatus.PROCESSING)

    @pytest.mark.unit
    def test_failure_reachable_from_non_terminal(self):
        assert OrderStatus.PENDING.can_advance_to(OrderStatus.FAILED)
        assert OrderStatus.PROCESSING.can_advance_to(OrderStatus.CANCELLED)

    @pytest.mark.unit
    def test_paid_statuses(self):
        assert {s for s in OrderStatus if s.is_paid} == {
            OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.DELIVERED
        }
