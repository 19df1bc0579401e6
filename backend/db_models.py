"""
SQLAlchemy ORM models for the storefront.

Tables:
    products     — one row per purchasable Printful variant (size/color SKU)
    orders       — checkout orders and their lifecycle status
    order_items  — order lines with a price snapshot taken at checkout
    addresses    — order-scoped shipping addresses and profile addresses
"""
from datetime import datetime, timezone

from sqlalchemy import (
    Column, Integer, String, Numeric, Boolean, DateTime, Text, ForeignKey, Index,
)
from sqlalchemy.orm import relationship

from database import Base
from domain import references
from domain.enums import FulfillmentStatus, OrderStatus


def utcnow() -> datetime:
    """Current UTC time as a naive datetime; DateTime columns store naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Product(Base):
    """A concrete purchasable variant, mirrored from Printful by catalog sync."""
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    category = Column(String(50), nullable=False, default="tshirts", index=True)
    image_url = Column(Text, nullable=True)
    in_stock = Column(Boolean, nullable=False, default=True)
    featured = Column(Boolean, nullable=False, default=False)
    printful_product_id = Column(String(50), nullable=True, index=True)  # groups variants of one design
    printful_variant_id = Column(String(50), nullable=True, unique=True, index=True)  # sync variant id
    sku = Column(String(100), nullable=True)
    external_id = Column(String(100), nullable=True)
    variant_name = Column(String(100), nullable=True)
    # Set by admin edits; sync leaves description/price/featured/in_stock alone when true
    admin_edited = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class Order(Base):
    """A customer's purchase, driven through its lifecycle by the order orchestrator."""
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True)  # uuid4, generated before insert
    user_id = Column(String(64), nullable=True, index=True)  # null => guest checkout
    status = Column(String(30), nullable=False, default=OrderStatus.PENDING.value, index=True)
    total = Column(Numeric(10, 2), nullable=False, default=0)
    paypal_order_id = Column(String(64), nullable=True, index=True)
    printful_order_id = Column(String(64), nullable=True, index=True)
    fulfillment_ref_kind = Column(String(20), nullable=True)  # real | placeholder
    fulfillment_status = Column(
        String(40), nullable=False, default=FulfillmentStatus.NOT_STARTED.value, index=True
    )
    fulfillment_error = Column(Text, nullable=True)
    tracking_number = Column(String(100), nullable=True)
    tracking_url = Column(Text, nullable=True)
    failure_reason = Column(Text, nullable=True)
    payment_captured_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    items = relationship("OrderItem", back_populates="order", lazy="select")
    addresses = relationship("Address", back_populates="order", lazy="select")

    @property
    def fulfillment_reference(self) -> references.FulfillmentReference | None:
        return references.from_columns(self.printful_order_id, self.fulfillment_ref_kind)

    @property
    def shipping_address(self):
        """The order's shipping address; requires addresses to be loaded."""
        for address in self.addresses:
            if address.type == "shipping":
                return address
        return None


class OrderItem(Base):
    """One order line. ``price`` is the product price at checkout and never changes."""
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    # Catalog sync may delete a variant; the line keeps its snapshot
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    quantity = Column(Integer, nullable=False, default=1)
    size = Column(String(20), nullable=True)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow)

    order = relationship("Order", back_populates="items")
    product = relationship("Product", lazy="select")


class Address(Base):
    """Shipping address of an order, or a saved address on a user profile."""
    __tablename__ = "addresses"

    id = Column(String(36), primary_key=True)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=True, index=True)
    user_id = Column(String(64), nullable=True, index=True)
    type = Column(String(20), nullable=False, default="shipping")  # shipping | billing | default
    full_name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=True)
    address_line1 = Column(String(255), nullable=False)
    address_line2 = Column(String(255), nullable=True)
    city = Column(String(100), nullable=False)
    state = Column(String(100), nullable=True)
    postal_code = Column(String(20), nullable=False)
    country = Column(String(100), nullable=False)  # free-text name as collected
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow)

    order = relationship("Order", back_populates="addresses")

    __table_args__ = (
        Index("ix_addresses_order_type", "order_id", "type"),
    )
