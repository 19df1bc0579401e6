"""
Domain enums for orders, fulfillment and addresses.
"""

from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    PAYMENT_PENDING = "payment_pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.FAILED)

    @property
    def is_paid(self) -> bool:
        """Payment has been captured for orders at or past processing."""
        return self in (OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.DELIVERED)

    def can_advance_to(self, target: "OrderStatus") -> bool:
        """
        Linear lifecycle with two absorbing failure states.

        cancelled/failed are reachable from any non-terminal status; otherwise
        only forward moves along pending → … → delivered are allowed.
        """
        if self.is_terminal:
            return False
        if target in (OrderStatus.CANCELLED, OrderStatus.FAILED):
            return True
        return _LIFECYCLE.index(target) > _LIFECYCLE.index(self)


_LIFECYCLE = [
    OrderStatus.PENDING,
    OrderStatus.PAYMENT_PENDING,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
]


class FulfillmentStatus(str, Enum):
    NOT_STARTED = "not_started"
    DRAFT = "draft"
    CONFIRMED = "confirmed"
    PLACEHOLDER = "placeholder"
    PENDING_MANUAL_REVIEW = "fulfillment_pending_manual_review"


class AddressType(str, Enum):
    SHIPPING = "shipping"
    BILLING = "billing"
    DEFAULT = "default"


class AdminRole(str, Enum):
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"
