"""
Order orchestrator — drives a checkout from order creation to a processing
(or failed) order across the database, PayPal and Printful.

Flow:
    create_order    → insert order (pending) → PayPal order → payment_pending
    complete_order  → capture PayPal → re-read order → Printful order → processing
    cancel_order    → cancelled (no gateway calls)
    confirm_draft_fulfillment_order → Printful confirm for a draft order

Every step runs in sequence; nothing is retried or compensated. Operations
return an OrderResult instead of raising, so HTTP handlers decide how to
present failures.

Failure policy:
    - Failures during create_order leave the order pending.
    - Capture failures, a capture status other than COMPLETED, or a missing
      order/shipping address after capture mark the order failed.
    - Fulfillment failures after a successful capture do NOT fail the order:
      payment is taken, so the order moves to processing with
      fulfillment_status=fulfillment_pending_manual_review and the error
      stored on the row for someone to reconcile by hand.
"""
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from config import Settings
from db_models import Address, Order, utcnow
from domain.constants import PAYMENT_REQUEST_ID_PREFIX, PLACEHOLDER_REF_PREFIX
from domain.enums import FulfillmentStatus, OrderStatus
from domain.errors import (
    ConflictError,
    DomainError,
    FulfillmentError,
    NotFoundError,
    PaymentNotCompletedError,
    ValidationError,
)
from domain import references
from domain.references import FulfillmentReference, PlaceholderFulfillmentRef, RealFulfillmentRef
from services import order_store
from services.countries import get_country_code
from services.paypal_client import PayPalClient, format_amount
from services.pricing import calculate_shipping, line_subtotal, to_money
from services.printful_client import PrintfulClient

logger = logging.getLogger(__name__)


@dataclass
class OrderResult:
    success: bool
    order_id: Optional[str] = None
    payment_reference: Optional[str] = None
    fulfillment_reference: Optional[FulfillmentReference] = None
    fulfillment_status: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    warning: Optional[str] = None

    @classmethod
    def failed(cls, exc: Exception, order_id: Optional[str] = None) -> "OrderResult":
        if isinstance(exc, DomainError):
            return cls(success=False, order_id=order_id, error=exc.message, error_code=exc.code)
        # Unexpected errors are logged with their traceback; callers only see a generic message
        return cls(success=False, order_id=order_id, error="Internal error", error_code="internal_error")

    def to_dict(self) -> dict[str, Any]:
        ref = self.fulfillment_reference
        return {
            "orderId": self.order_id,
            "paymentReference": self.payment_reference,
            "fulfillmentReference": ref.value if ref else None,
            "fulfillmentReferenceKind": ref.kind if ref else None,
            "fulfillmentStatus": self.fulfillment_status,
            "warning": self.warning,
        }


class OrderOrchestrator:
    """Sequences the order store, PayPal and Printful for one order at a time."""

    def __init__(self, settings: Settings, payments: PayPalClient, fulfillment: PrintfulClient):
        self.settings = settings
        self.payments = payments
        self.fulfillment = fulfillment

    # ════════════════════════════════════════════════════════════════
    # Create
    # ════════════════════════════════════════════════════════════════

    async def create_order(
        self,
        db: AsyncSession,
        *,
        items: list[dict],
        shipping_address: dict,
        subtotal,
        shipping,
        total,
        user_id: Optional[str] = None,
    ) -> OrderResult:
        """
        Create the local order and its PayPal order.

        items: [{product_id:int, quantity:int, size:str|None}]
        shipping_address: {full_name, email, address, city, postal_code, country, state?}

        subtotal/shipping/total come from the caller and are sent to PayPal as-is.
        """
        order_id: Optional[str] = None
        try:
            if not items:
                raise ValidationError("Cart is empty")

            products = await order_store.load_products(db, [int(i["product_id"]) for i in items])
            lines = []
            for i in items:
                pid = int(i["product_id"])
                qty = int(i.get("quantity", 1))
                if qty <= 0:
                    raise ValidationError("Quantity must be positive", field="quantity")
                product = products.get(pid)
                if product is None:
                    raise NotFoundError("Product", str(pid))
                lines.append({
                    "product_id": pid,
                    "product": product,
                    "quantity": qty,
                    "size": i.get("size"),
                    "price": to_money(product.price),
                })

            subtotal, shipping, total = to_money(subtotal), to_money(shipping), to_money(total)
            snapshot_subtotal = line_subtotal((line["price"], line["quantity"]) for line in lines)
            if snapshot_subtotal != subtotal:
                logger.warning(
                    f"Checkout subtotal {subtotal} differs from catalog prices {snapshot_subtotal}; "
                    f"using the submitted breakdown"
                )

            order_id = str(uuid.uuid4())
            await order_store.insert_order(
                db,
                order_id=order_id,
                user_id=user_id,
                total=total,
                shipping_address=shipping_address,
                lines=lines,
            )
            logger.info(f"Order {order_id} created (pending, total={total})")

            paypal_order = await self.payments.create_order(
                total=total,
                item_total=subtotal,
                shipping_total=shipping,
                items=self._payment_items(lines),
                shipping=self._payment_shipping(shipping_address),
                request_id=f"{PAYMENT_REQUEST_ID_PREFIX}{order_id}",
            )
            paypal_order_id = paypal_order.get("id")
            if not paypal_order_id:
                raise ValidationError("PayPal did not return an order id")

            await order_store.update_order(
                db,
                order_id,
                paypal_order_id=paypal_order_id,
                status=OrderStatus.PAYMENT_PENDING,
            )
            logger.info(f"Order {order_id} awaiting payment (PayPal {paypal_order_id})")
            return OrderResult(
                success=True,
                order_id=order_id,
                payment_reference=paypal_order_id,
                fulfillment_status=FulfillmentStatus.NOT_STARTED.value,
            )
        except Exception as e:
            logger.error(f"Error creating order {order_id or '(not persisted)'}: {e}", exc_info=not isinstance(e, DomainError))
            await db.rollback()
            return OrderResult.failed(e, order_id=order_id)

    def _payment_items(self, lines: list[dict]) -> list[dict]:
        currency = self.settings.paypal_currency
        items = []
        for line in lines:
            product = line["product"]
            item = {
                "name": product.name or f"Product {line['product_id']}",
                "quantity": str(line["quantity"]),
                "unit_amount": {"currency_code": currency, "value": format_amount(line["price"])},
                "sku": product.sku or str(line["product_id"]),
            }
            if line.get("size"):
                item["description"] = f"Size: {line['size']}"
            items.append(item)
        return items

    @staticmethod
    def _payment_shipping(address: dict) -> dict:
        return {
            "name": {"full_name": address["full_name"]},
            "address": {
                "address_line_1": address["address"],
                "admin_area_2": address["city"],
                "admin_area_1": address.get("state") or "",
                "postal_code": address["postal_code"],
                "country_code": get_country_code(address.get("country")),
            },
        }

    # ════════════════════════════════════════════════════════════════
    # Complete
    # ════════════════════════════════════════════════════════════════

    async def complete_order(self, db: AsyncSession, order_id: str, payment_reference: str) -> OrderResult:
        """Capture payment, then place the Printful order and mark the order processing."""
        try:
            order = await self._check_completable(db, order_id, payment_reference)
        except DomainError as e:
            logger.warning(f"Order {order_id} cannot be completed: {e.message}")
            return OrderResult.failed(e, order_id=order_id)
        except Exception as e:
            logger.error(f"Error loading order {order_id} for completion: {e}", exc_info=True)
            await db.rollback()
            return OrderResult.failed(e, order_id=order_id)

        if order.status in {s.value for s in OrderStatus if s.is_paid}:
            # Already completed: report what is stored, never capture twice
            logger.info(f"Order {order_id} already {order.status}; skipping capture")
            return OrderResult(
                success=True,
                order_id=order_id,
                payment_reference=order.paypal_order_id,
                fulfillment_reference=order.fulfillment_reference,
                fulfillment_status=order.fulfillment_status,
            )

        # Step 1: capture
        try:
            capture = await self.payments.capture_order(payment_reference)
            capture_status = str(capture.get("status") or "")
            if capture_status.lower() != "completed":
                raise PaymentNotCompletedError(capture_status)
        except Exception as e:
            return await self._fail(db, order_id, e)

        # Step 2: record the capture, then re-read the order as stored
        try:
            await order_store.update_order(db, order_id, payment_captured_at=utcnow())
            logger.info(f"Payment captured for order {order_id} (PayPal {payment_reference})")
            order = await order_store.get_order_with_details(db, order_id)
            if order is None:
                raise NotFoundError("Order", order_id)
            address = order.shipping_address
            if address is None:
                raise ValidationError("Shipping address not found")
        except Exception as e:
            return await self._fail(db, order_id, e)

        # Step 3: fulfillment (failures are recorded, not fatal)
        payer_email = (capture.get("payer") or {}).get("email_address") or address.email or ""
        ref, fulfillment_status, fulfillment_error = await self._place_fulfillment_order(
            order, address, payer_email
        )

        try:
            await order_store.update_order(
                db,
                order_id,
                status=OrderStatus.PROCESSING,
                fulfillment_status=fulfillment_status.value,
                fulfillment_error=fulfillment_error,
                **references.to_columns(ref),
            )
        except Exception as e:
            # Payment is captured and fulfillment may exist upstream; leave the row for reconciliation
            logger.error(
                f"Order {order_id} captured but could not be marked processing "
                f"(fulfillment ref: {ref.value if ref else None}): {e}",
                exc_info=True,
            )
            await db.rollback()
            return OrderResult.failed(e, order_id=order_id)
        logger.info(f"Order {order_id} processing (fulfillment: {fulfillment_status.value})")
        return OrderResult(
            success=True,
            order_id=order_id,
            payment_reference=payment_reference,
            fulfillment_reference=ref,
            fulfillment_status=fulfillment_status.value,
            warning=fulfillment_error,
        )

    async def _check_completable(self, db: AsyncSession, order_id: str, payment_reference: str) -> Order:
        if not payment_reference:
            raise ValidationError("Payment reference is required")
        order = await order_store.get_order(db, order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        if order.paypal_order_id != payment_reference:
            raise ValidationError("Payment reference does not match this order")
        paid = {s.value for s in OrderStatus if s.is_paid}
        if order.status not in paid and order.status != OrderStatus.PAYMENT_PENDING.value:
            raise ConflictError(f"Order {order_id} is {order.status} and cannot be completed")
        return order

    async def _fail(self, db: AsyncSession, order_id: str, exc: Exception) -> OrderResult:
        logger.error(f"Error completing order {order_id}: {exc}", exc_info=not isinstance(exc, DomainError))
        await db.rollback()
        try:
            await order_store.update_order(db, order_id, status=OrderStatus.FAILED, failure_reason=str(exc))
        except Exception as e:
            logger.error(f"Could not mark order {order_id} failed: {e}", exc_info=True)
            await db.rollback()
        return OrderResult.failed(exc, order_id=order_id)

    async def _place_fulfillment_order(
        self, order: Order, address: Address, email: str
    ) -> tuple[Optional[FulfillmentReference], FulfillmentStatus, Optional[str]]:
        """Create the Printful order. Returns (reference, status, error) and never raises."""
        if self.settings.use_placeholder_fulfillment:
            ref = PlaceholderFulfillmentRef(f"{PLACEHOLDER_REF_PREFIX}{uuid.uuid4().hex[:12]}")
            logger.info(f"Printful skipped for order {order.id} ({self.settings.environment}); placeholder {ref.value}")
            return ref, FulfillmentStatus.PLACEHOLDER, None

        confirm = self.settings.confirm_fulfillment_orders
        try:
            request = build_fulfillment_order(order, address, email)
            created = await self.fulfillment.create_order(request, confirm=confirm)
        except Exception as e:
            logger.error(
                f"Fulfillment failed for paid order {order.id}; needs manual review: {e}",
                exc_info=not isinstance(e, DomainError),
            )
            return None, FulfillmentStatus.PENDING_MANUAL_REVIEW, str(e)

        ref = RealFulfillmentRef(str(created["id"]))
        status = FulfillmentStatus.CONFIRMED if confirm else FulfillmentStatus.DRAFT
        return ref, status, None

    # ════════════════════════════════════════════════════════════════
    # Cancel / confirm draft
    # ════════════════════════════════════════════════════════════════

    async def cancel_order(self, db: AsyncSession, order_id: str) -> bool:
        """
        Set status=cancelled whatever the current status. Gateways are not contacted.

        Returns False when no order matched the id.
        """
        found = await order_store.update_order(db, order_id, status=OrderStatus.CANCELLED)
        if found:
            logger.info(f"Order {order_id} cancelled")
        else:
            logger.warning(f"Cancel requested for unknown order {order_id}")
        return found

    async def confirm_draft_fulfillment_order(self, db: AsyncSession, order_id: str) -> OrderResult:
        try:
            order = await order_store.get_order(db, order_id)
            if order is None:
                raise NotFoundError("Order", order_id)
            ref = order.fulfillment_reference
            if ref is None:
                raise ValidationError("Order has no fulfillment order to confirm")
            if isinstance(ref, PlaceholderFulfillmentRef):
                raise ValidationError(
                    f"Fulfillment reference {ref.value} is a local placeholder, not a Printful order"
                )

            if order.fulfillment_status != FulfillmentStatus.CONFIRMED.value:
                await self.fulfillment.confirm_order(ref.order_id)
                await order_store.update_order(
                    db, order_id, fulfillment_status=FulfillmentStatus.CONFIRMED.value
                )
            return OrderResult(
                success=True,
                order_id=order_id,
                payment_reference=order.paypal_order_id,
                fulfillment_reference=ref,
                fulfillment_status=FulfillmentStatus.CONFIRMED.value,
            )
        except Exception as e:
            logger.error(f"Error confirming fulfillment for order {order_id}: {e}")
            return OrderResult.failed(e, order_id=order_id)


def build_fulfillment_order(order: Order, address: Address, email: str) -> dict:
    """
    Printful order payload for a stored order.

    Shipping is recomputed from the item snapshots with the threshold rule.
    Every item must map to a Printful sync variant.
    """
    missing = [item for item in order.items if not (item.product and item.product.printful_variant_id)]
    if missing:
        names = ", ".join(
            item.product.name if item.product else f"deleted product (line {item.id})" for item in missing
        )
        raise FulfillmentError(
            f"Some items are not Printful products (no Printful variant id): {names}",
            details={"order_item_ids": [item.id for item in missing]},
        )

    subtotal = line_subtotal((item.price, item.quantity) for item in order.items)
    shipping = calculate_shipping(subtotal)

    return {
        "external_id": order.id,
        "recipient": {
            "name": address.full_name,
            "email": email,
            "address1": address.address_line1,
            "address2": address.address_line2 or "",
            "city": address.city,
            "state_code": address.state or "",
            "country_code": get_country_code(address.country),
            "zip": address.postal_code,
        },
        "items": [
            {
                "sync_variant_id": int(item.product.printful_variant_id),
                "quantity": item.quantity,
                "retail_price": format_amount(item.price),
                "name": item.product.name,
                "external_id": item.id,
            }
            for item in order.items
        ],
        "retail_costs": {
            "subtotal": format_amount(subtotal),
            "shipping": format_amount(shipping),
        },
    }
