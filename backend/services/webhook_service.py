"""
Printful webhook processing.

Handles:
    package_shipped → order shipped, tracking number/url stored
    order_failed    → order cancelled, failure reason stored
    order_created   → Printful order id stored, order advanced to processing
    stock_updated   → product in_stock flag refreshed

Orders are correlated by ``order.external_id`` (our order id, sent when the
Printful order was created); products by ``sync_variant_id``. Unknown event
types and unknown ids are acknowledged and ignored so Printful stops retrying.
"""
import hmac
import logging
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from config import Settings
from db_models import Product
from domain import references
from domain.enums import OrderStatus
from services import order_store

logger = logging.getLogger(__name__)


def verify_webhook_token(settings: Settings, token: Optional[str]) -> bool:
    """
    Check the shared token Printful was configured to send as ``?token=``.

    Fails closed in production when no token is configured.
    """
    expected = settings.printful_webhook_token
    if not expected:
        if settings.is_production:
            logger.error(
                "PRINTFUL_WEBHOOK_TOKEN not configured — rejecting webhook. "
                "Set PRINTFUL_WEBHOOK_TOKEN in .env to accept Printful webhooks."
            )
            return False
        return True

    if not token:
        logger.warning("Printful webhook received without token")
        return False
    return hmac.compare_digest(expected, token)


async def process_webhook(event: dict, db: AsyncSession) -> dict:
    """Dispatch one Printful webhook event by type."""
    event_type = event.get("type", "")
    data = event.get("data") or {}
    logger.info(f"  📩 Printful webhook: {event_type}")

    handler = _HANDLERS.get(event_type)
    if handler is None:
        logger.info(f"Unhandled Printful webhook event type: {event_type}")
        return {"status": "ignored", "reason": "unhandled_type", "type": event_type}
    return await handler(data, db)


def _external_order_id(data: dict) -> Optional[str]:
    order = data.get("order") or {}
    external_id = order.get("external_id")
    return str(external_id) if external_id else None


async def _load_order(data: dict, db: AsyncSession):
    order_id = _external_order_id(data)
    if not order_id:
        return None, {"status": "ignored", "reason": "missing_external_id"}
    order = await order_store.get_order(db, order_id)
    if order is None:
        logger.warning(f"  Printful webhook for unknown order: {order_id}")
        return None, {"status": "ignored", "reason": "unknown_order", "orderId": order_id}
    return order, None


async def _handle_package_shipped(data: dict, db: AsyncSession) -> dict:
    order, ignored = await _load_order(data, db)
    if ignored:
        return ignored

    shipment = data.get("shipment") or data
    current = OrderStatus(order.status)
    fields = {
        "tracking_number": shipment.get("tracking_number"),
        "tracking_url": shipment.get("tracking_url"),
    }
    if current.can_advance_to(OrderStatus.SHIPPED):
        fields["status"] = OrderStatus.SHIPPED
    await order_store.update_order(db, order.id, **fields)

    if current.is_terminal:
        logger.warning(f"Order {order.id} is {current.value}; stored tracking, status unchanged")
        return {"status": "ignored", "reason": "terminal_state", "orderId": order.id, "orderStatus": current.value}

    logger.info(f"Order {order.id} shipped (tracking {shipment.get('tracking_number')})")
    status = fields.get("status", current)
    return {"status": "processed", "orderId": order.id, "orderStatus": status.value}


async def _handle_order_failed(data: dict, db: AsyncSession) -> dict:
    order, ignored = await _load_order(data, db)
    if ignored:
        return ignored

    reason = data.get("reason")
    current = OrderStatus(order.status)
    if not current.can_advance_to(OrderStatus.CANCELLED):
        logger.warning(f"Printful reported order {order.id} failed while {current.value}: {reason}")
        return {"status": "ignored", "reason": "terminal_state", "orderId": order.id, "orderStatus": current.value}

    await order_store.update_order(
        db,
        order.id,
        status=OrderStatus.CANCELLED,
        failure_reason=reason,
    )
    logger.warning(f"Printful reported order {order.id} failed: {reason}")
    return {"status": "processed", "orderId": order.id, "orderStatus": OrderStatus.CANCELLED.value}


async def _handle_order_created(data: dict, db: AsyncSession) -> dict:
    order, ignored = await _load_order(data, db)
    if ignored:
        return ignored

    printful_id = (data.get("order") or {}).get("id")
    fields = {}
    if printful_id:
        fields.update(references.to_columns(references.RealFulfillmentRef(str(printful_id))))
    # Never move an order backwards or out of a terminal state
    if OrderStatus(order.status).can_advance_to(OrderStatus.PROCESSING):
        fields["status"] = OrderStatus.PROCESSING
    if fields:
        await order_store.update_order(db, order.id, **fields)

    current = fields.get("status", order.status)
    return {
        "status": "processed",
        "orderId": order.id,
        "orderStatus": current.value if isinstance(current, OrderStatus) else current,
    }


async def _handle_stock_updated(data: dict, db: AsyncSession) -> dict:
    variant_id = data.get("sync_variant_id")
    if variant_id is None:
        return {"status": "ignored", "reason": "missing_sync_variant_id"}

    res = await db.execute(
        select(Product.id).where(Product.printful_variant_id == str(variant_id))
    )
    if res.scalar_one_or_none() is None:
        logger.warning(f"  Printful stock update for unknown variant: {variant_id}")
        return {"status": "ignored", "reason": "unknown_variant", "variantId": str(variant_id)}

    in_stock = int(data.get("quantity") or 0) > 0
    await db.execute(
        update(Product)
        .where(Product.printful_variant_id == str(variant_id))
        .values(in_stock=in_stock)
    )
    await db.commit()
    return {"status": "processed", "variantId": str(variant_id), "inStock": in_stock}


_HANDLERS = {
    "package_shipped": _handle_package_shipped,
    "order_failed": _handle_order_failed,
    "order_created": _handle_order_created,
    "stock_updated": _handle_stock_updated,
}
