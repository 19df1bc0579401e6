"""
Order record store — row-level reads and writes for orders, order items and
addresses.

The orchestrator treats the database as the source of truth: every step
re-reads what it needs through these helpers instead of carrying ORM state
between steps. Each write commits immediately.
"""
import logging
import uuid
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from db_models import Address, Order, OrderItem, Product, utcnow
from domain.enums import AddressType, OrderStatus

logger = logging.getLogger(__name__)


async def load_products(db: AsyncSession, product_ids: list[int]) -> dict[int, Product]:
    if not product_ids:
        return {}
    res = await db.execute(select(Product).where(Product.id.in_(product_ids)))
    return {p.id: p for p in res.scalars().all()}


async def insert_order(
    db: AsyncSession,
    *,
    order_id: str,
    user_id: str | None,
    total,
    shipping_address: dict,
    lines: list[dict],
) -> Order:
    """
    Insert an order (status=pending), its shipping address and its items.

    All three inserts share one transaction: either the whole order is written
    or nothing is.

    lines: [{product_id, quantity, size, price}] — price is the snapshot to keep.
    """
    now = utcnow()
    order = Order(
        id=order_id,
        user_id=user_id,
        status=OrderStatus.PENDING.value,
        total=total,
        created_at=now,
    )
    db.add(order)
    db.add(
        Address(
            id=str(uuid.uuid4()),
            order_id=order_id,
            type=AddressType.SHIPPING.value,
            full_name=shipping_address["full_name"],
            email=shipping_address.get("email"),
            address_line1=shipping_address["address"],
            address_line2=shipping_address.get("address_line2"),
            city=shipping_address["city"],
            state=shipping_address.get("state"),
            postal_code=shipping_address["postal_code"],
            country=shipping_address["country"],
        )
    )
    for line in lines:
        db.add(
            OrderItem(
                id=str(uuid.uuid4()),
                order_id=order_id,
                product_id=line["product_id"],
                quantity=line["quantity"],
                size=line.get("size"),
                price=line["price"],
                created_at=now,
            )
        )

    try:
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    return order


async def get_order(db: AsyncSession, order_id: str) -> Order | None:
    res = await db.execute(
        select(Order)
        .where(Order.id == order_id)
        .execution_options(populate_existing=True)
    )
    return res.scalar_one_or_none()


async def get_order_with_details(db: AsyncSession, order_id: str) -> Order | None:
    """Fresh read of an order with its items (joined to products) and addresses."""
    res = await db.execute(
        select(Order)
        .where(Order.id == order_id)
        .options(
            selectinload(Order.items).selectinload(OrderItem.product),
            selectinload(Order.addresses),
        )
        .execution_options(populate_existing=True)
    )
    return res.scalar_one_or_none()


async def update_order(db: AsyncSession, order_id: str, **fields) -> bool:
    """Apply a field update to one order and commit. Returns False if no row matched."""
    if "status" in fields and isinstance(fields["status"], OrderStatus):
        fields["status"] = fields["status"].value
    res = await db.execute(
        update(Order)
        .where(Order.id == order_id)
        .values(**fields)
        .execution_options(synchronize_session="fetch")
    )
    await db.commit()
    return res.rowcount > 0


async def list_orders(
    db: AsyncSession,
    *,
    status: str | None = None,
    user_id: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[Order], int]:
    """Orders newest first, optionally filtered, plus the unpaged total."""
    filters = []
    if status:
        filters.append(Order.status == status)
    if user_id:
        filters.append(Order.user_id == user_id)

    total = (
        await db.execute(select(func.count()).select_from(Order).where(*filters))
    ).scalar_one()
    res = await db.execute(
        select(Order)
        .where(*filters)
        .order_by(Order.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(res.scalars().all()), total


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def serialize_order(order: Order, *, details: bool = False) -> dict:
    """API shape of an order. ``details`` requires items and addresses to be loaded."""
    ref = order.fulfillment_reference
    data = {
        "id": order.id,
        "userId": order.user_id,
        "status": order.status,
        "total": float(order.total) if order.total is not None else None,
        "paymentReference": order.paypal_order_id,
        "fulfillmentReference": ref.value if ref else None,
        "fulfillmentReferenceKind": ref.kind if ref else None,
        "fulfillmentStatus": order.fulfillment_status,
        "fulfillmentError": order.fulfillment_error,
        "trackingNumber": order.tracking_number,
        "trackingUrl": order.tracking_url,
        "failureReason": order.failure_reason,
        "paymentCapturedAt": _iso(order.payment_captured_at),
        "createdAt": _iso(order.created_at),
    }
    if details:
        data["items"] = [
            {
                "id": item.id,
                "productId": item.product_id,
                "name": item.product.name if item.product else None,
                "quantity": item.quantity,
                "size": item.size,
                "price": float(item.price),
            }
            for item in order.items
        ]
        data["addresses"] = [
            {
                "type": a.type,
                "fullName": a.full_name,
                "email": a.email,
                "address": a.address_line1,
                "addressLine2": a.address_line2,
                "city": a.city,
                "state": a.state,
                "postalCode": a.postal_code,
                "country": a.country,
            }
            for a in order.addresses
        ]
    return data
