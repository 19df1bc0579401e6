"""
Pricing — cart subtotal, shipping rule and quote building.

Shipping is free from FREE_SHIPPING_THRESHOLD upwards, otherwise a flat fee.
The orchestrator applies the same rule again from the order's price snapshots
when it places the Printful order; the breakdown the customer was quoted at
checkout is not reused there.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Product
from domain.constants import FLAT_SHIPPING_FEE, FREE_SHIPPING_THRESHOLD
from domain.errors import NotFoundError, ValidationError
from services.countries import get_country_code
from services.printful_client import PrintfulClient

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Coerce floats/strings/Decimals to a two-decimal Decimal."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_shipping(subtotal) -> Decimal:
    """0 when subtotal >= 100, else a flat 10."""
    if to_money(subtotal) >= FREE_SHIPPING_THRESHOLD:
        return Decimal("0.00")
    return FLAT_SHIPPING_FEE


def line_subtotal(lines: Iterable[tuple]) -> Decimal:
    """Sum of ``(unit_price, quantity)`` pairs."""
    total = Decimal("0.00")
    for price, quantity in lines:
        total += to_money(price) * int(quantity)
    return to_money(total)


async def build_quote(db: AsyncSession, *, items: list[dict]) -> dict:
    """
    items: [{product_id:int, quantity:int, size:str|None}]

    Prices come from the catalog; unknown or out-of-stock products are rejected.
    """
    if not items:
        raise ValidationError("Cart is empty")

    product_ids = [int(i["product_id"]) for i in items]
    res = await db.execute(select(Product).where(Product.id.in_(product_ids)))
    products = {p.id: p for p in res.scalars().all()}

    lines = []
    for i in items:
        pid = int(i["product_id"])
        qty = int(i.get("quantity", 1))
        if qty <= 0:
            raise ValidationError("Quantity must be positive", field="quantity")
        p = products.get(pid)
        if not p:
            raise NotFoundError("Product", str(pid))
        if not p.in_stock:
            raise ValidationError(f"{p.name} is out of stock")
        unit_price = to_money(p.price)
        lines.append({
            "product_id": pid,
            "name": p.name,
            "size": i.get("size"),
            "quantity": qty,
            "unit_price": unit_price,
            "line_total": to_money(unit_price * qty),
        })

    subtotal = line_subtotal((line["unit_price"], line["quantity"]) for line in lines)
    shipping = calculate_shipping(subtotal)
    return {
        "items": lines,
        "subtotal": subtotal,
        "shipping": shipping,
        "total": to_money(subtotal + shipping),
    }


async def shipping_rates(db: AsyncSession, client: PrintfulClient, *, items: list[dict], address: dict) -> list[dict]:
    """Printful rate quotes for a cart; every product must be a Printful variant."""
    if not items:
        raise ValidationError("Cart is empty")

    res = await db.execute(select(Product).where(Product.id.in_([int(i["product_id"]) for i in items])))
    products = {p.id: p for p in res.scalars().all()}

    rate_items = []
    for i in items:
        pid = int(i["product_id"])
        p = products.get(pid)
        if not p:
            raise NotFoundError("Product", str(pid))
        if not p.printful_variant_id:
            raise ValidationError(f"{p.name} is not a Printful product")
        rate_items.append({"sync_variant_id": int(p.printful_variant_id), "quantity": int(i.get("quantity", 1))})

    recipient = {
        "address1": address["address"],
        "city": address["city"],
        "state_code": address.get("state") or "",
        "country_code": get_country_code(address.get("country")),
        "zip": address["postal_code"],
    }
    return await client.get_shipping_rates(recipient, rate_items)
