"""
Product service — catalog reads for the storefront and admin edits.

Admin edits set ``admin_edited`` so the next Printful sync keeps the edited
description, price, featured and in_stock values.
"""
import logging

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import OrderItem, Product, utcnow
from domain.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("name", "description", "price", "category", "image_url", "in_stock", "featured")


def serialize_product(p: Product) -> dict:
    return {
        "id": p.id,
        "name": p.name,
        "description": p.description,
        "price": float(p.price) if p.price is not None else None,
        "category": p.category,
        "imageUrl": p.image_url,
        "inStock": p.in_stock,
        "featured": p.featured,
        "printfulProductId": p.printful_product_id,
        "printfulVariantId": p.printful_variant_id,
        "sku": p.sku,
        "variantName": p.variant_name,
        "adminEdited": p.admin_edited,
    }


async def list_products(
    db: AsyncSession,
    *,
    category: str | None = None,
    featured: bool | None = None,
    in_stock: bool | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[Product], int]:
    filters = []
    if category:
        filters.append(Product.category == category)
    if featured is not None:
        filters.append(Product.featured == featured)
    if in_stock is not None:
        filters.append(Product.in_stock == in_stock)

    total = (
        await db.execute(select(func.count()).select_from(Product).where(*filters))
    ).scalar_one()
    res = await db.execute(
        select(Product)
        .where(*filters)
        .order_by(Product.featured.desc(), Product.name.asc(), Product.id.asc())
        .limit(limit)
        .offset(offset)
    )
    return list(res.scalars().all()), total


async def get_product(db: AsyncSession, product_id: int) -> Product:
    res = await db.execute(
        select(Product)
        .where(Product.id == product_id)
        .execution_options(populate_existing=True)
    )
    product = res.scalar_one_or_none()
    if product is None:
        raise NotFoundError("Product", str(product_id))
    return product


async def update_product(db: AsyncSession, product_id: int, **changes) -> Product:
    """Apply the provided fields (None means unchanged) and mark the row admin-edited."""
    product = await get_product(db, product_id)

    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")

    applied = {k: v for k, v in changes.items() if v is not None}
    if not applied:
        raise ValidationError("No fields to update")

    for key, value in applied.items():
        setattr(product, key, value)
    product.admin_edited = True
    product.updated_at = utcnow()
    await db.commit()
    await db.refresh(product)
    logger.info(f"Product {product_id} edited by admin: {', '.join(sorted(applied))}")
    return product


async def delete_product(db: AsyncSession, product_id: int) -> None:
    """Delete a product. Order lines that referenced it keep their snapshot with no product link."""
    product = await get_product(db, product_id)
    await db.execute(
        update(OrderItem)
        .where(OrderItem.product_id == product_id)
        .values(product_id=None)
        .execution_options(synchronize_session=False)
    )
    await db.delete(product)
    await db.commit()
    logger.info(f"Product {product_id} deleted")
