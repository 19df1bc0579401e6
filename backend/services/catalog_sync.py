"""
Catalog sync — mirror Printful store products into the products table.

Each Printful sync variant becomes one product row keyed by
``printful_variant_id``. Re-running the sync is idempotent per variant.

Operator edits win: rows with ``admin_edited=True`` keep their description,
price, featured and in_stock values; only the provider-owned fields (name,
image, ids, sku, category) are refreshed.

Variants that disappeared from Printful are deleted, except when any product
fetch failed during the run; a partial enumeration must not wipe the catalog.
"""
import logging
from dataclasses import dataclass, field

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import OrderItem, Product
from domain.constants import CATEGORY_KEYWORDS, DEFAULT_CATEGORY
from domain.errors import GatewayError
from services.pricing import to_money
from services.printful_client import PrintfulClient

logger = logging.getLogger(__name__)

# Fields an admin edit protects from being overwritten by the next sync
ADMIN_OWNED_FIELDS = ("description", "price", "featured", "in_stock")


@dataclass
class SyncResult:
    products_seen: int = 0
    created: int = 0
    updated: int = 0
    deleted: int = 0
    preserved: int = 0  # admin-edited rows whose protected fields were kept
    failed_products: list[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failed_products

    def to_dict(self) -> dict:
        return {
            "productsSeen": self.products_seen,
            "created": self.created,
            "updated": self.updated,
            "deleted": self.deleted,
            "preserved": self.preserved,
            "failedProducts": self.failed_products,
            "complete": self.complete,
        }


def determine_category(product_name: str, variant_name: str | None = None) -> str:
    name = f"{product_name} {variant_name or ''}".lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in name for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


def variant_row(sync_product: dict, variant: dict) -> dict:
    """Column values for one Printful sync variant."""
    product_name = sync_product.get("name") or ""
    name = variant.get("name") or product_name
    parts = name.split(" - ")
    files = variant.get("files") or []
    if len(files) > 1 and files[1].get("preview_url"):
        image_url = files[1]["preview_url"]
    else:
        image_url = sync_product.get("thumbnail_url") or ""

    return {
        "name": name,
        "description": product_name,
        "price": to_money(variant.get("retail_price") or "0"),
        "image_url": image_url,
        "in_stock": not variant.get("is_ignored", False),
        "featured": False,
        "category": determine_category(product_name),
        "printful_product_id": str(sync_product["id"]) if sync_product.get("id") else None,
        "printful_variant_id": str(variant["id"]),
        "sku": variant.get("sku") or None,
        "external_id": variant.get("external_id") or None,
        "variant_name": parts[1] if len(parts) > 1 else name,
    }


async def upsert_variant(db: AsyncSession, values: dict) -> str:
    """Insert or update one variant row. Returns "created", "updated" or "preserved"."""
    res = await db.execute(
        select(Product).where(Product.printful_variant_id == values["printful_variant_id"])
    )
    existing = res.scalar_one_or_none()
    if existing is None:
        db.add(Product(**values))
        return "created"

    outcome = "updated"
    for key, value in values.items():
        if existing.admin_edited and key in ADMIN_OWNED_FIELDS:
            outcome = "preserved"
            continue
        setattr(existing, key, value)
    return outcome


async def sync_catalog(db: AsyncSession, client: PrintfulClient, *, delete_missing: bool = True) -> SyncResult:
    """Pull every Printful store product and upsert its variants."""
    result = SyncResult()
    summaries = await client.get_products()
    logger.info(f"Printful sync: {len(summaries)} products found")

    seen_variant_ids: set[str] = set()
    for summary in summaries:
        product_id = summary.get("id")
        result.products_seen += 1
        try:
            detail = await client.get_product(product_id)
        except GatewayError as e:
            logger.error(f"Printful sync: product {product_id} failed: {e.message}")
            result.failed_products.append(str(product_id))
            continue

        sync_product = detail.get("sync_product") or {}
        variants = detail.get("sync_variants") or []
        if not variants:
            logger.warning(f"Printful sync: no variants for product {product_id}")
            continue

        for variant in variants:
            if not variant or not variant.get("id"):
                logger.warning(f"Printful sync: invalid variant data on product {product_id}")
                continue
            values = variant_row(sync_product, variant)
            seen_variant_ids.add(values["printful_variant_id"])
            outcome = await upsert_variant(db, values)
            if outcome == "created":
                result.created += 1
            else:
                result.updated += 1
                if outcome == "preserved":
                    result.preserved += 1

    await db.flush()

    if delete_missing and result.complete:
        stale = (
            Product.printful_variant_id.is_not(None),
            Product.printful_variant_id.not_in(list(seen_variant_ids)),
        )
        # Order lines keep their price snapshot when their variant goes away
        await db.execute(
            update(OrderItem)
            .where(OrderItem.product_id.in_(select(Product.id).where(*stale)))
            .values(product_id=None)
            .execution_options(synchronize_session=False)
        )
        res = await db.execute(
            delete(Product)
            .where(*stale)
            .execution_options(synchronize_session="fetch")
        )
        result.deleted = res.rowcount or 0
    elif delete_missing:
        logger.warning(
            f"Printful sync: skipping deletion, {len(result.failed_products)} product(s) failed to load"
        )

    await db.commit()
    logger.info(
        f"Printful sync completed: {result.created} created, {result.updated} updated "
        f"({result.preserved} admin-edited), {result.deleted} deleted"
    )
    return result
