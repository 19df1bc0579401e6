"""
Sync the product catalog from the Printful store.

Each Printful sync variant becomes (or updates) one product row. Products
edited by an admin keep their description, price, featured and in_stock
values. Variants no longer in Printful are deleted unless --keep-missing is
given or a product fetch failed during the run.

Run from the backend/ directory:
    python scripts/sync_printful.py [--keep-missing]
"""
import argparse
import asyncio
import logging
import os
import sys

# Add backend/ to path so we can import config
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from config import settings
from database import async_session, init_db
from services.catalog_sync import sync_catalog
from services.printful_client import PrintfulClient


async def main(keep_missing: bool) -> int:
    if not settings.printful_api_key:
        print("❌ PRINTFUL_API_KEY is not set")
        return 1

    os.makedirs("data", exist_ok=True)
    await init_db()
    print(f"🔄 Syncing Printful catalog ({settings.environment})...")

    async with async_session() as db:
        result = await sync_catalog(db, PrintfulClient(settings), delete_missing=not keep_missing)

    print(f"✅ {result.products_seen} products: {result.created} created, {result.updated} updated, "
          f"{result.deleted} deleted ({result.preserved} admin-edited kept)")
    if result.failed_products:
        print(f"⚠️  Failed products (deletion skipped): {', '.join(result.failed_products)}")
        return 2
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Sync products from Printful")
    parser.add_argument("--keep-missing", action="store_true", help="do not delete variants missing from Printful")
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    sys.exit(asyncio.run(main(args.keep_missing)))
