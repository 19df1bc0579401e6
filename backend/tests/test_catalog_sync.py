"""
Tests for the Printful catalog sync.

Tests: category rules, variant mapping, inserts/updates, admin-edited
fields preserved, stale variant deletion and its skip on partial failure.
"""
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from decimal import Decimal

import pytest
from sqlalchemy import select

from db_models import Order, OrderItem, Product
from domain.errors import FulfillmentGatewayError
from services.catalog_sync import determine_category, sync_catalog, variant_row


def product_detail(product_id: int, name: str, variants: list[dict]) -> dict:
    return {
        "sync_product": {"id": product_id, "name": name, "thumbnail_url": f"https://img/{product_id}.png"},
        "sync_variants": variants,
    }


def variant(variant_id: int, name: str, price: str = "25.00", **extra) -> dict:
    data = {"id": variant_id, "name": name, "retail_price": price, "sku": f"SKU-{variant_id}", "files": []}
    data.update(extra)
    return data


class TestMapping:

    @pytest.mark.unit
    @pytest.mark.parametrize("name,category", [
        ("Classic Hoodie", "hoodies"),
        ("Crew Sweatshirt", "hoodies"),
        ("Zip Pullover", "hoodies"),
        ("Dad Hat", "accessories"),
        ("Tote Bag", "accessories"),
        ("Coffee Mug", "accessories"),
        ("Logo Sticker", "accessories"),
        ("Unisex Tee", "tshirts"),
    ])
    def test_determine_category(self, name, category):
        assert determine_category(name) == category

    @pytest.mark.unit
    def test_variant_row_uses_second_file_preview(self):
        files = [{"preview_url": "https://img/front.png"}, {"preview_url": "https://img/mockup.png"}]
        row = variant_row({"id": 1, "name": "Unisex Tee", "thumbnail_url": "https://img/thumb.png"},
                          variant(10, "Unisex Tee - M", files=files))

        assert row["image_url"] == "https://img/mockup.png"
        assert row["variant_name"] == "M"
        assert row["price"] == Decimal("25.00")
        assert row["printful_variant_id"] == "10"
        assert row["printful_product_id"] == "1"
        assert row["in_stock"] is True

    @pytest.mark.unit
    def test_variant_row_falls_back_to_thumbnail_and_ignored(self):
        row = variant_row({"id": 1, "name": "Unisex Tee", "thumbnail_url": "https://img/thumb.png"},
                          variant(10, "Unisex Tee", is_ignored=True))

        assert row["image_url"] == "https://img/thumb.png"
        assert row["in_stock"] is False
        assert row["variant_name"] == "Unisex Tee"


class TestSyncCatalog:

    @pytest.mark.integration
    async def test_inserts_variants(self, db_session, mock_printful):
        mock_printful.get_products.return_value = [{"id": 1}]
        mock_printful.get_product.return_value = product_detail(
            1, "Classic Hoodie", [variant(11, "Classic Hoodie - S"), variant(12, "Classic Hoodie - M")]
        )

        result = await sync_catalog(db_session, mock_printful)

        assert result.created == 2
        assert result.complete is True
        rows = (await db_session.execute(select(Product).order_by(Product.printful_variant_id))).scalars().all()
        assert [r.printful_variant_id for r in rows] == ["11", "12"]
        assert all(r.category == "hoodies" for r in rows)

    @pytest.mark.integration
    async def test_updates_existing_rows(self, db_session, sample_products, mock_printful):
        mock_printful.get_products.return_value = [{"id": 111}, {"id": 222}]
        mock_printful.get_product.side_effect = [
            product_detail(111, "Logo Tee", [variant(5001, "Logo Tee - M", price="27.50")]),
            product_detail(222, "Logo Hoodie", [variant(5002, "Logo Hoodie - L", price="60.00")]),
        ]

        result = await sync_catalog(db_session, mock_printful)

        assert result.updated == 2
        assert result.created == 0
        tee = await db_session.get(Product, sample_products["tee"].id)
        await db_session.refresh(tee)
        assert tee.price == Decimal("27.50")

    @pytest.mark.integration
    async def test_admin_edited_fields_preserved(self, db_session, sample_products, mock_printful):
        tee = sample_products["tee"]
        tee.admin_edited = True
        tee.price = Decimal("19.99")
        tee.description = "Hand-written copy"
        tee.featured = True
        await db_session.commit()

        mock_printful.get_products.return_value = [{"id": 111}, {"id": 222}]
        mock_printful.get_product.side_effect = [
            product_detail(111, "Logo Tee v2", [variant(5001, "Logo Tee v2 - M", price="30.00")]),
            product_detail(222, "Logo Hoodie", [variant(5002, "Logo Hoodie - L", price="60.00")]),
        ]

        result = await sync_catalog(db_session, mock_printful)

        assert result.preserved == 1
        await db_session.refresh(tee)
        assert tee.price == Decimal("19.99")
        assert tee.description == "Hand-written copy"
        assert tee.featured is True
        assert tee.name == "Logo Tee v2 - M"

    @pytest.mark.integration
    async def test_deletes_missing_variants_and_unlinks_order_items(self, db_session, sample_products, mock_printful):
        order = Order(id="order-1", status="processing", total=Decimal("60.00"))
        db_session.add(order)
        db_session.add(OrderItem(id="item-1", order_id="order-1", product_id=sample_products["hoodie"].id,
                                 quantity=1, price=Decimal("60.00")))
        await db_session.commit()

        mock_printful.get_products.return_value = [{"id": 111}]
        mock_printful.get_product.return_value = product_detail(111, "Logo Tee", [variant(5001, "Logo Tee - M")])

        result = await sync_catalog(db_session, mock_printful)

        assert result.deleted == 1
        ids = (await db_session.execute(select(Product.printful_variant_id))).scalars().all()
        assert "5002" not in ids
        # Products without a Printful variant are not touched
        assert None in ids
        item = (await db_session.execute(
            select(OrderItem).where(OrderItem.id == "item-1").execution_options(populate_existing=True)
        )).scalar_one()
        assert item.product_id is None
        assert item.price == Decimal("60.00")

    @pytest.mark.integration
    async def test_failed_product_skips_deletion(self, db_session, sample_products, mock_printful):
        mock_printful.get_products.return_value = [{"id": 111}, {"id": 222}]
        mock_printful.get_product.side_effect = [
            product_detail(111, "Logo Tee", [variant(5001, "Logo Tee - M")]),
            FulfillmentGatewayError("Printful API error: 500", upstream_status=500),
        ]

        result = await sync_catalog(db_session, mock_printful)

        assert result.complete is False
        assert result.failed_products == ["222"]
        assert result.deleted == 0
        ids = (await db_session.execute(select(Product.printful_variant_id))).scalars().all()
        assert "5002" in ids

    @pytest.mark.integration
    async def test_keep_missing(self, db_session, sample_products, mock_printful):
        mock_printful.get_products.return_value = []

        result = await sync_catalog(db_session, mock_printful, delete_missing=False)

        assert result.deleted == 0
        ids = (await db_session.execute(select(Product.printful_variant_id))).scalars().all()
        assert {"5001", "5002"} <= set(ids)
