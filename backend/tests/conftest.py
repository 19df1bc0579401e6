"""
Pytest configuration and shared fixtures for storefront tests.

Provides an in-memory SQLite DB, a Settings factory that ignores .env,
AsyncMock doubles for the PayPal and Printful clients, and sample catalog
rows.
"""
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import pytest
from decimal import Decimal
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from config import Settings, settings
from database import Base

# ── Test Configuration ───────────────────────────────────────────────
# Set test-only values for settings that would normally come from .env
if not settings.jwt_secret:
    settings.jwt_secret = "test-jwt-secret-for-pytest-only"


# ── Database Fixtures ────────────────────────────────────────────────


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create an in-memory SQLite database session for each test.

    Uses StaticPool to allow in-memory SQLite with async SQLAlchemy.
    """
    import db_models  # noqa: F401

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session_maker() as session:
        yield session

    await engine.dispose()


# ── Settings ─────────────────────────────────────────────────────────


@pytest.fixture
def make_settings():
    """Build a Settings object without reading .env or the process environment defaults."""
    def _make(**overrides) -> Settings:
        values = {
            "environment": "development",
            "paypal_client_id": "test-client-id",
            "paypal_client_secret": "test-client-secret",
            "printful_api_key": "test-printful-key",
            "printful_webhook_token": "",
            "printful_skip_in_development": False,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)
    return _make


@pytest.fixture
def dev_settings(make_settings) -> Settings:
    return make_settings()


@pytest.fixture
def prod_settings(make_settings) -> Settings:
    return make_settings(
        environment="production",
        paypal_environment="production",
        printful_webhook_token="webhook-secret",
        jwt_secret="prod-jwt-secret",
    )


# ── Gateway doubles ──────────────────────────────────────────────────


@pytest.fixture
def mock_paypal():
    """PayPal client double: create returns PAYPAL-123, capture returns COMPLETED."""
    client = MagicMock()
    client.create_order = AsyncMock(return_value={"id": "PAYPAL-123", "status": "CREATED"})
    client.capture_order = AsyncMock(return_value={
        "id": "PAYPAL-123",
        "status": "COMPLETED",
        "payer": {"email_address": "payer@example.com"},
    })
    client.get_order = AsyncMock(return_value={"id": "PAYPAL-123", "status": "APPROVED"})
    return client


@pytest.fixture
def mock_printful():
    """Printful client double: create returns order 987654."""
    client = MagicMock()
    client.create_order = AsyncMock(return_value={"id": 987654, "status": "draft"})
    client.confirm_order = AsyncMock(return_value={"id": 987654, "status": "pending"})
    client.get_products = AsyncMock(return_value=[])
    client.get_product = AsyncMock()
    client.get_shipping_rates = AsyncMock(return_value=[])
    return client


# ── Test Data Fixtures ────────────────────────────────────────────────


@pytest.fixture
def shipping_address() -> dict:
    return {
        "full_name": "Ada Lovelace",
        "email": "ada@example.com",
        "address": "1 Analytical Way",
        "city": "London",
        "state": "",
        "postal_code": "N1 9GU",
        "country": "United Kingdom",
    }


@pytest.fixture
async def sample_products(db_session: AsyncSession):
    """Two Printful variants and one local-only product."""
    from db_models import Product

    tee = Product(
        name="Logo Tee - M",
        description="Logo Tee",
        price=Decimal("25.00"),
        category="tshirts",
        in_stock=True,
        printful_product_id="111",
        printful_variant_id="5001",
        sku="TEE-M",
    )
    hoodie = Product(
        name="Logo Hoodie - L",
        description="Logo Hoodie",
        price=Decimal("60.00"),
        category="hoodies",
        in_stock=True,
        printful_product_id="222",
        printful_variant_id="5002",
        sku="HOOD-L",
    )
    local = Product(
        name="Gift Card",
        description="Not fulfilled by Printful",
        price=Decimal("20.00"),
        category="accessories",
        in_stock=True,
    )
    db_session.add_all([tee, hoodie, local])
    await db_session.commit()
    return {"tee": tee, "hoodie": hoodie, "local": local}
