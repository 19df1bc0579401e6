"""
Pydantic models for request validation.
"""
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ApiBase(BaseModel):
    """Shared base — allows construction by Python name or camelCase alias."""
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


# ── Checkout ────────────────────────────────────────────────────────

class CartItemIn(ApiBase):
    product_id: int = Field(..., gt=0, alias="productId")
    quantity: int = Field(1, ge=1, le=100)
    size: Optional[str] = Field(default=None, max_length=20)


class ShippingAddressIn(ApiBase):
    full_name: str = Field(..., alias="fullName", min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    address: str = Field(..., min_length=1, max_length=255)
    address_line2: Optional[str] = Field(default=None, alias="addressLine2", max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    postal_code: str = Field(..., alias="postalCode", min_length=1, max_length=20)
    country: str = Field(..., min_length=1, max_length=100, description="Country name or ISO code")


class QuoteRequest(ApiBase):
    items: List[CartItemIn] = Field(..., min_length=1)


class ShippingRatesRequest(ApiBase):
    items: List[CartItemIn] = Field(..., min_length=1)
    shipping_address: ShippingAddressIn = Field(..., alias="shippingAddress")


class CreateOrderRequest(ApiBase):
    """Cart, address and the pricing breakdown the customer saw at checkout."""
    items: List[CartItemIn] = Field(..., min_length=1)
    shipping_address: ShippingAddressIn = Field(..., alias="shippingAddress")
    subtotal: Decimal = Field(..., ge=0)
    shipping: Decimal = Field(..., ge=0)
    total: Decimal = Field(..., gt=0)
    user_id: Optional[str] = Field(default=None, alias="userId", max_length=64)


class CompleteOrderRequest(ApiBase):
    payment_reference: str = Field(..., alias="paymentReference", min_length=1, max_length=64)


# ── Admin ───────────────────────────────────────────────────────────

class ProductUpdateRequest(ApiBase):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=5000)
    price: Optional[Decimal] = Field(default=None, gt=0)
    category: Optional[str] = Field(default=None, min_length=1, max_length=50)
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    in_stock: Optional[bool] = Field(default=None, alias="inStock")
    featured: Optional[bool] = None
