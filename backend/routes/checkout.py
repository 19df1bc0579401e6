"""
Checkout helpers — cart quote and Printful shipping rates.

The quote applies the storefront shipping rule (free from 100, else flat 10);
the client submits that breakdown back with POST /orders.
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from deps import get_printful_client
from domain.responses import success_response
from models import QuoteRequest, ShippingRatesRequest
from services import pricing
from services.printful_client import PrintfulClient

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.post("/quote")
async def quote(request: QuoteRequest, db: AsyncSession = Depends(get_db)):
    result = await pricing.build_quote(db, items=[i.model_dump() for i in request.items])
    return success_response({
        "items": [
            {
                "productId": line["product_id"],
                "name": line["name"],
                "size": line["size"],
                "quantity": line["quantity"],
                "unitPrice": float(line["unit_price"]),
                "lineTotal": float(line["line_total"]),
            }
            for line in result["items"]
        ],
        "subtotal": float(result["subtotal"]),
        "shipping": float(result["shipping"]),
        "total": float(result["total"]),
    })


@router.post("/shipping-rates")
async def shipping_rates(
    request: ShippingRatesRequest,
    db: AsyncSession = Depends(get_db),
    client: PrintfulClient = Depends(get_printful_client),
):
    rates = await pricing.shipping_rates(
        db,
        client,
        items=[i.model_dump() for i in request.items],
        address=request.shipping_address.model_dump(),
    )
    return success_response(rates or [])
