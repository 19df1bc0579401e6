"""
Storefront catalog endpoints.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from deps import Pagination, pagination_params
from domain.responses import paginated_response, success_response
from services import product_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/products", tags=["products"])


@router.get("")
async def list_products(
    category: Optional[str] = Query(None, max_length=50),
    featured: Optional[bool] = Query(None),
    in_stock: Optional[bool] = Query(None, alias="inStock"),
    page: Pagination = Depends(pagination_params),
    db: AsyncSession = Depends(get_db),
):
    products, total = await product_service.list_products(
        db,
        category=category,
        featured=featured,
        in_stock=in_stock,
        limit=page["limit"],
        offset=page["offset"],
    )
    return paginated_response(
        [product_service.serialize_product(p) for p in products],
        limit=page["limit"],
        offset=page["offset"],
        total=total,
    )


@router.get("/{product_id}")
async def get_product(product_id: int, db: AsyncSession = Depends(get_db)):
    product = await product_service.get_product(db, product_id)
    return success_response(product_service.serialize_product(product))
