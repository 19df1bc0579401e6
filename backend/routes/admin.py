"""
Admin endpoints — order review, draft confirmation, product edits and
catalog sync. All require an admin JWT; catalog sync requires super_admin.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from deps import (
    Pagination,
    get_order_orchestrator,
    get_printful_client,
    pagination_params,
    require_admin,
    require_super_admin,
)
from domain.enums import OrderStatus
from domain.errors import ValidationError
from domain.responses import order_result_response, paginated_response, success_response
from models import ProductUpdateRequest
from services import catalog_sync, order_store, product_service
from services.order_service import OrderOrchestrator
from services.printful_client import PrintfulClient

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/orders")
async def list_orders(
    status: Optional[str] = Query(None),
    user_id: Optional[str] = Query(None, alias="userId"),
    page: Pagination = Depends(pagination_params),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    if status and status not in {s.value for s in OrderStatus}:
        raise ValidationError(f"Unknown order status: {status}", field="status")
    orders, total = await order_store.list_orders(
        db, status=status, user_id=user_id, limit=page["limit"], offset=page["offset"]
    )
    return paginated_response(
        [order_store.serialize_order(o) for o in orders],
        limit=page["limit"],
        offset=page["offset"],
        total=total,
    )


@router.post("/orders/{order_id}/confirm-fulfillment")
async def confirm_fulfillment(
    order_id: str,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    orchestrator: OrderOrchestrator = Depends(get_order_orchestrator),
):
    logger.info(f"Admin {admin.get('sub')} confirming fulfillment for order {order_id}")
    result = await orchestrator.confirm_draft_fulfillment_order(db, order_id)
    return order_result_response(result)


@router.patch("/products/{product_id}")
async def update_product(
    product_id: int,
    request: ProductUpdateRequest,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    product = await product_service.update_product(db, product_id, **request.model_dump())
    return success_response(product_service.serialize_product(product))


@router.delete("/products/{product_id}")
async def delete_product(
    product_id: int,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await product_service.delete_product(db, product_id)
    return success_response({"id": product_id, "deleted": True})


@router.post("/products/sync")
async def sync_products(
    keep_missing: bool = Query(False, alias="keepMissing"),
    admin: dict = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db),
    client: PrintfulClient = Depends(get_printful_client),
):
    logger.info(f"Catalog sync started by {admin.get('sub')}")
    result = await catalog_sync.sync_catalog(db, client, delete_missing=not keep_missing)
    return success_response(result.to_dict())
