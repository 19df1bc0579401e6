"""
Order endpoints — create, complete, cancel and read orders.

Create/complete return the OrderResult fields; a failed result is rendered
as the error envelope with a status code chosen from its error code.
"""
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from deps import get_order_orchestrator
from domain.errors import NotFoundError
from domain.responses import order_result_response, success_response
from models import CompleteOrderRequest, CreateOrderRequest
from services import order_store
from services.order_service import OrderOrchestrator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("")
async def create_order(
    request: CreateOrderRequest,
    db: AsyncSession = Depends(get_db),
    orchestrator: OrderOrchestrator = Depends(get_order_orchestrator),
):
    result = await orchestrator.create_order(
        db,
        items=[i.model_dump() for i in request.items],
        shipping_address=request.shipping_address.model_dump(),
        subtotal=request.subtotal,
        shipping=request.shipping,
        total=request.total,
        user_id=request.user_id,
    )
    return order_result_response(result, status_code=status.HTTP_201_CREATED)


@router.get("/{order_id}")
async def get_order(order_id: str, db: AsyncSession = Depends(get_db)):
    order = await order_store.get_order_with_details(db, order_id)
    if order is None:
        raise NotFoundError("Order", order_id)
    return success_response(order_store.serialize_order(order, details=True))


@router.post("/{order_id}/complete")
async def complete_order(
    order_id: str,
    request: CompleteOrderRequest,
    db: AsyncSession = Depends(get_db),
    orchestrator: OrderOrchestrator = Depends(get_order_orchestrator),
):
    result = await orchestrator.complete_order(db, order_id, request.payment_reference)
    return order_result_response(result)


@router.post("/{order_id}/cancel")
async def cancel_order(
    order_id: str,
    db: AsyncSession = Depends(get_db),
    orchestrator: OrderOrchestrator = Depends(get_order_orchestrator),
):
    found = await orchestrator.cancel_order(db, order_id)
    return success_response({
        "orderId": order_id,
        "found": found,
        "status": "cancelled" if found else None,
    })
