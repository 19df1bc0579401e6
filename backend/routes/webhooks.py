"""
Printful webhook receiver.

Printful is configured to call ``/webhooks/printful?token=<PRINTFUL_WEBHOOK_TOKEN>``.
Every processed or ignored event is acknowledged with 200 so Printful stops
retrying; only a bad token or a malformed body is rejected.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from config import Settings
from database import get_db
from deps import get_settings
from domain.errors import UnauthorizedError, ValidationError
from domain.responses import success_response
from services import webhook_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/printful")
async def printful_webhook(
    request: Request,
    token: Optional[str] = Query(None),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_db),
):
    if not webhook_service.verify_webhook_token(settings, token):
        raise UnauthorizedError("Invalid webhook token")

    try:
        event = await request.json()
    except ValueError:
        raise ValidationError("Webhook body must be JSON")
    if not isinstance(event, dict):
        raise ValidationError("Webhook body must be a JSON object")

    result = await webhook_service.process_webhook(event, db)
    return success_response(result)
