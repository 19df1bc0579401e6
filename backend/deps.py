"""
Shared FastAPI dependencies.

Routers import the DB session, gateway clients, the order orchestrator, admin
guards and pagination from here. The gateway clients are built once per
process so the PayPal access token cache is shared by every request.
"""

from __future__ import annotations

from typing import TypedDict

from fastapi import Query

from config import Settings, settings
from services.order_service import OrderOrchestrator
from services.paypal_client import PayPalClient
from services.printful_client import PrintfulClient
from middleware.auth import require_admin, require_super_admin  # noqa: F401  (re-exported for routers)


class Pagination(TypedDict):
    limit: int
    offset: int


def pagination_params(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0, le=100_000),
) -> Pagination:
    return {"limit": limit, "offset": offset}


def get_settings() -> Settings:
    return settings


_paypal_client: PayPalClient | None = None
_printful_client: PrintfulClient | None = None
_orchestrator: OrderOrchestrator | None = None


def get_paypal_client() -> PayPalClient:
    global _paypal_client
    if _paypal_client is None:
        _paypal_client = PayPalClient(settings)
    return _paypal_client


def get_printful_client() -> PrintfulClient:
    global _printful_client
    if _printful_client is None:
        _printful_client = PrintfulClient(settings)
    return _printful_client


def get_order_orchestrator() -> OrderOrchestrator:
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = OrderOrchestrator(settings, get_paypal_client(), get_printful_client())
    return _orchestrator
