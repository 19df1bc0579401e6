"""
Printful client — thin async wrapper over the Printful REST API.

Every call sends the store API key as a Bearer token. Printful wraps
payloads in ``{"code": 200, "result": ...}``; methods return ``result``.

Order creation takes an explicit ``confirm`` flag: draft orders sit in the
Printful dashboard for review, confirmed orders go straight to production.
Callers pick the flag from the deployment environment, never from the order.
"""
import logging
from typing import Optional

import httpx

from config import Settings
from domain.errors import FulfillmentGatewayError

logger = logging.getLogger(__name__)


class PrintfulClient:
    """Async Printful REST client bound to one Settings object."""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self.base_url = settings.printful_base_url.rstrip("/")
        self._transport = transport

    def _headers(self) -> dict:
        if not self.settings.printful_api_key:
            raise FulfillmentGatewayError("Printful API key not configured (PRINTFUL_API_KEY)")
        return {
            "Authorization": f"Bearer {self.settings.printful_api_key}",
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        """Send one request and return the full JSON envelope."""
        headers = self._headers()
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.settings.http_timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.request(method, path, headers=headers, **kwargs)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"Printful API error on {method} {path}: "
                f"{e.response.status_code} - {e.response.text}"
            )
            raise FulfillmentGatewayError(
                f"Printful API error: {e.response.status_code} - {_error_message(e.response)}",
                upstream_status=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Printful unreachable on {method} {path}: {e}")
            raise FulfillmentGatewayError(f"Printful request failed: {e}") from e
        return response.json()

    async def _result(self, method: str, path: str, **kwargs):
        return (await self._request(method, path, **kwargs)).get("result")

    # ── Store products ──────────────────────────────────────────────

    async def get_products(self) -> list[dict]:
        """All store products, following offset/limit paging until the total is reached."""
        products: list[dict] = []
        offset = 0
        limit = self.settings.printful_page_size
        while True:
            envelope = await self._request(
                "GET", "/store/products", params={"offset": offset, "limit": limit}
            )
            page = envelope.get("result") or []
            products.extend(page)

            total = (envelope.get("paging") or {}).get("total")
            offset += len(page)
            if not page or total is None or offset >= total:
                break
        return products

    async def get_product(self, product_id: int | str) -> dict:
        """One store product with its variants: ``{"sync_product": …, "sync_variants": […]}``."""
        return await self._result("GET", f"/store/products/{product_id}")

    # ── Orders ──────────────────────────────────────────────────────

    async def create_order(self, order: dict, *, confirm: bool) -> dict:
        """Create an order; ``confirm=False`` leaves it as a draft."""
        result = await self._result(
            "POST",
            "/orders",
            params={"confirm": "true" if confirm else "false"},
            json=order,
        )
        logger.info(
            f"Printful order created: {result.get('id')} "
            f"(external_id={order.get('external_id')}, confirm={confirm})"
        )
        return result

    async def confirm_order(self, printful_order_id: int | str) -> dict:
        """Move a draft order into production."""
        result = await self._result("POST", f"/orders/{printful_order_id}/confirm")
        logger.info(f"Printful order confirmed: {printful_order_id}")
        return result

    async def get_order(self, printful_order_id: int | str) -> dict:
        return await self._result("GET", f"/orders/{printful_order_id}")

    async def get_shipping_rates(self, recipient: dict, items: list[dict]) -> list[dict]:
        """Rate quotes for a recipient and ``[{sync_variant_id, quantity}]`` items."""
        return await self._result(
            "POST", "/shipping/rates", json={"recipient": recipient, "items": items}
        )


def _error_message(response: httpx.Response) -> str:
    """Printful error bodies look like ``{"code": 400, "error": {"message": …}}``; fall back to raw text."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:500]
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    if isinstance(body, dict) and isinstance(body.get("result"), str):
        return body["result"]
    return response.text[:500]
