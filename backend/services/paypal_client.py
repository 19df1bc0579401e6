"""
PayPal client — OAuth2 client-credentials token handling plus the checkout
order endpoints used by the order orchestrator.

Endpoints:
    POST /v1/oauth2/token                    — Basic auth, grant_type=client_credentials
    POST /v2/checkout/orders                 — create a CAPTURE-intent order
    POST /v2/checkout/orders/{id}/capture    — capture an approved order
    GET  /v2/checkout/orders/{id}            — read-only fetch (diagnostics)

The access token is reused until 80% of its declared lifetime has passed.
Refresh is serialized with an asyncio.Lock so concurrent requests sharing one
client fetch a single token.

This client does not interpret capture results; the orchestrator decides
whether a returned status counts as a completed payment.
"""
import asyncio
import base64
import logging
import time
from decimal import Decimal
from typing import Any, Callable, Optional

import httpx

from config import Settings
from domain.errors import PaymentGatewayError

logger = logging.getLogger(__name__)

TOKEN_LIFETIME_FRACTION = 0.8


def format_amount(value: Decimal | float | int | str) -> str:
    """PayPal amounts are strings with exactly two decimals."""
    return str(Decimal(str(value)).quantize(Decimal("0.01")))


class PayPalClient:
    """Async PayPal REST client bound to one Settings object."""

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings
        self.base_url = settings.paypal_base_url
        self._transport = transport
        self._clock = clock
        self._access_token: Optional[str] = None
        self._token_expires_at: float = 0.0
        self._token_lock = asyncio.Lock()

    # ── HTTP plumbing ───────────────────────────────────────────────

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.settings.http_timeout_seconds,
            transport=self._transport,
        )

    async def _send(self, method: str, path: str, **kwargs) -> dict:
        """Send one request and return its JSON body; non-2xx raises PaymentGatewayError."""
        try:
            async with self._client() as client:
                response = await client.request(method, path, **kwargs)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"PayPal API error on {method} {path}: "
                f"{e.response.status_code} - {e.response.text}"
            )
            raise PaymentGatewayError(
                f"PayPal request failed: {method} {path} returned {e.response.status_code}",
                upstream_status=e.response.status_code,
                details={"body": e.response.text[:1000]},
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"PayPal unreachable on {method} {path}: {e}")
            raise PaymentGatewayError(f"PayPal request failed: {e}") from e

        if not response.content:
            return {}
        return response.json()

    # ── Token ───────────────────────────────────────────────────────

    def _token_is_valid(self) -> bool:
        return bool(self._access_token) and self._clock() < self._token_expires_at

    async def get_access_token(self) -> str:
        """Return a cached access token, fetching a new one after local expiry."""
        if self._token_is_valid():
            return self._access_token

        async with self._token_lock:
            # Another request may have refreshed while we waited
            if self._token_is_valid():
                return self._access_token

            if not self.settings.paypal_client_id or not self.settings.paypal_client_secret:
                raise PaymentGatewayError("PayPal client ID and secret are required")

            credentials = f"{self.settings.paypal_client_id}:{self.settings.paypal_client_secret}"
            auth = base64.b64encode(credentials.encode()).decode()
            data = await self._send(
                "POST",
                "/v1/oauth2/token",
                headers={
                    "Authorization": f"Basic {auth}",
                    "Content-Type": "application/x-www-form-urlencoded",
                },
                data={"grant_type": "client_credentials"},
            )

            token = data.get("access_token")
            if not token:
                raise PaymentGatewayError("Failed to get access token from PayPal")

            expires_in = float(data.get("expires_in", 0))
            self._access_token = token
            self._token_expires_at = self._clock() + expires_in * TOKEN_LIFETIME_FRACTION
            logger.info(f"PayPal access token refreshed (expires_in={int(expires_in)}s)")
            return token

    async def _auth_headers(self) -> dict:
        token = await self.get_access_token()
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    # ── Orders ──────────────────────────────────────────────────────

    async def create_order(
        self,
        *,
        total: Decimal,
        item_total: Decimal,
        shipping_total: Decimal,
        items: list[dict],
        shipping: Optional[dict] = None,
        currency: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> dict:
        """
        Create a CAPTURE-intent checkout order.

        Args:
            total: Amount charged to the buyer
            item_total: Sum of line items, sent as the amount breakdown
            shipping_total: Shipping cost, sent as the amount breakdown
            items: PayPal item dicts (name, quantity, unit_amount, sku, description)
            shipping: Optional shipping destination (name + address)
            currency: ISO currency code, defaults to settings.paypal_currency
            request_id: PayPal-Request-Id idempotency key

        Returns:
            dict: The PayPal order (id, status, links, …)
        """
        currency = currency or self.settings.paypal_currency
        purchase_unit: dict[str, Any] = {
            "amount": {
                "currency_code": currency,
                "value": format_amount(total),
                "breakdown": {
                    "item_total": {"currency_code": currency, "value": format_amount(item_total)},
                    "shipping": {"currency_code": currency, "value": format_amount(shipping_total)},
                },
            },
            "items": items,
        }
        if shipping:
            purchase_unit["shipping"] = shipping

        headers = await self._auth_headers()
        if request_id:
            headers["PayPal-Request-Id"] = request_id

        order = await self._send(
            "POST",
            "/v2/checkout/orders",
            headers=headers,
            json={"intent": "CAPTURE", "purchase_units": [purchase_unit]},
        )
        logger.info(f"PayPal order created: {order.get('id')} ({format_amount(total)} {currency})")
        return order

    async def capture_order(self, paypal_order_id: str) -> dict:
        """Capture an approved order. The returned status is left for the caller to judge."""
        headers = await self._auth_headers()
        order = await self._send(
            "POST",
            f"/v2/checkout/orders/{paypal_order_id}/capture",
            headers=headers,
            json={},
        )
        logger.info(f"PayPal capture for {paypal_order_id}: status={order.get('status')}")
        return order

    async def get_order(self, paypal_order_id: str) -> dict:
        headers = await self._auth_headers()
        return await self._send("GET", f"/v2/checkout/orders/{paypal_order_id}", headers=headers)
