"""
Configuration management for the print-on-demand storefront backend.

Loads settings from .env via pydantic-settings. A Settings instance is the
single configuration object passed into the order orchestrator and both
gateway clients; the module-level ``settings`` is the one the app process
builds at startup.

Environments:
    - development / sandbox: Printful orders are created as drafts (confirm=false),
      PayPal talks to the sandbox API
    - production: Printful orders are confirmed and processed immediately
"""
import logging
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

PAYPAL_BASE_URLS = {
    "sandbox": "https://api-m.sandbox.paypal.com",
    "production": "https://api-m.paypal.com",
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ── Application ─────────────────────────────────────────────────
    environment: str = "development"  # development | sandbox | production

    # ── Database ────────────────────────────────────────────────────
    database_url: str = "sqlite:///./data/storefront.db"

    # ── PayPal ──────────────────────────────────────────────────────
    paypal_client_id: str = ""
    paypal_client_secret: str = ""
    paypal_environment: str = "sandbox"  # sandbox | production
    paypal_currency: str = "USD"

    # ── Printful ────────────────────────────────────────────────────
    printful_api_key: str = ""
    printful_base_url: str = "https://api.printful.com"
    # Non-production only: skip the Printful call and store a placeholder reference
    printful_skip_in_development: bool = False
    printful_webhook_token: str = ""
    printful_page_size: int = 100

    # ── HTTP ────────────────────────────────────────────────────────
    http_timeout_seconds: float = 30.0

    # ── Auth (JWT) ──────────────────────────────────────────────────
    jwt_secret: str = ""
    jwt_issuer: str = "storefront-api"
    jwt_access_ttl_minutes: int = 60

    # ── CORS ────────────────────────────────────────────────────────
    cors_origins: str = "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,http://127.0.0.1:3000"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def confirm_fulfillment_orders(self) -> bool:
        """Printful orders are confirmed only in production; everywhere else they stay drafts."""
        return self.is_production

    @property
    def use_placeholder_fulfillment(self) -> bool:
        return self.printful_skip_in_development and not self.is_production

    @property
    def paypal_base_url(self) -> str:
        return PAYPAL_BASE_URLS.get(self.paypal_environment.lower(), PAYPAL_BASE_URLS["sandbox"])

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def validate_production_settings(self):
        """
        Validate settings for production safety.

        Called during app startup. Raises in production, only warns elsewhere.
        """
        if self.is_production:
            if not self.paypal_client_id or not self.paypal_client_secret:
                raise ValueError("PAYPAL_CLIENT_ID and PAYPAL_CLIENT_SECRET must be set in production.")
            if self.paypal_environment.lower() != "production":
                raise ValueError(
                    "PAYPAL_ENVIRONMENT must be 'production' when ENVIRONMENT=production. "
                    "Live orders must not be paid against the sandbox."
                )
            if not self.printful_api_key:
                raise ValueError("PRINTFUL_API_KEY must be set in production.")
            if "*" in self.cors_origins:
                raise ValueError(
                    "CORS_ORIGINS must not contain '*' in production. "
                    "Set explicit allowed origins."
                )
            if not self.jwt_secret:
                raise ValueError(
                    "JWT_SECRET must be set in production. "
                    "It is used to sign admin access tokens."
                )
            if not self.printful_webhook_token:
                raise ValueError(
                    "PRINTFUL_WEBHOOK_TOKEN must be set in production. "
                    "Webhooks are rejected without it."
                )
            logger.info("✅ Production settings validated")
        else:
            warnings = []
            if not self.paypal_client_id or not self.paypal_client_secret:
                warnings.append("PayPal credentials missing (checkout will fail)")
            if not self.printful_api_key and not self.printful_skip_in_development:
                warnings.append("PRINTFUL_API_KEY missing (fulfillment orders will need manual review)")
            if self.printful_skip_in_development:
                warnings.append("PRINTFUL_SKIP_IN_DEVELOPMENT=true (placeholder fulfillment references)")
            if "*" in self.cors_origins:
                warnings.append("CORS_ORIGINS contains '*' (open access)")
            for w in warnings:
                logger.warning(f"⚠️  {w}")


# Global settings instance
settings = Settings()
