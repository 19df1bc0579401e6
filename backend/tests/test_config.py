"""
Tests for settings: environment switches and production validation.
"""
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import pytest


class TestEnvironmentSwitch:

    @pytest.mark.unit
    @pytest.mark.parametrize("environment,confirm", [
        ("development", False),
        ("sandbox", False),
        ("production", True),
        ("PRODUCTION", True),
    ])
    def test_confirm_only_in_production(self, make_settings, environment, confirm):
        assert make_settings(environment=environment).confirm_fulfillment_orders is confirm

    @pytest.mark.unit
    def test_placeholder_only_outside_production(self, make_settings):
        assert make_settings(printful_skip_in_development=True).use_placeholder_fulfillment is True
        assert make_settings(
            environment="production", printful_skip_in_development=True
        ).use_placeholder_fulfillment is False

    @pytest.mark.unit
    def test_cors_origins_list(self, make_settings):
        settings = make_settings(cors_origins="https://shop.example.com, https://admin.example.com,")
        assert settings.cors_origins_list == ["https://shop.example.com", "https://admin.example.com"]


class TestProductionValidation:

    @pytest.mark.unit
    def test_valid_production_settings(self, prod_settings):
        prod_settings.model_copy(update={"cors_origins": "https://shop.example.com"}).validate_production_settings()

    @pytest.mark.unit
    def test_sandbox_paypal_rejected_in_production(self, prod_settings):
        settings = prod_settings.model_copy(update={"paypal_environment": "sandbox"})
        with pytest.raises(ValueError, match="PAYPAL_ENVIRONMENT"):
            settings.validate_production_settings()

    @pytest.mark.unit
    def test_missing_webhook_token_rejected_in_production(self, prod_settings):
        settings = prod_settings.model_copy(update={
            "printful_webhook_token": "",
            "cors_origins": "https://shop.example.com",
        })
        with pytest.raises(ValueError, match="PRINTFUL_WEBHOOK_TOKEN"):
            settings.validate_production_settings()

    @pytest.mark.unit
    def test_development_only_warns(self, make_settings):
        make_settings(paypal_client_id="", printful_api_key="", cors_origins="*").validate_production_settings()
