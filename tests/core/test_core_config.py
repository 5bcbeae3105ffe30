"""
Tests for core.config - per-business billing settings.
"""

import uuid

import pytest

from core.config.rules import (
    DEFAULT_DEPOSIT_PERCENT,
    DEFAULT_QUOTE_PREFIX,
    BillingSettings,
    default_settings,
)

BIZ = uuid.uuid4()


class TestBillingSettings:
    def test_defaults(self):
        settings = default_settings(BIZ)
        assert settings.business_id == BIZ
        assert settings.currency == "EUR"
        assert settings.default_deposit_percent == DEFAULT_DEPOSIT_PERCENT == 30
        assert settings.quote_prefix == DEFAULT_QUOTE_PREFIX
        assert settings.next_quote_number == 1
        assert settings.next_invoice_number == 1

    def test_deposit_percent_out_of_range(self):
        with pytest.raises(ValueError, match="between 0 and 100"):
            BillingSettings(business_id=BIZ, default_deposit_percent=101)

    def test_lower_case_currency_rejected(self):
        with pytest.raises(ValueError, match="3-letter"):
            BillingSettings(business_id=BIZ, currency="eur")

    def test_validity_days_may_be_disabled(self):
        settings = BillingSettings(business_id=BIZ, quote_validity_days=None)
        assert settings.quote_validity_days is None

    def test_zero_validity_days_rejected(self):
        with pytest.raises(ValueError, match="quote_validity_days"):
            BillingSettings(business_id=BIZ, quote_validity_days=0)

    def test_counters_start_at_one(self):
        with pytest.raises(ValueError, match="counters"):
            BillingSettings(business_id=BIZ, next_invoice_number=0)

    def test_business_id_must_be_uuid(self):
        with pytest.raises(ValueError, match="UUID"):
            BillingSettings(business_id=str(BIZ))

    def test_frozen_immutability(self):
        settings = default_settings(BIZ)
        with pytest.raises(AttributeError):
            settings.currency = "USD"

    def test_to_dict(self):
        data = default_settings(BIZ).to_dict()
        assert data["business_id"] == str(BIZ)
        assert data["invoice_prefix"] == "SF-FAC"
