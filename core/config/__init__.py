"""
Studio Core Config - Public API
=================================
Per-business billing settings.
"""

from core.config.rules import (
    DEFAULT_CURRENCY,
    DEFAULT_DEPOSIT_PERCENT,
    DEFAULT_INVOICE_PREFIX,
    DEFAULT_PAYMENT_TERMS_DAYS,
    DEFAULT_QUOTE_PREFIX,
    DEFAULT_QUOTE_VALIDITY_DAYS,
    BillingSettings,
    default_settings,
)

__all__ = [
    "BillingSettings",
    "default_settings",
    "DEFAULT_CURRENCY",
    "DEFAULT_DEPOSIT_PERCENT",
    "DEFAULT_PAYMENT_TERMS_DAYS",
    "DEFAULT_QUOTE_VALIDITY_DAYS",
    "DEFAULT_QUOTE_PREFIX",
    "DEFAULT_INVOICE_PREFIX",
]
