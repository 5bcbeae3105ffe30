"""
Studio Core Config - Per-Business Billing Settings
====================================================
Doctrine: No hardcoded deposit percent, currency or payment terms
in engine logic. They come from the business's settings record,
read and written through the data store so numbering counters
advance in the same unit of work as the document they number.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Optional

DEFAULT_CURRENCY = "EUR"
DEFAULT_DEPOSIT_PERCENT = 30
DEFAULT_PAYMENT_TERMS_DAYS = 30
DEFAULT_QUOTE_VALIDITY_DAYS = 30
DEFAULT_QUOTE_PREFIX = "SF-DEV"
DEFAULT_INVOICE_PREFIX = "SF-FAC"


# ══════════════════════════════════════════════════════════════
# BILLING SETTINGS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class BillingSettings:
    """
    Billing configuration for one business.

    quote_validity_days=None means quotes never expire by default.
    next_*_number are the next sequence values to hand out.
    """

    business_id: uuid.UUID
    currency: str = DEFAULT_CURRENCY
    default_deposit_percent: int = DEFAULT_DEPOSIT_PERCENT
    payment_terms_days: int = DEFAULT_PAYMENT_TERMS_DAYS
    quote_validity_days: Optional[int] = DEFAULT_QUOTE_VALIDITY_DAYS
    quote_prefix: str = DEFAULT_QUOTE_PREFIX
    invoice_prefix: str = DEFAULT_INVOICE_PREFIX
    next_quote_number: int = 1
    next_invoice_number: int = 1
    version: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.business_id, uuid.UUID):
            raise ValueError("business_id must be UUID.")
        if (not isinstance(self.currency, str) or len(self.currency) != 3
                or not self.currency.isupper()):
            raise ValueError(
                f"currency must be an upper-case 3-letter code, got '{self.currency}'."
            )
        if not 0 <= self.default_deposit_percent <= 100:
            raise ValueError(
                f"default_deposit_percent must be between 0 and 100, "
                f"got {self.default_deposit_percent}."
            )
        if self.payment_terms_days < 0:
            raise ValueError("payment_terms_days cannot be negative.")
        if self.quote_validity_days is not None and self.quote_validity_days < 1:
            raise ValueError("quote_validity_days must be >= 1 or None.")
        if not self.quote_prefix or not self.invoice_prefix:
            raise ValueError("document prefixes must be non-empty.")
        if self.next_quote_number < 1 or self.next_invoice_number < 1:
            raise ValueError("numbering counters must be >= 1.")

    def to_dict(self) -> dict:
        return {
            "business_id": str(self.business_id),
            "currency": self.currency,
            "default_deposit_percent": self.default_deposit_percent,
            "payment_terms_days": self.payment_terms_days,
            "quote_validity_days": self.quote_validity_days,
            "quote_prefix": self.quote_prefix,
            "invoice_prefix": self.invoice_prefix,
            "next_quote_number": self.next_quote_number,
            "next_invoice_number": self.next_invoice_number,
        }


def default_settings(business_id: uuid.UUID) -> BillingSettings:
    """Settings used for a business that has never saved any."""
    return BillingSettings(business_id=business_id)
