"""
Studio Document Primitive - Quotes, Invoices and Line Items
=============================================================
Quotes and Invoices are independent aggregates referencing a
Project by id. An Invoice may reference a Quote; a Quote never
references an Invoice.

RULES (NON-NEGOTIABLE):
- Line items are a frozen snapshot; documents never re-read
  live project services
- Quote: deposit_cents + balance_cents == total_cents and
  deposit_cents == percent_of(total_cents, deposit_percent)
- Invoice: remaining_cents == max(0, total_cents - paid_cents)
  and paid_at is set iff status == PAID
- All amounts are integer cents

This file contains NO persistence logic.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from core.money import percent_of, subtract_clamped
from core.primitives.project import DiscountType


def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


# ══════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════

class QuoteStatus(Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    SIGNED = "SIGNED"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


class InvoiceStatus(Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    PAID = "PAID"
    CANCELLED = "CANCELLED"


class PaymentState(Enum):
    UNPAID = "UNPAID"
    PARTIAL = "PARTIAL"
    PAID = "PAID"


def payment_state_for(total_cents: int, paid_cents: int) -> PaymentState:
    """Nothing owed counts as PAID, so a zero total is never UNPAID."""
    if paid_cents >= total_cents:
        return PaymentState.PAID
    if paid_cents <= 0:
        return PaymentState.UNPAID
    return PaymentState.PARTIAL


# ══════════════════════════════════════════════════════════════
# LINE ITEM (frozen snapshot)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class LineItem:
    label: str
    quantity: int
    unit_price_cents: int
    total_cents: int
    service_id: Optional[str] = None
    description: Optional[str] = None
    discount_type: DiscountType = DiscountType.NONE
    discount_value: Optional[int] = None
    original_unit_price_cents: Optional[int] = None

    def __post_init__(self):
        if not self.label or not isinstance(self.label, str):
            raise ValueError("label must be non-empty string.")
        if self.quantity < 1:
            raise ValueError("quantity must be >= 1.")
        if self.unit_price_cents < 0:
            raise ValueError("unit_price_cents cannot be negative.")
        if self.total_cents != self.quantity * self.unit_price_cents:
            raise ValueError("total_cents must equal quantity * unit_price_cents.")

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "total_cents": self.total_cents,
            "service_id": self.service_id,
            "description": self.description,
            "discount_type": self.discount_type.value,
            "discount_value": self.discount_value,
            "original_unit_price_cents": self.original_unit_price_cents,
        }


# ══════════════════════════════════════════════════════════════
# QUOTE
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Quote:
    quote_id: str
    business_id: uuid.UUID
    project_id: str
    created_at: datetime
    updated_at: datetime
    client_id: Optional[str] = None
    status: QuoteStatus = QuoteStatus.DRAFT
    number: Optional[str] = None
    currency: str = "EUR"
    deposit_percent: int = 30
    total_cents: int = 0
    deposit_cents: int = 0
    balance_cents: int = 0
    items: Tuple[LineItem, ...] = ()
    issued_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    signed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None
    note: Optional[str] = None
    version: int = 0

    def __post_init__(self):
        if not self.quote_id or not self.project_id:
            raise ValueError("quote_id and project_id must be non-empty.")
        if not isinstance(self.business_id, uuid.UUID):
            raise ValueError("business_id must be UUID.")
        if not isinstance(self.status, QuoteStatus):
            raise ValueError("status must be QuoteStatus enum.")
        if not isinstance(self.items, tuple):
            raise ValueError("items must be a tuple.")
        if self.deposit_cents + self.balance_cents != self.total_cents:
            raise ValueError("deposit_cents + balance_cents must equal total_cents.")
        if self.deposit_cents != percent_of(self.total_cents, self.deposit_percent):
            raise ValueError("deposit_cents must equal the rounded deposit share.")
        if (self.signed_at is None) != (self.status != QuoteStatus.SIGNED):
            raise ValueError("signed_at must be set iff status is SIGNED.")

    def to_dict(self) -> dict:
        return {
            "quote_id": self.quote_id,
            "business_id": str(self.business_id),
            "project_id": self.project_id,
            "client_id": self.client_id,
            "status": self.status.value,
            "number": self.number,
            "currency": self.currency,
            "deposit_percent": self.deposit_percent,
            "total_cents": self.total_cents,
            "deposit_cents": self.deposit_cents,
            "balance_cents": self.balance_cents,
            "items": [item.to_dict() for item in self.items],
            "issued_at": _iso(self.issued_at),
            "expires_at": _iso(self.expires_at),
            "signed_at": _iso(self.signed_at),
            "cancelled_at": _iso(self.cancelled_at),
            "cancel_reason": self.cancel_reason,
            "note": self.note,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
            "version": self.version,
        }


# ══════════════════════════════════════════════════════════════
# INVOICE
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Invoice:
    """
    quote_id is None for standalone (staged) invoices.
    consumption_ledger_ref / cash_sale_ledger_ref point at
    ledger entries written on this invoice's behalf.
    """
    invoice_id: str
    business_id: uuid.UUID
    project_id: str
    created_at: datetime
    updated_at: datetime
    client_id: Optional[str] = None
    quote_id: Optional[str] = None
    status: InvoiceStatus = InvoiceStatus.DRAFT
    number: Optional[str] = None
    currency: str = "EUR"
    deposit_percent: int = 0
    total_cents: int = 0
    deposit_cents: int = 0
    balance_cents: int = 0
    paid_cents: int = 0
    items: Tuple[LineItem, ...] = ()
    issued_at: Optional[datetime] = None
    due_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None
    note: Optional[str] = None
    consumption_ledger_ref: Optional[str] = None
    cash_sale_ledger_ref: Optional[str] = None
    version: int = 0

    def __post_init__(self):
        if not self.invoice_id or not self.project_id:
            raise ValueError("invoice_id and project_id must be non-empty.")
        if not isinstance(self.business_id, uuid.UUID):
            raise ValueError("business_id must be UUID.")
        if not isinstance(self.status, InvoiceStatus):
            raise ValueError("status must be InvoiceStatus enum.")
        if not isinstance(self.items, tuple):
            raise ValueError("items must be a tuple.")
        if self.total_cents < 0 or self.paid_cents < 0:
            raise ValueError("amounts cannot be negative.")
        if self.paid_cents > self.total_cents:
            raise ValueError("paid_cents cannot exceed total_cents.")
        if self.deposit_cents + self.balance_cents != self.total_cents:
            raise ValueError("deposit_cents + balance_cents must equal total_cents.")
        if (self.paid_at is None) != (self.status != InvoiceStatus.PAID):
            raise ValueError("paid_at must be set iff status is PAID.")

    @property
    def remaining_cents(self) -> int:
        return subtract_clamped(self.total_cents, self.paid_cents)

    @property
    def payment_state(self) -> PaymentState:
        return payment_state_for(self.total_cents, self.paid_cents)

    def to_dict(self) -> dict:
        return {
            "invoice_id": self.invoice_id,
            "business_id": str(self.business_id),
            "project_id": self.project_id,
            "client_id": self.client_id,
            "quote_id": self.quote_id,
            "status": self.status.value,
            "number": self.number,
            "currency": self.currency,
            "deposit_percent": self.deposit_percent,
            "total_cents": self.total_cents,
            "deposit_cents": self.deposit_cents,
            "balance_cents": self.balance_cents,
            "paid_cents": self.paid_cents,
            "remaining_cents": self.remaining_cents,
            "payment_state": self.payment_state.value,
            "items": [item.to_dict() for item in self.items],
            "issued_at": _iso(self.issued_at),
            "due_at": _iso(self.due_at),
            "paid_at": _iso(self.paid_at),
            "cancelled_at": _iso(self.cancelled_at),
            "cancel_reason": self.cancel_reason,
            "note": self.note,
            "consumption_ledger_ref": self.consumption_ledger_ref,
            "cash_sale_ledger_ref": self.cash_sale_ledger_ref,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
            "version": self.version,
        }
