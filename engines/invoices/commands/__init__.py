"""Studio Invoices Engine - request commands."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from core.commands.base import Command, build_command
from core.commands.errors import ValidationError
from core.context.actor_context import ActorContext
from core.money import MAX_CENTS

INVOICE_CREATE_FROM_QUOTE_REQUEST = "invoice.document.create_from_quote.request"
INVOICE_CREATE_STAGED_REQUEST = "invoice.document.create_staged.request"
INVOICE_SEND_REQUEST = "invoice.document.send.request"
INVOICE_CANCEL_REQUEST = "invoice.document.cancel.request"
INVOICE_PAYMENT_APPLY_REQUEST = "invoice.payment.apply.request"
INVOICE_MARK_PAID_REQUEST = "invoice.document.mark_paid.request"

INVOICE_COMMAND_TYPES = frozenset({
    INVOICE_CREATE_FROM_QUOTE_REQUEST,
    INVOICE_CREATE_STAGED_REQUEST,
    INVOICE_SEND_REQUEST,
    INVOICE_CANCEL_REQUEST,
    INVOICE_PAYMENT_APPLY_REQUEST,
    INVOICE_MARK_PAID_REQUEST,
})

STAGED_MODE_PERCENT = "PERCENT"
STAGED_MODE_AMOUNT = "AMOUNT"
STAGED_MODE_FINAL = "FINAL"
VALID_STAGED_MODES = frozenset({
    STAGED_MODE_PERCENT,
    STAGED_MODE_AMOUNT,
    STAGED_MODE_FINAL,
})
MAX_CANCEL_REASON_LENGTH = 1000


def _require_id(value, name: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{name} must be non-empty.")


def _require_positive_cents(value, name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{name} must be integer > 0.")
    if value > MAX_CENTS:
        raise ValidationError(f"{name} exceeds the maximum storable amount.")


class _InvoiceRequest:
    command_type = ""

    def payload(self) -> dict:
        return {"invoice_id": self.invoice_id}

    def to_command(self, *, business_id: uuid.UUID, actor: ActorContext,
                   issued_at: datetime, command_id=None,
                   correlation_id=None) -> Command:
        return build_command(
            self.command_type,
            self.payload(),
            business_id=business_id,
            actor=actor,
            issued_at=issued_at,
            command_id=command_id,
            correlation_id=correlation_id,
        )


# ══════════════════════════════════════════════════════════════
# CREATION
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class InvoiceCreateFromQuoteRequest(_InvoiceRequest):
    quote_id: str

    command_type = INVOICE_CREATE_FROM_QUOTE_REQUEST

    def __post_init__(self):
        _require_id(self.quote_id, "quote_id")

    def payload(self) -> dict:
        return {"quote_id": self.quote_id}


@dataclass(frozen=True)
class InvoiceCreateStagedRequest(_InvoiceRequest):
    """
    PERCENT: value is 1..100 of the project total.
    AMOUNT: value is positive cents.
    FINAL: value must be omitted; invoices whatever remains.
    """

    project_id: str
    mode: str
    value: Optional[int] = None
    note: Optional[str] = None

    command_type = INVOICE_CREATE_STAGED_REQUEST

    def __post_init__(self):
        _require_id(self.project_id, "project_id")
        if not isinstance(self.mode, str) or self.mode not in VALID_STAGED_MODES:
            raise ValidationError(f"mode '{self.mode}' is not valid.")
        if self.mode == STAGED_MODE_FINAL:
            if self.value is not None:
                raise ValidationError("value is not accepted for a FINAL invoice.")
            return
        _require_positive_cents(self.value, "value")
        if self.mode == STAGED_MODE_PERCENT and self.value > 100:
            raise ValidationError("PERCENT value must be between 1 and 100.")

    def payload(self) -> dict:
        return {
            "project_id": self.project_id,
            "mode": self.mode,
            "value": self.value,
            "note": self.note,
        }


# ══════════════════════════════════════════════════════════════
# TRANSITIONS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class InvoiceSendRequest(_InvoiceRequest):
    """due_at=None derives the due date from the business payment terms."""

    invoice_id: str
    due_at: Optional[datetime] = None

    command_type = INVOICE_SEND_REQUEST

    def __post_init__(self):
        _require_id(self.invoice_id, "invoice_id")
        if self.due_at is not None and (
            not isinstance(self.due_at, datetime) or self.due_at.tzinfo is None
        ):
            raise ValidationError("due_at must be a timezone-aware datetime.")

    def payload(self) -> dict:
        return {"invoice_id": self.invoice_id, "due_at": self.due_at}


@dataclass(frozen=True)
class InvoiceCancelRequest(_InvoiceRequest):
    invoice_id: str
    reason: Optional[str] = None

    command_type = INVOICE_CANCEL_REQUEST

    def __post_init__(self):
        _require_id(self.invoice_id, "invoice_id")
        if self.reason is None:
            return
        if not isinstance(self.reason, str):
            raise ValidationError("reason must be a string.")
        if len(self.reason) > MAX_CANCEL_REASON_LENGTH:
            raise ValidationError(
                f"reason must be at most {MAX_CANCEL_REASON_LENGTH} characters."
            )

    def payload(self) -> dict:
        reason = self.reason.strip() if self.reason else None
        return {"invoice_id": self.invoice_id, "reason": reason or None}


@dataclass(frozen=True)
class InvoicePaymentApplyRequest(_InvoiceRequest):
    invoice_id: str
    amount_cents: int

    command_type = INVOICE_PAYMENT_APPLY_REQUEST

    def __post_init__(self):
        _require_id(self.invoice_id, "invoice_id")
        _require_positive_cents(self.amount_cents, "amount_cents")

    def payload(self) -> dict:
        return {"invoice_id": self.invoice_id, "amount_cents": self.amount_cents}


@dataclass(frozen=True)
class InvoiceMarkPaidRequest(_InvoiceRequest):
    invoice_id: str

    command_type = INVOICE_MARK_PAID_REQUEST

    def __post_init__(self):
        _require_id(self.invoice_id, "invoice_id")
