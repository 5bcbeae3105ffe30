"""Studio Invoices Engine - event types and payload builders."""

from __future__ import annotations

from core.commands.base import Command
from core.primitives.document import Invoice

INVOICE_CREATED_V1 = "invoice.document.created.v1"
INVOICE_SENT_V1 = "invoice.document.sent.v1"
INVOICE_PAYMENT_APPLIED_V1 = "invoice.payment.applied.v1"
INVOICE_PAID_V1 = "invoice.document.paid.v1"
INVOICE_CANCELLED_V1 = "invoice.document.cancelled.v1"

INVOICE_EVENT_TYPES = (
    INVOICE_CREATED_V1,
    INVOICE_SENT_V1,
    INVOICE_PAYMENT_APPLIED_V1,
    INVOICE_PAID_V1,
    INVOICE_CANCELLED_V1,
)


def _base_payload(command: Command) -> dict:
    return {
        "business_id": command.business_id,
        "actor_id": command.actor.actor_id,
        "actor_role": command.actor.role,
        "correlation_id": command.correlation_id,
        "command_id": command.command_id,
    }


def build_invoice_payload(command: Command, invoice: Invoice) -> dict:
    payload = _base_payload(command)
    payload.update({
        "invoice_id": invoice.invoice_id,
        "project_id": invoice.project_id,
        "quote_id": invoice.quote_id,
        "status": invoice.status.value,
        "number": invoice.number,
        "currency": invoice.currency,
        "total_cents": invoice.total_cents,
        "paid_cents": invoice.paid_cents,
        "remaining_cents": invoice.remaining_cents,
    })
    return payload


def build_payment_applied_payload(command: Command, invoice: Invoice, applied_cents: int) -> dict:
    payload = build_invoice_payload(command, invoice)
    payload.update({
        "requested_cents": command.payload["amount_cents"],
        "applied_cents": applied_cents,
        "payment_state": invoice.payment_state.value,
    })
    return payload


def build_invoice_paid_payload(command: Command, invoice: Invoice) -> dict:
    payload = build_invoice_payload(command, invoice)
    payload.update({
        "paid_at": invoice.paid_at,
        "cash_sale_ledger_ref": invoice.cash_sale_ledger_ref,
    })
    return payload


def build_invoice_cancelled_payload(command: Command, invoice: Invoice) -> dict:
    payload = build_invoice_payload(command, invoice)
    payload.update({
        "cancelled_at": invoice.cancelled_at,
        "cancel_reason": invoice.cancel_reason,
    })
    return payload
