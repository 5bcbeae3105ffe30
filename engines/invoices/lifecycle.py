"""
Studio Invoices Engine - Invoice State Machine
================================================
DRAFT → SENT → PAID, with CANCELLED from DRAFT/SENT.
PAID and CANCELLED are terminal.

RULES (NON-NEGOTIABLE):
- Invoices copy their amounts and items; they never re-read the quote
- Payments are accepted only while SENT and are clamped so that
  paid_cents never exceeds total_cents
- The invoice becomes PAID exactly when remaining_cents reaches 0;
  paid_at is set on that transition
- Cancelling keeps paid_cents for audit
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Optional, Tuple

from core.commands.errors import InvalidTransitionError, PreconditionError
from core.commands.rejection import ReasonCode, RejectionReason
from core.config.rules import BillingSettings
from core.documents.numbering import DOC_TYPE_INVOICE, allocate_document_number
from core.money import add_cents, percent_of
from core.primitives.document import Invoice, InvoiceStatus, LineItem, Quote
from core.primitives.ledger import CATEGORY_PAYMENT, FinanceLine, FinanceType
from core.primitives.project import Project
from core.primitives.workflow import WorkflowDefinition
from core.time.temporal import add_days
from engines.billing.aggregator import BillingSummary
from engines.invoices.commands import (
    STAGED_MODE_AMOUNT,
    STAGED_MODE_FINAL,
    STAGED_MODE_PERCENT,
)

INVOICE_WORKFLOW = WorkflowDefinition(
    name="invoice",
    initial_state=InvoiceStatus.DRAFT,
    terminal_states=frozenset({InvoiceStatus.PAID, InvoiceStatus.CANCELLED}),
    transitions={
        InvoiceStatus.DRAFT: frozenset({InvoiceStatus.SENT, InvoiceStatus.CANCELLED}),
        InvoiceStatus.SENT: frozenset({InvoiceStatus.PAID, InvoiceStatus.CANCELLED}),
    },
)

FINAL_INVOICE_LABEL = "Final invoice"
PROGRESS_INVOICE_LABEL = "Progress invoice"


def require_transition(invoice: Invoice, target: InvoiceStatus) -> None:
    rejection = INVOICE_WORKFLOW.transition_rejection(
        invoice.status, target, "invoice_transition_policy"
    )
    if rejection is not None:
        raise InvalidTransitionError.from_rejection(rejection)


def _precondition(code: str, message: str, policy_name: str, **details) -> PreconditionError:
    return PreconditionError.from_rejection(RejectionReason(
        code=code,
        message=message,
        policy_name=policy_name,
        details=details,
    ))


# ══════════════════════════════════════════════════════════════
# CREATION
# ══════════════════════════════════════════════════════════════

def build_invoice_from_quote(invoice_id: str, quote: Quote, now: datetime) -> Invoice:
    return Invoice(
        invoice_id=invoice_id,
        business_id=quote.business_id,
        project_id=quote.project_id,
        client_id=quote.client_id,
        quote_id=quote.quote_id,
        status=INVOICE_WORKFLOW.initial_state,
        currency=quote.currency,
        deposit_percent=quote.deposit_percent,
        total_cents=quote.total_cents,
        deposit_cents=quote.deposit_cents,
        balance_cents=quote.balance_cents,
        paid_cents=0,
        items=quote.items,
        created_at=now,
        updated_at=now,
    )


def staged_amount(summary: BillingSummary, mode: str, value: Optional[int]) -> Tuple[int, str]:
    """Return (amount_cents, label) for a staged invoice against `summary`."""
    remaining = summary.remaining_to_invoice_cents
    if summary.total_cents <= 0 or remaining <= 0:
        raise _precondition(
            ReasonCode.NOTHING_TO_INVOICE,
            f"Project '{summary.project_id}' has nothing left to invoice.",
            "staged_invoice_must_have_remaining_policy",
            project_id=summary.project_id,
            remaining_to_invoice_cents=remaining,
        )

    if mode == STAGED_MODE_FINAL:
        return remaining, FINAL_INVOICE_LABEL
    if mode == STAGED_MODE_PERCENT:
        amount = percent_of(summary.total_cents, value)
        label = f"{PROGRESS_INVOICE_LABEL} ({value}%)"
    elif mode == STAGED_MODE_AMOUNT:
        amount, label = value, PROGRESS_INVOICE_LABEL
    else:
        raise ValueError(f"Unknown staged invoice mode: {mode}")

    if amount <= 0:
        raise _precondition(
            ReasonCode.NOTHING_TO_INVOICE,
            "Staged invoice amount rounds to zero.",
            "staged_invoice_must_be_positive_policy",
            project_id=summary.project_id,
        )
    if amount > remaining:
        raise _precondition(
            ReasonCode.AMOUNT_EXCEEDS_REMAINING,
            f"Staged amount {amount} exceeds the {remaining} left to invoice.",
            "staged_invoice_within_remaining_policy",
            project_id=summary.project_id,
            amount_cents=amount,
            remaining_to_invoice_cents=remaining,
        )
    return amount, label


def build_staged_invoice(
    invoice_id: str,
    project: Project,
    summary: BillingSummary,
    mode: str,
    value: Optional[int],
    now: datetime,
    *,
    note: Optional[str] = None,
) -> Invoice:
    amount, label = staged_amount(summary, mode, value)
    return Invoice(
        invoice_id=invoice_id,
        business_id=project.business_id,
        project_id=project.project_id,
        client_id=summary.client_id,
        quote_id=None,
        status=INVOICE_WORKFLOW.initial_state,
        currency=summary.currency,
        deposit_percent=0,
        total_cents=amount,
        deposit_cents=0,
        balance_cents=amount,
        items=(LineItem(
            label=label,
            quantity=1,
            unit_price_cents=amount,
            total_cents=amount,
        ),),
        note=note,
        created_at=now,
        updated_at=now,
    )


# ══════════════════════════════════════════════════════════════
# TRANSITIONS
# ══════════════════════════════════════════════════════════════

def send_invoice(
    invoice: Invoice,
    settings: BillingSettings,
    now: datetime,
    due_at: Optional[datetime] = None,
) -> Tuple[Invoice, Optional[BillingSettings]]:
    """DRAFT → SENT. Returns the sent invoice and the advanced settings when numbered."""
    require_transition(invoice, InvoiceStatus.SENT)
    issued_at = invoice.issued_at or now
    number, advanced = invoice.number, None
    if number is None:
        number, advanced = allocate_document_number(settings, DOC_TYPE_INVOICE, issued_at)
    sent = replace(
        invoice,
        status=InvoiceStatus.SENT,
        number=number,
        issued_at=issued_at,
        due_at=due_at or add_days(issued_at, settings.payment_terms_days),
        updated_at=now,
    )
    return sent, advanced


def apply_payment(invoice: Invoice, amount_cents: int, now: datetime) -> Tuple[Invoice, int]:
    """
    Record a payment of `amount_cents` on a SENT invoice.

    Returns (invoice, applied_cents). The applied amount is clamped to
    what remains; the invoice turns PAID when nothing remains.
    """
    if invoice.status != InvoiceStatus.SENT:
        raise _precondition(
            ReasonCode.INVOICE_NOT_PAYABLE,
            f"Invoice '{invoice.invoice_id}' is {invoice.status.value}; "
            f"payments are accepted only on SENT invoices.",
            "invoice_must_be_payable_policy",
            invoice_id=invoice.invoice_id,
            status=invoice.status.value,
        )
    applied = min(amount_cents, invoice.remaining_cents)
    paid = add_cents(invoice.paid_cents, applied)
    if paid >= invoice.total_cents:
        return replace(
            invoice,
            paid_cents=invoice.total_cents,
            status=InvoiceStatus.PAID,
            paid_at=now,
            updated_at=now,
        ), applied
    return replace(invoice, paid_cents=paid, updated_at=now), applied


def mark_paid(invoice: Invoice, now: datetime) -> Invoice:
    require_transition(invoice, InvoiceStatus.PAID)
    return replace(
        invoice,
        status=InvoiceStatus.PAID,
        paid_cents=invoice.total_cents,
        paid_at=now,
        updated_at=now,
    )


def cancel_invoice(invoice: Invoice, now: datetime, reason: Optional[str] = None) -> Invoice:
    require_transition(invoice, InvoiceStatus.CANCELLED)
    return replace(
        invoice,
        status=InvoiceStatus.CANCELLED,
        cancelled_at=now,
        cancel_reason=reason,
        updated_at=now,
    )


# ══════════════════════════════════════════════════════════════
# LEDGER
# ══════════════════════════════════════════════════════════════

def payment_finance_line(finance_line_id: str, invoice: Invoice, now: datetime) -> FinanceLine:
    """The single INCOME/PAYMENT line recorded when `invoice` is paid."""
    return FinanceLine(
        finance_line_id=finance_line_id,
        business_id=invoice.business_id,
        type=FinanceType.INCOME,
        amount_cents=invoice.total_cents,
        category=CATEGORY_PAYMENT,
        date=invoice.paid_at or now,
        project_id=invoice.project_id,
        invoice_id=invoice.invoice_id,
        note=f"Payment for invoice {invoice.number or invoice.invoice_id}",
    )


def is_payment_line_for(line: FinanceLine, invoice: Invoice) -> bool:
    return (
        line.invoice_id == invoice.invoice_id
        and line.type == FinanceType.INCOME
        and line.category == CATEGORY_PAYMENT
    )
