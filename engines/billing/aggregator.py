"""
Studio Billing Engine - Billing Summary Aggregator
====================================================
Derives one consistent financial view of a project from its quotes,
invoices, finance lines and a live pricing snapshot.

RULES (NON-NEGOTIABLE):
- Source priority: bound SIGNED billing quote, then the most recently
  signed quote, then the pricing snapshot
- total/deposit/balance come from the chosen source only
- CANCELLED invoices count neither as invoiced nor as paid
- Remaining amounts are clamped at zero
- Pure and deterministic: the summary is never persisted, it is
  recomputed on every read
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable, List, Optional

from core.money import subtract_clamped, sum_cents
from core.primitives.document import (
    Invoice,
    InvoiceStatus,
    PaymentState,
    Quote,
    QuoteStatus,
    payment_state_for,
)
from core.primitives.ledger import FinanceLine, FinanceType
from core.primitives.project import Project
from engines.pricing.calculator import PricingSnapshot


class SummarySource(Enum):
    SIGNED_QUOTE = "SIGNED_QUOTE"
    OTHER_QUOTE = "OTHER_QUOTE"
    PRICING_SNAPSHOT = "PRICING_SNAPSHOT"


_MISSING_TIME = (0, 0.0)


def _time_key(value: Optional[datetime]):
    return (1, value.timestamp()) if value is not None else _MISSING_TIME


@dataclass(frozen=True)
class BillingSummary:
    project_id: str
    client_id: Optional[str]
    source: SummarySource
    reference_quote_id: Optional[str]
    currency: str
    planned_value_cents: int
    total_cents: int
    deposit_percent: int
    deposit_cents: int
    balance_cents: int
    already_invoiced_cents: int
    already_paid_cents: int
    remaining_to_collect_cents: int
    remaining_to_invoice_cents: int
    remaining_cents: int
    payment_state: PaymentState
    other_income_cents: int = 0
    expense_cents: int = 0

    def to_dict(self) -> dict:
        return {
            "project_id": self.project_id,
            "client_id": self.client_id,
            "source": self.source.value,
            "reference_quote_id": self.reference_quote_id,
            "currency": self.currency,
            "planned_value_cents": self.planned_value_cents,
            "total_cents": self.total_cents,
            "deposit_percent": self.deposit_percent,
            "deposit_cents": self.deposit_cents,
            "balance_cents": self.balance_cents,
            "already_invoiced_cents": self.already_invoiced_cents,
            "already_paid_cents": self.already_paid_cents,
            "remaining_to_collect_cents": self.remaining_to_collect_cents,
            "remaining_to_invoice_cents": self.remaining_to_invoice_cents,
            "remaining_cents": self.remaining_cents,
            "payment_state": self.payment_state.value,
            "other_income_cents": self.other_income_cents,
            "expense_cents": self.expense_cents,
        }


# ══════════════════════════════════════════════════════════════
# SOURCE SELECTION
# ══════════════════════════════════════════════════════════════

def most_recently_signed(quotes: Iterable[Quote]) -> Optional[Quote]:
    signed = [q for q in quotes if q.status == QuoteStatus.SIGNED]
    if not signed:
        return None
    return max(signed, key=lambda q: (
        _time_key(q.signed_at),
        _time_key(q.issued_at),
        _time_key(q.created_at),
        q.quote_id,
    ))


def select_reference_quote(project: Project, quotes: Iterable[Quote]):
    """Return (quote, source) for the project's quotes; (None, PRICING_SNAPSHOT) if none signed."""
    quotes = list(quotes)
    if project.billing_quote_id is not None:
        for quote in quotes:
            if quote.quote_id == project.billing_quote_id and quote.status == QuoteStatus.SIGNED:
                return quote, SummarySource.SIGNED_QUOTE
    latest = most_recently_signed(quotes)
    if latest is not None:
        return latest, SummarySource.OTHER_QUOTE
    return None, SummarySource.PRICING_SNAPSHOT


# ══════════════════════════════════════════════════════════════
# SUMMARY
# ══════════════════════════════════════════════════════════════

def _belongs(record, project: Project) -> bool:
    return (
        record.business_id == project.business_id
        and record.project_id == project.project_id
    )


def summarize(
    project: Project,
    quotes: Iterable[Quote],
    invoices: Iterable[Invoice],
    finance_lines: Iterable[FinanceLine],
    *,
    pricing_snapshot: PricingSnapshot,
) -> BillingSummary:
    project_quotes = [q for q in quotes if _belongs(q, project)]
    live_invoices: List[Invoice] = [
        i for i in invoices
        if _belongs(i, project) and i.status != InvoiceStatus.CANCELLED
    ]
    lines = [f for f in finance_lines if _belongs(f, project)]

    reference, source = select_reference_quote(project, project_quotes)
    if reference is not None:
        total = reference.total_cents
        deposit_percent = reference.deposit_percent
        deposit = reference.deposit_cents
        balance = reference.balance_cents
        currency = reference.currency
        client_id = reference.client_id if reference.client_id is not None else project.client_id
    else:
        total = pricing_snapshot.total_cents
        deposit_percent = pricing_snapshot.deposit_percent
        deposit = pricing_snapshot.deposit_cents
        balance = pricing_snapshot.balance_cents
        currency = pricing_snapshot.currency
        client_id = project.client_id

    invoiced = sum_cents(i.total_cents for i in live_invoices)
    paid = sum_cents(i.paid_cents for i in live_invoices)
    remaining_to_collect = subtract_clamped(total, paid)

    return BillingSummary(
        project_id=project.project_id,
        client_id=client_id,
        source=source,
        reference_quote_id=reference.quote_id if reference is not None else None,
        currency=currency,
        planned_value_cents=pricing_snapshot.total_cents,
        total_cents=total,
        deposit_percent=deposit_percent,
        deposit_cents=deposit,
        balance_cents=balance,
        already_invoiced_cents=invoiced,
        already_paid_cents=paid,
        remaining_to_collect_cents=remaining_to_collect,
        remaining_to_invoice_cents=subtract_clamped(total, invoiced),
        remaining_cents=remaining_to_collect,
        payment_state=payment_state_for(total, paid),
        other_income_cents=sum_cents(
            f.amount_cents for f in lines
            if f.type == FinanceType.INCOME and f.invoice_id is None
        ),
        expense_cents=sum_cents(
            f.amount_cents for f in lines if f.type == FinanceType.EXPENSE
        ),
    )
