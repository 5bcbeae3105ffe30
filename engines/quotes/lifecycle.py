"""
Studio Quotes Engine - Quote State Machine
============================================
DRAFT → SENT → SIGNED, with CANCELLED from DRAFT/SENT and EXPIRED
from SENT. SIGNED, CANCELLED and EXPIRED are terminal.

RULES (NON-NEGOTIABLE):
- A quote freezes its line items at creation; totals change only
  through replace_items while DRAFT
- Expiry is classified lazily on read (effective_status); the stored
  status changes to EXPIRED only through an explicit transition
- Stored status is authoritative for writes
- Pure functions: (quote, inputs, now) → new quote
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Iterable, Optional, Tuple

from core.commands.errors import InvalidTransitionError, PreconditionError
from core.commands.rejection import ReasonCode, RejectionReason
from core.config.rules import BillingSettings
from core.documents.numbering import DOC_TYPE_QUOTE, allocate_document_number
from core.money import multiply, split_deposit, sum_cents
from core.primitives.document import LineItem, Quote, QuoteStatus
from core.primitives.project import Project
from core.primitives.workflow import WorkflowDefinition
from core.time.temporal import add_days, has_passed
from engines.pricing.calculator import PricingSnapshot

QUOTE_WORKFLOW = WorkflowDefinition(
    name="quote",
    initial_state=QuoteStatus.DRAFT,
    terminal_states=frozenset({
        QuoteStatus.SIGNED,
        QuoteStatus.CANCELLED,
        QuoteStatus.EXPIRED,
    }),
    transitions={
        QuoteStatus.DRAFT: frozenset({QuoteStatus.SENT, QuoteStatus.CANCELLED}),
        QuoteStatus.SENT: frozenset({
            QuoteStatus.SIGNED,
            QuoteStatus.CANCELLED,
            QuoteStatus.EXPIRED,
        }),
    },
)


def effective_status(quote: Quote, now: datetime) -> QuoteStatus:
    """Status as callers should see it: a SENT quote past expires_at reads as EXPIRED."""
    if quote.status == QuoteStatus.SENT and has_passed(quote.expires_at, now):
        return QuoteStatus.EXPIRED
    return quote.status


def is_effectively_expired(quote: Quote, now: datetime) -> bool:
    return effective_status(quote, now) == QuoteStatus.EXPIRED


def require_transition(quote: Quote, target: QuoteStatus) -> None:
    rejection = QUOTE_WORKFLOW.transition_rejection(
        quote.status, target, "quote_transition_policy"
    )
    if rejection is not None:
        raise InvalidTransitionError.from_rejection(rejection)


# ══════════════════════════════════════════════════════════════
# CREATION
# ══════════════════════════════════════════════════════════════

def build_quote(
    quote_id: str,
    project: Project,
    snapshot: PricingSnapshot,
    now: datetime,
    *,
    expires_at: Optional[datetime] = None,
    note: Optional[str] = None,
) -> Quote:
    return Quote(
        quote_id=quote_id,
        business_id=project.business_id,
        project_id=project.project_id,
        client_id=project.client_id,
        status=QUOTE_WORKFLOW.initial_state,
        currency=snapshot.currency,
        deposit_percent=snapshot.deposit_percent,
        total_cents=snapshot.total_cents,
        deposit_cents=snapshot.deposit_cents,
        balance_cents=snapshot.balance_cents,
        items=snapshot.items,
        expires_at=expires_at,
        note=note,
        created_at=now,
        updated_at=now,
    )


def build_line_items(raw_items: Iterable[dict]) -> Tuple[LineItem, ...]:
    return tuple(
        LineItem(
            label=raw["label"],
            quantity=raw["quantity"],
            unit_price_cents=raw["unit_price_cents"],
            total_cents=multiply(raw["unit_price_cents"], raw["quantity"]),
            service_id=raw.get("service_id"),
            description=raw.get("description"),
        )
        for raw in raw_items
    )


def replace_items(quote: Quote, items: Tuple[LineItem, ...], now: datetime) -> Quote:
    """Swap the line items of a DRAFT quote, recomputing totals at its deposit percent."""
    if quote.status != QuoteStatus.DRAFT:
        raise PreconditionError.from_rejection(RejectionReason(
            code=ReasonCode.QUOTE_NOT_DRAFT,
            message=f"Quote '{quote.quote_id}' is {quote.status.value}; only DRAFT items can change.",
            policy_name="quote_must_be_draft_policy",
            details={"quote_id": quote.quote_id, "status": quote.status.value},
        ))
    total = sum_cents(item.total_cents for item in items)
    deposit, balance = split_deposit(total, quote.deposit_percent)
    return replace(
        quote,
        items=items,
        total_cents=total,
        deposit_cents=deposit,
        balance_cents=balance,
        updated_at=now,
    )


# ══════════════════════════════════════════════════════════════
# TRANSITIONS
# ══════════════════════════════════════════════════════════════

def send_quote(
    quote: Quote,
    settings: BillingSettings,
    now: datetime,
) -> Tuple[Quote, Optional[BillingSettings]]:
    """
    DRAFT → SENT. Returns the sent quote and, when a number was
    allocated, the settings with the quote counter advanced.
    """
    require_transition(quote, QuoteStatus.SENT)
    issued_at = quote.issued_at or now
    number, advanced = quote.number, None
    if number is None:
        number, advanced = allocate_document_number(settings, DOC_TYPE_QUOTE, issued_at)
    expires_at = quote.expires_at
    if expires_at is None and settings.quote_validity_days is not None:
        expires_at = add_days(issued_at, settings.quote_validity_days)
    sent = replace(
        quote,
        status=QuoteStatus.SENT,
        number=number,
        issued_at=issued_at,
        expires_at=expires_at,
        updated_at=now,
    )
    return sent, advanced


def sign_quote(quote: Quote, now: datetime, signed_at: Optional[datetime] = None) -> Quote:
    require_transition(quote, QuoteStatus.SIGNED)
    return replace(
        quote,
        status=QuoteStatus.SIGNED,
        signed_at=signed_at or now,
        updated_at=now,
    )


def cancel_quote(quote: Quote, now: datetime, reason: str) -> Quote:
    require_transition(quote, QuoteStatus.CANCELLED)
    return replace(
        quote,
        status=QuoteStatus.CANCELLED,
        cancelled_at=now,
        cancel_reason=reason,
        updated_at=now,
    )


def expire_quote(quote: Quote, now: datetime) -> Quote:
    """Persist a lazy expiry. Only a SENT quote whose expires_at has passed qualifies."""
    require_transition(quote, QuoteStatus.EXPIRED)
    if not has_passed(quote.expires_at, now):
        raise PreconditionError.from_rejection(RejectionReason(
            code=ReasonCode.QUOTE_NOT_EXPIRED,
            message=f"Quote '{quote.quote_id}' has not reached its expiry date.",
            policy_name="quote_must_be_expired_policy",
            details={
                "quote_id": quote.quote_id,
                "expires_at": quote.expires_at.isoformat() if quote.expires_at else None,
            },
        ))
    return replace(quote, status=QuoteStatus.EXPIRED, updated_at=now)
