"""Studio Quotes Engine - policies."""

from __future__ import annotations

from typing import Iterable, Optional

from core.commands.rejection import ReasonCode, RejectionReason
from core.primitives.document import Invoice, Quote, QuoteStatus

DELETABLE_QUOTE_STATUSES = frozenset({QuoteStatus.DRAFT, QuoteStatus.CANCELLED})


def quote_must_exist_policy(quote: Optional[Quote], quote_id: str) -> RejectionReason | None:
    if quote is None:
        return RejectionReason(
            code=ReasonCode.QUOTE_NOT_FOUND,
            message=f"Quote '{quote_id}' not found.",
            policy_name="quote_must_exist_policy",
            details={"quote_id": quote_id},
        )
    return None


def quote_must_be_deletable_policy(quote: Quote) -> RejectionReason | None:
    if quote.status not in DELETABLE_QUOTE_STATUSES:
        return RejectionReason(
            code=ReasonCode.QUOTE_IN_USE,
            message=(
                f"Quote '{quote.quote_id}' is {quote.status.value}; "
                f"only DRAFT or CANCELLED quotes can be deleted."
            ),
            policy_name="quote_must_be_deletable_policy",
            details={"quote_id": quote.quote_id, "status": quote.status.value},
        )
    return None


def quote_must_not_be_invoiced_policy(
    quote: Quote,
    invoices: Iterable[Invoice],
) -> RejectionReason | None:
    invoice_ids = [invoice.invoice_id for invoice in invoices]
    if invoice_ids:
        return RejectionReason(
            code=ReasonCode.QUOTE_IN_USE,
            message=f"Quote '{quote.quote_id}' is referenced by {len(invoice_ids)} invoice(s).",
            policy_name="quote_must_not_be_invoiced_policy",
            details={"quote_id": quote.quote_id, "invoice_ids": invoice_ids},
        )
    return None
