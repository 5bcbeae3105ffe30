"""Studio Invoices Engine - policies."""

from __future__ import annotations

from typing import Iterable, Optional

from core.commands.rejection import ReasonCode, RejectionReason
from core.primitives.document import Invoice, InvoiceStatus, Quote, QuoteStatus
from core.primitives.project import Project


def invoice_must_exist_policy(invoice: Optional[Invoice], invoice_id: str) -> RejectionReason | None:
    if invoice is None:
        return RejectionReason(
            code=ReasonCode.INVOICE_NOT_FOUND,
            message=f"Invoice '{invoice_id}' not found.",
            policy_name="invoice_must_exist_policy",
            details={"invoice_id": invoice_id},
        )
    return None


def quote_must_be_signed_for_invoice_policy(quote: Quote) -> RejectionReason | None:
    if quote.status != QuoteStatus.SIGNED:
        return RejectionReason(
            code=ReasonCode.QUOTE_NOT_SIGNED,
            message=(
                f"Quote '{quote.quote_id}' is {quote.status.value}; "
                f"invoices can only be created from a SIGNED quote."
            ),
            policy_name="quote_must_be_signed_for_invoice_policy",
            details={"quote_id": quote.quote_id, "status": quote.status.value},
        )
    return None


def quote_must_be_billing_reference_policy(quote: Quote, project: Project) -> RejectionReason | None:
    if project.billing_quote_id is not None and project.billing_quote_id != quote.quote_id:
        return RejectionReason(
            code=ReasonCode.QUOTE_NOT_BILLING_REFERENCE,
            message=(
                f"Project '{project.project_id}' bills against quote "
                f"'{project.billing_quote_id}', not '{quote.quote_id}'."
            ),
            policy_name="quote_must_be_billing_reference_policy",
            details={
                "quote_id": quote.quote_id,
                "billing_quote_id": project.billing_quote_id,
            },
        )
    return None


def quote_must_not_have_open_invoice_policy(
    quote: Quote,
    invoices: Iterable[Invoice],
) -> RejectionReason | None:
    for invoice in invoices:
        if invoice.status != InvoiceStatus.CANCELLED:
            return RejectionReason(
                code=ReasonCode.INVOICE_ALREADY_EXISTS,
                message=(
                    f"Quote '{quote.quote_id}' already has invoice "
                    f"'{invoice.invoice_id}' ({invoice.status.value})."
                ),
                policy_name="quote_must_not_have_open_invoice_policy",
                details={"quote_id": quote.quote_id, "invoice_id": invoice.invoice_id},
            )
    return None
