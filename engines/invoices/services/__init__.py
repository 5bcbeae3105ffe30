"""Studio Invoices Engine - application service."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from typing import List, Optional, Tuple

from core.commands.base import Command
from core.commands.errors import NotFoundError, raise_if_rejected
from core.context.actor_context import ActorContext
from core.engines.service import EngineService, build_event
from core.primitives.document import Invoice, InvoiceStatus
from core.primitives.ledger import FinanceLine
from engines.billing.services import summary_for_project
from engines.invoices import lifecycle
from engines.invoices.commands import (
    INVOICE_CANCEL_REQUEST,
    INVOICE_CREATE_FROM_QUOTE_REQUEST,
    INVOICE_CREATE_STAGED_REQUEST,
    INVOICE_MARK_PAID_REQUEST,
    INVOICE_PAYMENT_APPLY_REQUEST,
    INVOICE_SEND_REQUEST,
)
from engines.invoices.events import (
    INVOICE_CANCELLED_V1,
    INVOICE_CREATED_V1,
    INVOICE_PAID_V1,
    INVOICE_PAYMENT_APPLIED_V1,
    INVOICE_SENT_V1,
    build_invoice_cancelled_payload,
    build_invoice_paid_payload,
    build_invoice_payload,
    build_payment_applied_payload,
)
from engines.invoices.policies import (
    invoice_must_exist_policy,
    quote_must_be_billing_reference_policy,
    quote_must_be_signed_for_invoice_policy,
    quote_must_not_have_open_invoice_policy,
)
from engines.projects.policies import project_must_not_be_archived_policy
from engines.projects.services import load_project
from engines.quotes.services import load_quote


@dataclass(frozen=True)
class InvoiceExecutionResult:
    invoice: Invoice
    events: Tuple[dict, ...]
    applied_cents: Optional[int] = None
    finance_line: Optional[FinanceLine] = None

    @property
    def entity_id(self) -> str:
        return self.invoice.invoice_id


def load_invoice(uow, business_id: uuid.UUID, invoice_id: str) -> Invoice:
    invoice = uow.get_invoice(business_id, invoice_id)
    raise_if_rejected(invoice_must_exist_policy(invoice, invoice_id), NotFoundError)
    return invoice


class InvoiceLifecycleService(EngineService):
    engine_name = "invoice"
    logger = logging.getLogger("studio.invoices")

    HANDLERS = {
        INVOICE_CREATE_FROM_QUOTE_REQUEST: "_create_from_quote",
        INVOICE_CREATE_STAGED_REQUEST: "_create_staged",
        INVOICE_SEND_REQUEST: "_send",
        INVOICE_CANCEL_REQUEST: "_cancel",
        INVOICE_PAYMENT_APPLY_REQUEST: "_apply_payment",
        INVOICE_MARK_PAID_REQUEST: "_mark_paid",
    }

    # ── reads ─────────────────────────────────────────────────

    def get_invoice(self, *, business_id: uuid.UUID, invoice_id: str,
                    actor: ActorContext) -> Invoice:
        self._authorize(actor, "invoice.read")
        with self._store.unit_of_work() as uow:
            return load_invoice(uow, business_id, invoice_id)

    def list_invoices(self, *, business_id: uuid.UUID, project_id: str,
                      actor: ActorContext) -> List[Invoice]:
        self._authorize(actor, "invoice.read")
        with self._store.unit_of_work() as uow:
            load_project(uow, business_id, project_id)
            return uow.list_invoices(business_id, project_id)

    # ── creation ──────────────────────────────────────────────

    def _created(self, command: Command, uow, invoice: Invoice) -> InvoiceExecutionResult:
        uow.add(invoice)
        uow.commit()
        stored = uow.latest(invoice)
        return InvoiceExecutionResult(
            invoice=stored,
            events=(build_event(command, INVOICE_CREATED_V1,
                                build_invoice_payload(command, stored)),),
        )

    def _create_from_quote(self, command: Command) -> InvoiceExecutionResult:
        with self._store.unit_of_work() as uow:
            quote = load_quote(uow, command.business_id, command.payload["quote_id"])
            raise_if_rejected(quote_must_be_signed_for_invoice_policy(quote))
            project = load_project(uow, quote.business_id, quote.project_id)
            raise_if_rejected(project_must_not_be_archived_policy(project))
            raise_if_rejected(quote_must_be_billing_reference_policy(quote, project))
            raise_if_rejected(quote_must_not_have_open_invoice_policy(
                quote, uow.list_invoices_for_quote(quote.business_id, quote.quote_id)
            ))
            invoice = lifecycle.build_invoice_from_quote(
                self._new_id(), quote, command.issued_at
            )
            return self._created(command, uow, invoice)

    def _create_staged(self, command: Command) -> InvoiceExecutionResult:
        payload = command.payload
        with self._store.unit_of_work() as uow:
            project = load_project(uow, command.business_id, payload["project_id"])
            raise_if_rejected(project_must_not_be_archived_policy(project))
            invoice = lifecycle.build_staged_invoice(
                self._new_id(),
                project,
                summary_for_project(uow, project),
                payload["mode"],
                payload.get("value"),
                command.issued_at,
                note=payload.get("note"),
            )
            return self._created(command, uow, invoice)

    # ── transitions ───────────────────────────────────────────

    def _send(self, command: Command) -> InvoiceExecutionResult:
        with self._store.unit_of_work() as uow:
            invoice = load_invoice(uow, command.business_id, command.payload["invoice_id"])
            sent, advanced = lifecycle.send_invoice(
                invoice,
                uow.get_settings(invoice.business_id),
                command.issued_at,
                command.payload.get("due_at"),
            )
            if advanced is not None:
                uow.save(advanced)
            uow.save(sent)
            uow.commit()
            stored = uow.latest(sent)
        return InvoiceExecutionResult(
            invoice=stored,
            events=(build_event(command, INVOICE_SENT_V1,
                                build_invoice_payload(command, stored)),),
        )

    def _cancel(self, command: Command) -> InvoiceExecutionResult:
        with self._store.unit_of_work() as uow:
            invoice = load_invoice(uow, command.business_id, command.payload["invoice_id"])
            cancelled = lifecycle.cancel_invoice(
                invoice, command.issued_at, command.payload.get("reason")
            )
            uow.save(cancelled)
            uow.commit()
            stored = uow.latest(cancelled)
        if stored.paid_cents:
            self.logger.info(
                "Invoice %s cancelled with %d cent(s) already paid",
                stored.invoice_id,
                stored.paid_cents,
            )
        return InvoiceExecutionResult(
            invoice=stored,
            events=(build_event(command, INVOICE_CANCELLED_V1,
                                build_invoice_cancelled_payload(command, stored)),),
        )

    def _record_payment_line(self, uow, invoice: Invoice, now: datetime):
        """Attach the invoice's PAYMENT finance line, creating it only once."""
        existing = [
            line
            for line in uow.list_finance_lines(invoice.business_id, invoice.project_id)
            if lifecycle.is_payment_line_for(line, invoice)
        ]
        if existing:
            return replace(invoice, cash_sale_ledger_ref=existing[0].finance_line_id), None
        line = lifecycle.payment_finance_line(self._new_id(), invoice, now)
        uow.add(line)
        return replace(invoice, cash_sale_ledger_ref=line.finance_line_id), line

    def _settle(self, command: Command, uow, invoice: Invoice, applied_cents=None):
        line = None
        if invoice.status == InvoiceStatus.PAID:
            invoice, line = self._record_payment_line(uow, invoice, command.issued_at)
        uow.save(invoice)
        uow.commit()
        stored = uow.latest(invoice)
        stored_line = uow.latest(line) if line is not None else None

        events = []
        if applied_cents is not None:
            events.append(build_event(
                command,
                INVOICE_PAYMENT_APPLIED_V1,
                build_payment_applied_payload(command, stored, applied_cents),
            ))
        if stored.status == InvoiceStatus.PAID:
            events.append(build_event(
                command, INVOICE_PAID_V1, build_invoice_paid_payload(command, stored)
            ))
        return InvoiceExecutionResult(
            invoice=stored,
            events=tuple(events),
            applied_cents=applied_cents,
            finance_line=stored_line,
        )

    def _apply_payment(self, command: Command) -> InvoiceExecutionResult:
        with self._store.unit_of_work() as uow:
            invoice = load_invoice(uow, command.business_id, command.payload["invoice_id"])
            updated, applied = lifecycle.apply_payment(
                invoice, command.payload["amount_cents"], command.issued_at
            )
            if applied < command.payload["amount_cents"]:
                self.logger.info(
                    "Payment on invoice %s clamped from %d to %d",
                    invoice.invoice_id,
                    command.payload["amount_cents"],
                    applied,
                )
            return self._settle(command, uow, updated, applied_cents=applied)

    def _mark_paid(self, command: Command) -> InvoiceExecutionResult:
        with self._store.unit_of_work() as uow:
            invoice = load_invoice(uow, command.business_id, command.payload["invoice_id"])
            return self._settle(command, uow, lifecycle.mark_paid(invoice, command.issued_at))
