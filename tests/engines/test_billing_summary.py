"""Studio Billing Engine tests (summary aggregation)."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

BIZ = uuid.uuid4()
NOW = datetime(2026, 2, 21, 9, 0, 0, tzinfo=timezone.utc)


def _project(**overrides):
    from core.primitives import Project

    fields = dict(
        project_id="p-1",
        business_id=BIZ,
        name="Website",
        client_id="client-1",
        created_at=NOW,
        updated_at=NOW,
    )
    fields.update(overrides)
    return Project(**fields)


def _snapshot(project, total_cents, deposit_percent=30):
    from core.primitives import ProjectService
    from engines.pricing.calculator import compute_pricing

    services = []
    if total_cents:
        services.append(ProjectService(
            project_service_id="ps-1", business_id=BIZ, project_id=project.project_id,
            service_id="svc", price_cents_override=total_cents,
        ))
    return compute_pricing(project, services, {}, deposit_percent=deposit_percent,
                           currency="EUR")


def _signed(quote_id, total, signed_at, deposit_percent=30, project_id="p-1"):
    from core.money import split_deposit
    from core.primitives import Quote, QuoteStatus

    deposit, balance = split_deposit(total, deposit_percent)
    return Quote(
        quote_id=quote_id, business_id=BIZ, project_id=project_id,
        created_at=NOW, updated_at=NOW,
        status=QuoteStatus.SIGNED, signed_at=signed_at,
        deposit_percent=deposit_percent,
        total_cents=total, deposit_cents=deposit, balance_cents=balance,
    )


def _invoice(invoice_id, total, paid=0, status="SENT", project_id="p-1"):
    from core.primitives import Invoice, InvoiceStatus

    return Invoice(
        invoice_id=invoice_id, business_id=BIZ, project_id=project_id,
        created_at=NOW, updated_at=NOW,
        status=InvoiceStatus(status),
        total_cents=total, balance_cents=total, paid_cents=paid,
        paid_at=NOW if status == "PAID" else None,
    )


def _line(line_id, kind, amount, invoice_id=None, project_id="p-1"):
    from core.primitives.ledger import FinanceLine, FinanceType

    return FinanceLine(
        finance_line_id=line_id, business_id=BIZ, type=FinanceType(kind),
        amount_cents=amount, category="MISC", date=NOW,
        project_id=project_id, invoice_id=invoice_id,
    )


class TestSourceSelection:
    def test_bound_quote_wins(self):
        from core.primitives import ProjectQuoteStatus
        from engines.billing.aggregator import SummarySource, summarize

        project = _project(billing_quote_id="q-old", quote_status=ProjectQuoteStatus.SIGNED)
        quotes = [
            _signed("q-old", 10000, NOW),
            _signed("q-new", 20000, NOW + timedelta(days=1)),
        ]
        summary = summarize(project, quotes, [], [], pricing_snapshot=_snapshot(project, 500))
        assert summary.source == SummarySource.SIGNED_QUOTE
        assert summary.reference_quote_id == "q-old"
        assert summary.total_cents == 10000

    def test_latest_signed_quote_without_binding(self):
        from engines.billing.aggregator import SummarySource, summarize

        project = _project()
        quotes = [
            _signed("q-a", 10000, NOW + timedelta(days=2)),
            _signed("q-b", 20000, NOW),
        ]
        summary = summarize(project, quotes, [], [], pricing_snapshot=_snapshot(project, 500))
        assert summary.source == SummarySource.OTHER_QUOTE
        assert summary.reference_quote_id == "q-a"

    def test_pricing_snapshot_fallback(self):
        from core.primitives import Quote
        from engines.billing.aggregator import SummarySource, summarize

        project = _project()
        draft = Quote(quote_id="q-d", business_id=BIZ, project_id="p-1",
                      created_at=NOW, updated_at=NOW)
        summary = summarize(project, [draft], [], [],
                            pricing_snapshot=_snapshot(project, 10000, deposit_percent=40))
        assert summary.source == SummarySource.PRICING_SNAPSHOT
        assert summary.reference_quote_id is None
        assert (summary.total_cents, summary.deposit_cents, summary.balance_cents) == (
            10000, 4000, 6000,
        )
        assert summary.client_id == "client-1"

    def test_planned_value_is_live_pricing(self):
        from engines.billing.aggregator import summarize

        project = _project()
        summary = summarize(project, [_signed("q-1", 10000, NOW)], [], [],
                            pricing_snapshot=_snapshot(project, 12500))
        assert summary.total_cents == 10000
        assert summary.planned_value_cents == 12500


class TestAmounts:
    def test_invoiced_paid_and_remaining(self):
        from core.primitives import PaymentState
        from engines.billing.aggregator import summarize

        project = _project()
        invoices = [
            _invoice("i-1", 5000, paid=5000, status="PAID"),
            _invoice("i-2", 3000, paid=1000),
        ]
        summary = summarize(project, [_signed("q-1", 10000, NOW)], invoices, [],
                            pricing_snapshot=_snapshot(project, 10000))
        assert summary.already_invoiced_cents == 8000
        assert summary.already_paid_cents == 6000
        assert summary.remaining_to_invoice_cents == 2000
        assert summary.remaining_to_collect_cents == 4000
        assert summary.remaining_cents == 4000
        assert summary.payment_state == PaymentState.PARTIAL

    def test_cancelled_invoices_ignored(self):
        from engines.billing.aggregator import summarize

        project = _project()
        invoices = [
            _invoice("i-1", 4000, paid=1000, status="CANCELLED"),
            _invoice("i-2", 2000),
        ]
        summary = summarize(project, [], invoices, [], pricing_snapshot=_snapshot(project, 10000))
        assert summary.already_invoiced_cents == 2000
        assert summary.already_paid_cents == 0

    def test_remaining_clamped_at_zero(self):
        from core.primitives import PaymentState
        from engines.billing.aggregator import summarize

        project = _project()
        invoices = [_invoice("i-1", 6000, paid=6000, status="PAID")]
        summary = summarize(project, [], invoices, [], pricing_snapshot=_snapshot(project, 5000))
        assert summary.remaining_to_invoice_cents == 0
        assert summary.remaining_to_collect_cents == 0
        assert summary.payment_state == PaymentState.PAID

    def test_records_of_other_projects_ignored(self):
        from engines.billing.aggregator import summarize

        project = _project()
        summary = summarize(
            project,
            [_signed("q-x", 90000, NOW, project_id="p-2")],
            [_invoice("i-x", 1000, project_id="p-2")],
            [_line("f-x", "EXPENSE", 700, project_id="p-2")],
            pricing_snapshot=_snapshot(project, 10000),
        )
        assert summary.total_cents == 10000
        assert summary.already_invoiced_cents == 0
        assert summary.expense_cents == 0

    def test_finance_lines(self):
        from engines.billing.aggregator import summarize

        project = _project()
        lines = [
            _line("f-1", "INCOME", 5000, invoice_id="i-1"),
            _line("f-2", "INCOME", 250),
            _line("f-3", "EXPENSE", 1200),
        ]
        summary = summarize(project, [], [], lines, pricing_snapshot=_snapshot(project, 10000))
        assert summary.other_income_cents == 250
        assert summary.expense_cents == 1200

    def test_unpriced_project(self):
        from core.primitives import PaymentState
        from engines.billing.aggregator import summarize

        project = _project()
        summary = summarize(project, [], [], [], pricing_snapshot=_snapshot(project, 0))
        assert summary.total_cents == 0
        assert summary.remaining_to_invoice_cents == 0
        assert summary.payment_state == PaymentState.PAID

    def test_recomputing_gives_same_summary(self):
        from engines.billing.aggregator import summarize

        project = _project()
        args = (project, [_signed("q-1", 10000, NOW)], [_invoice("i-1", 3000)], [])
        snapshot = _snapshot(project, 10000)
        first = summarize(*args, pricing_snapshot=snapshot)
        assert summarize(*args, pricing_snapshot=snapshot) == first
        assert first.to_dict()["source"] == "OTHER_QUOTE"


class TestBillingSummaryService:
    def test_signed_quote_with_staged_invoices(self, deps, run, owner, viewer, business_id,
                                               priced_project):
        from engines.invoices.commands import (
            InvoiceCreateStagedRequest,
            InvoicePaymentApplyRequest,
            InvoiceSendRequest,
        )
        from engines.quotes.commands import QuoteCreateRequest, QuoteTransitionRequest

        quote_id = run(deps.quotes, QuoteCreateRequest(project_id=priced_project), owner).quote.quote_id
        run(deps.quotes, QuoteTransitionRequest(quote_id=quote_id, target_status="SENT"), owner)
        run(deps.quotes, QuoteTransitionRequest(quote_id=quote_id, target_status="SIGNED"), owner)

        first = run(deps.invoices, InvoiceCreateStagedRequest(
            project_id=priced_project, mode="AMOUNT", value=5000), owner).invoice
        run(deps.invoices, InvoiceCreateStagedRequest(
            project_id=priced_project, mode="AMOUNT", value=3000), owner)
        run(deps.invoices, InvoiceSendRequest(invoice_id=first.invoice_id), owner)
        run(deps.invoices, InvoicePaymentApplyRequest(
            invoice_id=first.invoice_id, amount_cents=5000), owner)

        summary = deps.billing.get_billing_summary(
            business_id=business_id, project_id=priced_project, actor=viewer
        )
        assert summary.source.value == "SIGNED_QUOTE"
        assert summary.reference_quote_id == quote_id
        assert summary.total_cents == 10000
        assert summary.already_invoiced_cents == 8000
        assert summary.remaining_to_invoice_cents == 2000
        assert summary.already_paid_cents == 5000
        assert summary.remaining_to_collect_cents == 5000
        assert summary.payment_state.value == "PARTIAL"

    def test_without_quotes(self, deps, viewer, business_id, priced_project):
        summary = deps.billing.get_billing_summary(
            business_id=business_id, project_id=priced_project, actor=viewer
        )
        assert summary.source.value == "PRICING_SNAPSHOT"
        assert summary.total_cents == 10000
        assert summary.deposit_cents == 3000

    def test_unknown_project(self, deps, viewer, business_id):
        from core.commands.errors import NotFoundError

        with pytest.raises(NotFoundError):
            deps.billing.get_billing_summary(
                business_id=business_id, project_id="missing", actor=viewer
            )
